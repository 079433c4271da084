from pydantic import BaseModel, Field


class TeacherInput(BaseModel):
    id: str = Field(min_length=1, max_length=64)
    name: str = Field(default="", max_length=200)
    department: str = Field(default="", max_length=200)
    subjects: list[str] = Field(default_factory=list)
    weekly_workload: int = Field(default=20, ge=0, le=200)
    max_daily: int | None = Field(default=None, ge=1, le=24)
    availability_raw: str | None = Field(default=None, max_length=1000)
