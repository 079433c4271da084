from enum import Enum

from pydantic import BaseModel, Field, field_validator


class CourseCategory(str, Enum):
    core = "core"
    major = "major"
    minor = "minor"
    elective = "elective"
    value_add = "value_add"
    skill = "skill"


class CourseInput(BaseModel):
    id: str = Field(min_length=1, max_length=64)
    code: str = Field(min_length=1, max_length=50)
    name: str = Field(default="", max_length=200)
    credits: int = Field(default=0, ge=0, le=40)
    theory_practical: str = Field(default="", max_length=50)
    department: str = Field(default="", max_length=200)
    assigned_teacher_id: str | None = Field(default=None, max_length=64)
    max_students: int = Field(default=0, ge=0, le=5000)
    semester: str = Field(default="1", max_length=20)
    year: int = Field(default=1, ge=1, le=10)
    course_type: CourseCategory = CourseCategory.core

    @field_validator("semester", mode="before")
    @classmethod
    def coerce_semester(cls, value: str | int) -> str:
        return str(value).strip()

    @field_validator("assigned_teacher_id")
    @classmethod
    def blank_teacher_is_none(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value.strip()

    @property
    def cohort_key(self) -> str:
        return f"sem:{self.semester}_yr:{self.year}"
