from pydantic import BaseModel, Field
from typing import Literal, List


class ConflictDetail(BaseModel):
    id: str
    conflict_type: Literal[
        "teacher_conflict",
        "room_conflict",
        "cohort_conflict",
        "room_capacity",
        "room_type",
        "outside_grid",
    ]
    description: str
    severity: Literal["hard", "soft"] = "hard"
    slot: str
    affected_entries: List[int] = Field(default_factory=list)  # indices into the submitted entry list


class ConflictReport(BaseModel):
    valid: bool
    conflicts: List[ConflictDetail] = Field(default_factory=list)
    conflicts_by_type: dict[str, int] = Field(default_factory=dict)
