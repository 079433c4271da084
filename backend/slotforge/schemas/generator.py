from __future__ import annotations

import re
from datetime import date
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from slotforge.schemas.course import CourseInput
from slotforge.schemas.room import RoomInput
from slotforge.schemas.settings import TIME_PATTERN, TimetableConstraints
from slotforge.schemas.teacher import TeacherInput


class SoftCostWeights(BaseModel):
    teacher_slot: float = Field(default=1.0, ge=0, le=1000)
    unused_room: float = Field(default=5.0, ge=0, le=1000)
    practical_overload: float = Field(default=2.0, ge=0, le=1000)
    teacher_gap: float = Field(default=0.0, ge=0, le=1000)


class GenerationSettings(BaseModel):
    optimize: bool = True
    optimizer_iterations: int | None = Field(default=None, ge=0, le=200_000)
    max_resolve_attempts: int | None = Field(default=None, ge=0, le=10_000_000)
    random_seed: int | None = Field(default=None, ge=0, le=2_000_000_000)
    soft_cost_weights: SoftCostWeights = Field(default_factory=SoftCostWeights)


class SchedulingSnapshot(BaseModel):
    courses: list[CourseInput] = Field(default_factory=list)
    teachers: list[TeacherInput] = Field(default_factory=list)
    rooms: list[RoomInput] = Field(default_factory=list)
    constraints: TimetableConstraints = Field(default_factory=TimetableConstraints)

    @field_validator("courses", "teachers", "rooms")
    @classmethod
    def validate_unique_ids(cls, value: list) -> list:
        seen: set[str] = set()
        duplicates: set[str] = set()
        for item in value:
            if item.id in seen:
                duplicates.add(item.id)
            seen.add(item.id)
        if duplicates:
            raise ValueError(f"Duplicate id(s): {', '.join(sorted(duplicates))}")
        return value


class GenerateTimetableRequest(SchedulingSnapshot):
    settings: GenerationSettings = Field(default_factory=GenerationSettings)


SessionKindOut = Literal["lecture", "practical"]


class TimetableEntryOut(BaseModel):
    course_id: str
    teacher_id: str
    room_id: str
    day: int = Field(ge=1, le=7)
    period: str = Field(pattern=r"^P[1-9]\d*$")
    session_type: SessionKindOut
    cohort_key: str
    token_id: str = ""


class UnassignedSessionOut(BaseModel):
    token_id: str
    course_id: str
    teacher_id: str | None = None
    session_type: SessionKindOut
    cohort_key: str
    demand: int
    priority: int
    reason: str


class GenerationStatistics(BaseModel):
    total_sessions: int
    assigned_sessions: int
    greedy_assigned: int
    resolved_sessions: int
    teacher_utilization: dict[str, float] = Field(default_factory=dict)
    room_utilization: dict[str, float] = Field(default_factory=dict)


class GenerateTimetableResponse(BaseModel):
    entries: list[TimetableEntryOut]
    unassigned: list[UnassignedSessionOut]
    warnings: list[str] = Field(default_factory=list)
    valid: bool
    soft_cost: float
    baseline_soft_cost: float
    statistics: GenerationStatistics
    random_seed: int | None = None
    runtime_ms: int


class ScheduleEntriesRequest(SchedulingSnapshot):
    entries: list[TimetableEntryOut] = Field(default_factory=list)


class ExportCsvRequest(ScheduleEntriesRequest):
    layout: Literal["grid", "list"] = "grid"


class ExportIcsRequest(ScheduleEntriesRequest):
    reference_date: date | None = None
    period_start_times: dict[str, str] | None = None

    @field_validator("period_start_times")
    @classmethod
    def validate_period_start_times(cls, value: dict[str, str] | None) -> dict[str, str] | None:
        if value is None:
            return value
        for label, start in value.items():
            if not re.match(r"^P[1-9]\d*$", label):
                raise ValueError(f"Invalid period label: {label}")
            if not TIME_PATTERN.match(start):
                raise ValueError(f"Start time for {label} must be HH:MM")
        return value
