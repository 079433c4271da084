from __future__ import annotations

import re

from pydantic import BaseModel, Field, field_validator, model_validator

DAY_NAMES = {
    1: "Monday",
    2: "Tuesday",
    3: "Wednesday",
    4: "Thursday",
    5: "Friday",
    6: "Saturday",
    7: "Sunday",
}

DAY_ABBREVIATIONS = {index: name[:3] for index, name in DAY_NAMES.items()}

DAY_INDEX_BY_NAME = {
    **{name: index for index, name in DAY_NAMES.items()},
    **{abbrev: index for index, abbrev in DAY_ABBREVIATIONS.items()},
}

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def parse_time_to_minutes(value: str) -> int:
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_time(value: int) -> str:
    hours = value // 60
    minutes = value % 60
    return f"{hours:02d}:{minutes:02d}"


def _coerce_clock(value: str | int) -> str:
    # Whole hours ("9", 9) are accepted alongside HH:MM.
    if isinstance(value, int):
        return f"{value:02d}:00"
    text = str(value).strip()
    if text.isdigit():
        return f"{int(text):02d}:00"
    if re.match(r"^\d:[0-5]\d$", text):
        return f"0{text}"
    return text


class TimeWindow(BaseModel):
    start: str
    end: str

    @field_validator("start", "end", mode="before")
    @classmethod
    def coerce_time(cls, value: str | int) -> str:
        return _coerce_clock(value)

    @field_validator("start", "end")
    @classmethod
    def validate_time(cls, value: str) -> str:
        if not TIME_PATTERN.match(value):
            raise ValueError("Time must be in HH:MM 24-hour format")
        return value

    @model_validator(mode="after")
    def validate_time_order(self) -> "TimeWindow":
        if parse_time_to_minutes(self.end) <= parse_time_to_minutes(self.start):
            raise ValueError("end must be after start")
        return self

    @property
    def start_minutes(self) -> int:
        return parse_time_to_minutes(self.start)

    @property
    def end_minutes(self) -> int:
        return parse_time_to_minutes(self.end)


class WorkingHours(TimeWindow):
    start: str = "09:00"
    end: str = "17:00"
    lunch_break: TimeWindow | None = None

    @model_validator(mode="after")
    def validate_lunch_inside_day(self) -> "WorkingHours":
        if self.lunch_break is not None:
            if self.lunch_break.start_minutes < self.start_minutes or self.lunch_break.end_minutes > self.end_minutes:
                raise ValueError("lunch_break must fall inside working hours")
        return self


class LunchZone(BaseModel):
    periods: list[str] = Field(min_length=1)
    departments: list[str] | None = None
    mandatory: bool = True

    @field_validator("periods")
    @classmethod
    def validate_period_labels(cls, value: list[str]) -> list[str]:
        cleaned = [item.strip().upper() for item in value if item.strip()]
        invalid = [item for item in cleaned if not re.match(r"^P[1-9]\d*$", item)]
        if invalid:
            raise ValueError(f"Invalid period label(s): {', '.join(invalid)}")
        return cleaned


class SchedulingPreferences(BaseModel):
    avoid_back_to_back_labs: bool = False
    prefer_morning_theory: bool = False
    avoid_single_period_gaps: bool = False
    balance_daily_workload: bool = False
    enforce_teacher_workload: bool = False


class TimetableConstraints(BaseModel):
    working_days: list[int] = Field(default_factory=lambda: [1, 2, 3, 4, 5], min_length=1, max_length=7)
    working_hours: WorkingHours = Field(default_factory=WorkingHours)
    period_duration_minutes: int = Field(default=60, ge=5, le=240)
    max_periods_per_day: int = Field(default=8, ge=1, le=24)
    preferences: SchedulingPreferences = Field(default_factory=SchedulingPreferences)
    blocked_slots: list[str] = Field(default_factory=list)
    holidays: list[str] = Field(default_factory=list)
    lunch_zones: list[LunchZone] = Field(default_factory=list, max_length=10)
    max_daily_periods_per_teacher: int | None = Field(default=None, ge=1, le=24)

    @field_validator("working_days")
    @classmethod
    def normalize_working_days(cls, value: list[int]) -> list[int]:
        unique: list[int] = []
        seen: set[int] = set()
        for item in value:
            if item < 1 or item > 7:
                raise ValueError("working_days must be between 1 (Monday) and 7 (Sunday)")
            if item in seen:
                continue
            seen.add(item)
            unique.append(item)
        return unique
