from __future__ import annotations

from dataclasses import dataclass
from functools import cached_property
from typing import NamedTuple

from slotforge.core.exceptions import SchedulerError
from slotforge.schemas.settings import DAY_INDEX_BY_NAME, TimetableConstraints, minutes_to_time


class SlotKey(NamedTuple):
    """One bookable timetable cell: weekday index (1=Mon) and 1-based period."""

    day: int
    period: int

    def __str__(self) -> str:
        return format_slot_key(self)


def period_label(period: int) -> str:
    return f"P{period}"


def parse_period_label(label: str) -> int:
    text = label.strip().upper()
    if not text.startswith("P") or not text[1:].isdigit() or int(text[1:]) < 1:
        raise ValueError(f"Invalid period label: {label!r}")
    return int(text[1:])


def format_slot_key(slot: SlotKey) -> str:
    return f"{slot.day}|{period_label(slot.period)}"


def parse_day(value: str) -> int:
    text = value.strip()
    if text.isdigit():
        day = int(text)
        if 1 <= day <= 7:
            return day
        raise ValueError(f"Day index out of range: {value!r}")
    day = DAY_INDEX_BY_NAME.get(text.title())
    if day is None:
        raise ValueError(f"Unknown day: {value!r}")
    return day


def parse_slot_key(text: str) -> SlotKey:
    """Parse ``"2|P3"``, ``"Tue|P3"`` or ``"Tuesday|P3"``."""
    day_part, separator, period_part = text.partition("|")
    if not separator:
        raise ValueError(f"Slot key must look like '<day>|P<n>': {text!r}")
    return SlotKey(parse_day(day_part), parse_period_label(period_part))


@dataclass(frozen=True)
class SlotGrid:
    days: tuple[int, ...]
    period_count: int
    day_start: int
    period_minutes: int

    @classmethod
    def from_constraints(cls, constraints: TimetableConstraints) -> "SlotGrid":
        hours = constraints.working_hours
        total_minutes = hours.end_minutes - hours.start_minutes
        period_count = min(constraints.max_periods_per_day, total_minutes // constraints.period_duration_minutes)
        if not constraints.working_days:
            raise SchedulerError(message="No active working days configured for timetable generation")
        if period_count <= 0:
            raise SchedulerError(
                message="Working hours are shorter than a single period",
                details={
                    "working_minutes": total_minutes,
                    "period_duration_minutes": constraints.period_duration_minutes,
                },
            )
        return cls(
            days=tuple(constraints.working_days),
            period_count=period_count,
            day_start=hours.start_minutes,
            period_minutes=constraints.period_duration_minutes,
        )

    @cached_property
    def periods(self) -> tuple[int, ...]:
        return tuple(range(1, self.period_count + 1))

    @cached_property
    def labels(self) -> list[str]:
        return [period_label(period) for period in self.periods]

    @cached_property
    def slots(self) -> tuple[SlotKey, ...]:
        # Day-major order; placement tie-breaks rely on it.
        return tuple(SlotKey(day, period) for day in self.days for period in self.periods)

    def __contains__(self, slot: object) -> bool:
        return isinstance(slot, tuple) and len(slot) == 2 and slot[0] in self.days and 1 <= slot[1] <= self.period_count

    def period_start(self, period: int) -> int:
        return self.day_start + (period - 1) * self.period_minutes

    def period_end(self, period: int) -> int:
        return self.period_start(period) + self.period_minutes

    def periods_within(self, start_minutes: int, end_minutes: int) -> list[int]:
        return [
            period
            for period in self.periods
            if self.period_start(period) >= start_minutes and self.period_end(period) <= end_minutes
        ]

    def periods_overlapping(self, start_minutes: int, end_minutes: int) -> list[int]:
        return [
            period
            for period in self.periods
            if max(self.period_start(period), start_minutes) < min(self.period_end(period), end_minutes)
        ]

    def period_start_times(self) -> dict[str, str]:
        return {period_label(period): minutes_to_time(self.period_start(period)) for period in self.periods}
