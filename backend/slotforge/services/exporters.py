from __future__ import annotations

import csv
import io
from collections import defaultdict
from datetime import date, datetime, timedelta, timezone
from typing import Literal, Mapping, Sequence

from slotforge.core.exceptions import SchedulerError
from slotforge.schemas.settings import DAY_ABBREVIATIONS, parse_time_to_minutes
from slotforge.services.entries import TimetableEntry
from slotforge.services.grid import SlotGrid, SlotKey, format_slot_key, period_label

EMPTY_CELL = "—"
CELL_SEPARATOR = " • "
SHARED_CELL_SEPARATOR = " | "
DEFAULT_PRODUCT_ID = "-//SlotForge//Timetable//EN"

LIST_HEADER = ["Day", "Period", "Course", "Teacher", "Room", "Type", "Cohort"]

# RFC 5545 content lines are limited to 75 octets, excluding the CRLF.
ICS_LINE_OCTETS = 75


def entry_cell(entry: TimetableEntry) -> str:
    return CELL_SEPARATOR.join((entry.course_id, entry.room_id, entry.teacher_id))


def ensure_on_grid(entries: Sequence[TimetableEntry], grid: SlotGrid) -> None:
    """Raise when an entry sits on a day or period the grid does not have."""
    outside = [entry for entry in entries if entry.slot not in grid]
    if outside:
        raise SchedulerError(
            message="Timetable entries fall outside the working grid",
            details={
                "entries": [
                    {"course_id": entry.course_id, "slot": format_slot_key(entry.slot)} for entry in outside
                ],
                "working_days": list(grid.days),
                "periods": grid.period_count,
            },
        )


def export_csv(
    entries: Sequence[TimetableEntry],
    grid: SlotGrid,
    *,
    layout: Literal["grid", "list"] = "grid",
    empty_marker: str = EMPTY_CELL,
) -> str:
    """Render entries as a day × period table, or one row per entry."""
    ensure_on_grid(entries, grid)
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")

    if layout == "list":
        writer.writerow(LIST_HEADER)
        for entry in sorted(entries, key=lambda item: (item.day, item.period)):
            writer.writerow(
                [
                    DAY_ABBREVIATIONS.get(entry.day, str(entry.day)),
                    entry.period_label,
                    entry.course_id,
                    entry.teacher_id,
                    entry.room_id,
                    entry.kind,
                    entry.cohort_key,
                ]
            )
        return buffer.getvalue()

    cells: dict[SlotKey, list[str]] = defaultdict(list)
    for entry in entries:
        cells[entry.slot].append(entry_cell(entry))

    writer.writerow(["Day", *grid.labels])
    for day in grid.days:
        row = [DAY_ABBREVIATIONS[day]]
        for period in grid.periods:
            occupants = cells.get(SlotKey(day, period))
            row.append(SHARED_CELL_SEPARATOR.join(occupants) if occupants else empty_marker)
        writer.writerow(row)
    return buffer.getvalue()


def next_occurrence(reference: date, day_index: int) -> date:
    """First date on or after ``reference`` falling on ISO weekday ``day_index``."""
    return reference + timedelta(days=(day_index - reference.isoweekday()) % 7)


def _escape_text(value: str) -> str:
    return (
        value.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\n", "\\n")
    )


def _fold(line: str) -> list[str]:
    """Split a content line into 75-octet pieces; continuations start with a space."""
    pieces: list[str] = []
    current = ""
    for char in line:
        # Never split a multi-byte UTF-8 sequence.
        if len((current + char).encode("utf-8")) > ICS_LINE_OCTETS:
            pieces.append(current)
            current = " "
        current += char
    pieces.append(current)
    return pieces


def _format_local(value: datetime) -> str:
    return value.strftime("%Y%m%dT%H%M%S")


def export_ics(
    entries: Sequence[TimetableEntry],
    grid: SlotGrid,
    *,
    reference_date: date | None = None,
    period_start_times: Mapping[str, str] | None = None,
    product_id: str = DEFAULT_PRODUCT_ID,
    now: datetime | None = None,
) -> str:
    """Render entries as an iCalendar document with one VEVENT per entry.

    Period start times default to the grid's own; ``period_start_times``
    overrides individual periods (``{"P1": "08:30"}``).
    """
    ensure_on_grid(entries, grid)
    start_times = {**grid.period_start_times(), **(period_start_times or {})}
    reference = reference_date or date.today()
    stamp = (now or datetime.now(timezone.utc)).astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{product_id}",
        "CALSCALE:GREGORIAN",
    ]

    for index, entry in enumerate(entries):
        label = period_label(entry.period)
        day = next_occurrence(reference, entry.day)
        starts_at = datetime(day.year, day.month, day.day) + timedelta(minutes=parse_time_to_minutes(start_times[label]))
        ends_at = starts_at + timedelta(minutes=grid.period_minutes)
        uid = f"{entry.token_id or entry.course_id}-{index}-{entry.day}-{label}@slotforge"
        lines.extend(
            [
                "BEGIN:VEVENT",
                f"UID:{_escape_text(uid)}",
                f"DTSTAMP:{stamp}",
                f"DTSTART:{_format_local(starts_at)}",
                f"DTEND:{_format_local(ends_at)}",
                f"SUMMARY:{_escape_text(f'{entry.course_id} - {entry.kind}')}",
                f"LOCATION:{_escape_text(entry.room_id)}",
                f"DESCRIPTION:{_escape_text(f'Teacher: {entry.teacher_id}')}",
                "END:VEVENT",
            ]
        )

    lines.append("END:VCALENDAR")
    folded = [piece for line in lines for piece in _fold(line)]
    return "\r\n".join(folded) + "\r\n"
