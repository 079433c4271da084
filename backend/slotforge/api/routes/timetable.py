from __future__ import annotations

import logging

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from slotforge.schemas.conflict import ConflictReport
from slotforge.schemas.generator import (
    ExportCsvRequest,
    ExportIcsRequest,
    GenerateTimetableRequest,
    GenerateTimetableResponse,
    ScheduleEntriesRequest,
    SchedulingSnapshot,
    TimetableEntryOut,
    UnassignedSessionOut,
)
from slotforge.services.entries import TimetableEntry
from slotforge.services.grid import SlotGrid, parse_period_label
from slotforge.services.scheduler import TimetableScheduler, UnassignedSession
from slotforge.services.validity import detect_conflicts

router = APIRouter()
logger = logging.getLogger(__name__)


def to_entry_out(entry: TimetableEntry) -> TimetableEntryOut:
    return TimetableEntryOut(
        course_id=entry.course_id,
        teacher_id=entry.teacher_id,
        room_id=entry.room_id,
        day=entry.day,
        period=entry.period_label,
        session_type=entry.kind,
        cohort_key=entry.cohort_key,
        token_id=entry.token_id,
    )


def from_entry_out(entry: TimetableEntryOut) -> TimetableEntry:
    return TimetableEntry(
        course_id=entry.course_id,
        teacher_id=entry.teacher_id,
        room_id=entry.room_id,
        day=entry.day,
        period=parse_period_label(entry.period),
        kind=entry.session_type,
        cohort_key=entry.cohort_key,
        token_id=entry.token_id,
    )


def to_unassigned_out(item: UnassignedSession) -> UnassignedSessionOut:
    token = item.token
    return UnassignedSessionOut(
        token_id=token.token_id,
        course_id=token.course_id,
        teacher_id=token.teacher_id,
        session_type=token.kind,
        cohort_key=token.cohort_key,
        demand=token.demand,
        priority=token.priority,
        reason=item.reason,
    )


def _scheduler_for(payload: SchedulingSnapshot) -> TimetableScheduler:
    return TimetableScheduler(
        courses=payload.courses,
        teachers=payload.teachers,
        rooms=payload.rooms,
        constraints=payload.constraints,
    )


@router.post("/generate", response_model=GenerateTimetableResponse)
def generate_timetable(payload: GenerateTimetableRequest) -> GenerateTimetableResponse:
    logger.info(
        "TIMETABLE GENERATION START | courses=%s teachers=%s rooms=%s optimize=%s",
        len(payload.courses),
        len(payload.teachers),
        len(payload.rooms),
        payload.settings.optimize,
    )
    scheduler = TimetableScheduler(
        courses=payload.courses,
        teachers=payload.teachers,
        rooms=payload.rooms,
        constraints=payload.constraints,
        settings=payload.settings,
    )
    result = scheduler.run()
    return GenerateTimetableResponse(
        entries=[to_entry_out(entry) for entry in result.entries],
        unassigned=[to_unassigned_out(item) for item in result.unassigned],
        warnings=result.warnings,
        valid=result.valid,
        soft_cost=result.soft_cost,
        baseline_soft_cost=result.baseline_soft_cost,
        statistics=result.statistics,
        random_seed=result.random_seed,
        runtime_ms=result.runtime_ms,
    )


@router.post("/validate", response_model=ConflictReport)
def validate_timetable(payload: ScheduleEntriesRequest) -> ConflictReport:
    entries = [from_entry_out(item) for item in payload.entries]
    report = detect_conflicts(
        entries,
        rooms={room.id: room for room in payload.rooms},
        demand_by_course={course.id: course.max_students for course in payload.courses},
        grid=SlotGrid.from_constraints(payload.constraints),
    )
    logger.info(
        "TIMETABLE VALIDATION | entries=%s conflicts=%s valid=%s",
        len(entries),
        len(report.conflicts),
        report.valid,
    )
    return report


@router.post("/export/csv", response_class=PlainTextResponse)
def export_timetable_csv(payload: ExportCsvRequest) -> PlainTextResponse:
    scheduler = _scheduler_for(payload)
    body = scheduler.export_csv([from_entry_out(item) for item in payload.entries], layout=payload.layout)
    return PlainTextResponse(
        body,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="timetable.csv"'},
    )


@router.post("/export/ics", response_class=PlainTextResponse)
def export_timetable_ics(payload: ExportIcsRequest) -> PlainTextResponse:
    scheduler = _scheduler_for(payload)
    body = scheduler.export_ics(
        [from_entry_out(item) for item in payload.entries],
        reference_date=payload.reference_date,
        period_start_times=payload.period_start_times,
    )
    return PlainTextResponse(
        body,
        media_type="text/calendar",
        headers={"Content-Disposition": 'attachment; filename="timetable.ics"'},
    )
