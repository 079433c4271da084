from __future__ import annotations

import logging
import random
from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from time import perf_counter
from typing import Callable, Iterable, Literal, Mapping, Sequence

from slotforge.core.config import Settings, get_settings
from slotforge.core.exceptions import GenerationCancelledError
from slotforge.schemas.course import CourseInput
from slotforge.schemas.generator import GenerationSettings, GenerationStatistics, SoftCostWeights
from slotforge.schemas.room import RoomInput
from slotforge.schemas.settings import TimetableConstraints
from slotforge.schemas.teacher import TeacherInput
from slotforge.services.availability import Availability, parse_availability
from slotforge.services.entries import TimetableEntry
from slotforge.services.exporters import export_csv, export_ics
from slotforge.services.grid import SlotGrid, SlotKey, parse_period_label, parse_slot_key
from slotforge.services.optimizer import OptimizationResult, optimize_timetable, soft_cost
from slotforge.services.placement import PlacementContext, PlacementResult, diagnose_unassigned, place_greedy
from slotforge.services.resolver import attempt_ceiling, resolve_unassigned
from slotforge.services.sessions import SessionToken, build_session_tokens
from slotforge.services.validity import is_schedule_valid

logger = logging.getLogger(__name__)

# Idle-period weight used when the gap preference is on but no explicit weight was given.
DEFAULT_GAP_WEIGHT = 10.0
MAX_RANDOM_SEED = 2_000_000_000


@dataclass(frozen=True)
class UnassignedSession:
    token: SessionToken
    reason: str


@dataclass
class GenerationResult:
    entries: list[TimetableEntry]
    unassigned: list[UnassignedSession]
    warnings: list[str]
    valid: bool
    soft_cost: float
    baseline_soft_cost: float
    statistics: GenerationStatistics
    random_seed: int
    runtime_ms: int = 0
    phases: list[str] = field(default_factory=list)


class TimetableScheduler:
    """One generation run over an immutable course/teacher/room snapshot.

    All working state (tokens, occupancy, RNG) belongs to the instance, so
    separate instances can run side by side for different cohorts or terms.
    """

    def __init__(
        self,
        *,
        courses: Iterable[CourseInput],
        teachers: Iterable[TeacherInput],
        rooms: Iterable[RoomInput],
        constraints: TimetableConstraints,
        settings: GenerationSettings | None = None,
        app_settings: Settings | None = None,
    ) -> None:
        self.settings = settings or GenerationSettings()
        app_settings = app_settings or get_settings()

        self.random_seed = (
            self.settings.random_seed if self.settings.random_seed is not None else app_settings.default_random_seed
        )
        if self.random_seed is None:
            # Drawn here so the result can report it and the run can be replayed.
            self.random_seed = random.SystemRandom().randrange(MAX_RANDOM_SEED)
        self.random = random.Random(self.random_seed)
        self.optimizer_iterations = (
            self.settings.optimizer_iterations
            if self.settings.optimizer_iterations is not None
            else app_settings.optimizer_iterations
        )
        self.resolve_attempt_floor = app_settings.resolve_max_attempts
        self.ics_product_id = app_settings.ics_product_id

        self.courses = list(courses)
        self.teachers = {teacher.id: teacher for teacher in teachers}
        self.rooms = [room for room in rooms if room.is_available]
        self.room_index = {room.id: room for room in self.rooms}
        self.constraints = constraints
        self.grid = SlotGrid.from_constraints(constraints)
        self.warnings: list[str] = []

        self.availability = self._parse_teacher_availability()
        self.blocked_slots = self._parse_blocked_slots()
        lunch_periods, department_lunch_periods = self._resolve_lunch_periods()
        self.context = PlacementContext(
            grid=self.grid,
            rooms=tuple(self.rooms),
            teachers=self.teachers,
            availability=self.availability,
            blocked_slots=self.blocked_slots,
            lunch_periods=lunch_periods,
            department_lunch_periods=department_lunch_periods,
            preferences=constraints.preferences,
            max_daily_periods_per_teacher=constraints.max_daily_periods_per_teacher,
        )
        self.weights = self._resolve_weights()
        self.demand_by_course = {course.id: course.max_students for course in self.courses}
        self._tokens: list[SessionToken] | None = None
        self._token_index: dict[str, SessionToken] = {}

    def _warn(self, message: str) -> None:
        logger.warning(message)
        self.warnings.append(message)

    def _parse_teacher_availability(self) -> dict[str, Availability]:
        availability: dict[str, Availability] = {}
        for teacher in self.teachers.values():
            parsed, messages = parse_availability(teacher.availability_raw, self.grid, owner=teacher.id)
            for message in messages:
                self._warn(message)
            if parsed.restricted and not parsed.slots:
                self._warn(f"Teacher {teacher.id}: availability {teacher.availability_raw!r} covers no working slot")
            availability[teacher.id] = parsed
        return availability

    def _parse_blocked_slots(self) -> frozenset[SlotKey]:
        blocked: set[SlotKey] = set()
        for raw in self.constraints.blocked_slots:
            try:
                blocked.add(parse_slot_key(raw))
            except ValueError:
                self._warn(f"Ignored unrecognised blocked slot {raw!r}")
        return frozenset(blocked)

    def _resolve_lunch_periods(self) -> tuple[frozenset[int], dict[str, frozenset[int]]]:
        everyone: set[int] = set()
        lunch_break = self.constraints.working_hours.lunch_break
        if lunch_break is not None:
            everyone.update(self.grid.periods_overlapping(lunch_break.start_minutes, lunch_break.end_minutes))

        by_department: dict[str, set[int]] = {}
        for zone in self.constraints.lunch_zones:
            periods = {parse_period_label(label) for label in zone.periods}
            if zone.departments:
                for department in zone.departments:
                    by_department.setdefault(department, set()).update(periods)
            elif zone.mandatory:
                everyone.update(periods)
        return frozenset(everyone), {key: frozenset(value) for key, value in by_department.items()}

    def _resolve_weights(self) -> SoftCostWeights:
        weights = self.settings.soft_cost_weights
        if self.constraints.preferences.avoid_single_period_gaps and not weights.teacher_gap:
            return weights.model_copy(update={"teacher_gap": DEFAULT_GAP_WEIGHT})
        return weights

    def preprocess_sessions(self) -> list[SessionToken]:
        if self._tokens is None:
            tokens, messages = build_session_tokens(self.courses)
            self.warnings.extend(messages)
            for course in self.courses:
                if course.assigned_teacher_id is None:
                    self._warn(f"Course {course.code}: no assigned teacher; its sessions cannot be scheduled")
                elif course.assigned_teacher_id not in self.teachers:
                    self._warn(
                        f"Course {course.code}: teacher {course.assigned_teacher_id} is not in the roster; "
                        "treating them as fully available"
                    )
            self._tokens = tokens
            self._token_index = {token.token_id: token for token in tokens}
        return list(self._tokens)

    def generate_initial_timetable(self) -> PlacementResult:
        return place_greedy(self.context, self.preprocess_sessions())

    def resolve_conflicts(self, initial: PlacementResult) -> PlacementResult:
        max_attempts = self.settings.max_resolve_attempts
        if max_attempts is None:
            max_attempts = attempt_ceiling(len(initial.unassigned), len(self.grid.slots), self.resolve_attempt_floor)
        return resolve_unassigned(self.context, initial.entries, initial.unassigned, max_attempts=max_attempts)

    def _swap_allowed(self, first: TimetableEntry, second: TimetableEntry, candidate: Sequence[TimetableEntry]) -> bool:
        for moved in (first, second):
            token = self._token_index.get(moved.token_id)
            if token is None:
                continue
            if not self.context.entry_allowed(moved, token, self.room_index.get(moved.room_id)):
                return False
        if self.constraints.preferences.enforce_teacher_workload:
            return self._within_daily_caps(candidate, {first.teacher_id, second.teacher_id})
        return True

    def _within_daily_caps(self, entries: Sequence[TimetableEntry], teacher_ids: set[str]) -> bool:
        loads = Counter((entry.teacher_id, entry.day) for entry in entries if entry.teacher_id in teacher_ids)
        for (teacher_id, _day), load in loads.items():
            teacher = self.teachers.get(teacher_id)
            cap = (teacher.max_daily if teacher else None) or self.constraints.max_daily_periods_per_teacher
            if cap is not None and load > cap:
                return False
        return True

    def optimize_timetable(self, entries: Sequence[TimetableEntry], iterations: int | None = None) -> OptimizationResult:
        self.preprocess_sessions()
        return optimize_timetable(
            entries,
            self.optimizer_iterations if iterations is None else iterations,
            rng=self.random,
            room_ids=list(self.room_index),
            weights=self.weights,
            is_swap_allowed=self._swap_allowed,
        )

    def is_schedule_valid(self, entries: Sequence[TimetableEntry]) -> bool:
        return is_schedule_valid(entries)

    def soft_cost(self, entries: Sequence[TimetableEntry]) -> float:
        return soft_cost(entries, list(self.room_index), self.weights)

    def calculate_statistics(
        self,
        entries: Sequence[TimetableEntry],
        *,
        greedy_assigned: int = 0,
        resolved: int = 0,
    ) -> GenerationStatistics:
        teacher_counts = Counter(entry.teacher_id for entry in entries)
        room_counts = Counter(entry.room_id for entry in entries)
        slot_total = len(self.grid.slots)
        teacher_utilization = {}
        for teacher_id, count in teacher_counts.items():
            teacher = self.teachers.get(teacher_id)
            workload = teacher.weekly_workload if teacher else 0
            teacher_utilization[teacher_id] = round(count / workload * 100, 2) if workload else 0.0
        room_utilization = {room_id: round(count / slot_total * 100, 2) for room_id, count in room_counts.items()}
        return GenerationStatistics(
            total_sessions=len(self.preprocess_sessions()),
            assigned_sessions=len(entries),
            greedy_assigned=greedy_assigned,
            resolved_sessions=resolved,
            teacher_utilization=teacher_utilization,
            room_utilization=room_utilization,
        )

    def run(self, should_cancel: Callable[[], bool] | None = None) -> GenerationResult:
        """Greedy placement, conflict resolution, then optional local search.

        ``should_cancel`` is polled only between phases; a truthy answer
        raises :class:`GenerationCancelledError`.
        """
        start = perf_counter()
        logger.info(
            "Scheduler run | courses=%s teachers=%s rooms=%s slots=%s seed=%s",
            len(self.courses),
            len(self.teachers),
            len(self.rooms),
            len(self.grid.slots),
            self.random_seed,
        )
        phases: list[str] = []

        def checkpoint(phase: str) -> None:
            phases.append(phase)
            if should_cancel is not None and should_cancel():
                logger.info("Scheduler run cancelled | phase=%s", phase)
                raise GenerationCancelledError(phase)

        initial = self.generate_initial_timetable()
        checkpoint("greedy_placement")

        resolved = self.resolve_conflicts(initial)
        checkpoint("conflict_resolution")

        entries = resolved.entries
        baseline_cost = self.soft_cost(entries)
        final_cost = baseline_cost
        if self.settings.optimize:
            optimized = self.optimize_timetable(entries)
            entries = optimized.entries
            final_cost = optimized.final_cost
            phases.append("local_search")

        valid = self.is_schedule_valid(entries)
        if not valid:
            logger.error("Generated timetable failed validation | entries=%s", len(entries))

        unassigned = [
            UnassignedSession(token=token, reason=diagnose_unassigned(self.context, token))
            for token in resolved.unassigned
        ]
        statistics = self.calculate_statistics(
            entries,
            greedy_assigned=len(initial.entries),
            resolved=len(resolved.entries) - len(initial.entries),
        )
        runtime_ms = int((perf_counter() - start) * 1000)
        logger.info(
            "Scheduler run complete | assigned=%s unassigned=%s cost=%.1f runtime_ms=%s",
            len(entries),
            len(unassigned),
            final_cost,
            runtime_ms,
        )
        return GenerationResult(
            entries=entries,
            unassigned=unassigned,
            warnings=list(self.warnings),
            valid=valid,
            soft_cost=final_cost,
            baseline_soft_cost=baseline_cost,
            statistics=statistics,
            random_seed=self.random_seed,
            runtime_ms=runtime_ms,
            phases=phases,
        )

    def export_csv(self, entries: Sequence[TimetableEntry], layout: Literal["grid", "list"] = "grid") -> str:
        return export_csv(entries, self.grid, layout=layout)

    def export_ics(
        self,
        entries: Sequence[TimetableEntry],
        reference_date: date | None = None,
        period_start_times: Mapping[str, str] | None = None,
    ) -> str:
        return export_ics(
            entries,
            self.grid,
            reference_date=reference_date,
            period_start_times=period_start_times,
            product_id=self.ics_product_id,
        )
