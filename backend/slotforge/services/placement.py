from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Mapping

from slotforge.schemas.room import RoomInput, RoomType
from slotforge.schemas.settings import SchedulingPreferences
from slotforge.schemas.teacher import TeacherInput
from slotforge.services.availability import UNRESTRICTED, Availability
from slotforge.services.entries import TimetableEntry
from slotforge.services.grid import SlotGrid, SlotKey
from slotforge.services.occupancy import OccupancyState
from slotforge.services.sessions import SessionToken

logger = logging.getLogger(__name__)

LOAD_BALANCE_BASE = 100
BACK_TO_BACK_LAB_PENALTY = 10

REASON_NO_TEACHER = "no_teacher"
REASON_NO_ROOM = "no_suitable_room"
REASON_NO_SLOT = "no_available_slot"
REASON_EXHAUSTED = "slots_exhausted"


@dataclass(frozen=True)
class PlacementContext:
    """Read-only rules shared by every placement phase of one run."""

    grid: SlotGrid
    rooms: tuple[RoomInput, ...]
    teachers: Mapping[str, TeacherInput] = field(default_factory=dict)
    availability: Mapping[str, Availability] = field(default_factory=dict)
    blocked_slots: frozenset[SlotKey] = frozenset()
    lunch_periods: frozenset[int] = frozenset()
    department_lunch_periods: Mapping[str, frozenset[int]] = field(default_factory=dict)
    preferences: SchedulingPreferences = field(default_factory=SchedulingPreferences)
    max_daily_periods_per_teacher: int | None = None

    @staticmethod
    def room_suits(room: RoomInput, *, practical: bool, demand: int) -> bool:
        if practical != (room.room_type == RoomType.lab):
            return False
        return room.capacity >= demand

    def candidate_rooms(self, token: SessionToken) -> list[RoomInput]:
        return [
            room
            for room in self.rooms
            if self.room_suits(room, practical=token.is_practical, demand=token.demand)
        ]

    def teacher_availability(self, teacher_id: str | None) -> Availability:
        if teacher_id is None:
            return UNRESTRICTED
        return self.availability.get(teacher_id, UNRESTRICTED)

    def slot_allowed(self, token: SessionToken, slot: SlotKey) -> bool:
        """Checks that do not depend on what is already booked."""
        if slot in self.blocked_slots or slot.period in self.lunch_periods:
            return False
        if slot.period in self.department_lunch_periods.get(token.department, ()):
            return False
        return self.teacher_availability(token.teacher_id).allows(slot)

    def within_workload(self, teacher_id: str, slot: SlotKey, state: OccupancyState) -> bool:
        if not self.preferences.enforce_teacher_workload:
            return True
        teacher = self.teachers.get(teacher_id)
        if teacher is None:
            return True
        if state.teacher_load(teacher_id) >= teacher.weekly_workload:
            return False
        daily_cap = teacher.max_daily or self.max_daily_periods_per_teacher
        if daily_cap is not None and state.teacher_day_load(teacher_id, slot.day) >= daily_cap:
            return False
        return True

    def eligible_slots(self, token: SessionToken, state: OccupancyState) -> list[SlotKey]:
        return [
            slot
            for slot in self.grid.slots
            if self.slot_allowed(token, slot)
            and state.cohort_free(token.cohort_key, slot)
            and self.within_workload(token.teacher_id or "", slot, state)
        ]

    def entry_allowed(self, entry: TimetableEntry, token: SessionToken, room: RoomInput | None) -> bool:
        """Per-entry hard rules for an entry moved to a new room and slot."""
        if room is None or not self.room_suits(room, practical=token.is_practical, demand=token.demand):
            return False
        return entry.slot in self.grid and self.slot_allowed(token, entry.slot)


@dataclass
class PlacementResult:
    entries: list[TimetableEntry]
    unassigned: list[SessionToken]
    state: OccupancyState


def score_slot(context: PlacementContext, token: SessionToken, slot: SlotKey, state: OccupancyState) -> int:
    teacher_id = token.teacher_id or ""
    score = LOAD_BALANCE_BASE - state.teacher_load(teacher_id)
    preferences = context.preferences
    if preferences.prefer_morning_theory and token.kind == "lecture":
        score += context.grid.period_count - slot.period
    if preferences.balance_daily_workload:
        score -= state.teacher_day_load(teacher_id, slot.day)
    if preferences.avoid_back_to_back_labs and token.is_practical:
        for neighbour in (slot.period - 1, slot.period + 1):
            if state.teacher_has_practical_at(teacher_id, SlotKey(slot.day, neighbour)):
                score -= BACK_TO_BACK_LAB_PENALTY
    return score


def try_place(
    token: SessionToken,
    slots: Iterable[SlotKey],
    rooms: list[RoomInput],
    state: OccupancyState,
) -> TimetableEntry | None:
    """Book the first (slot, room) pair free for teacher, room and cohort."""
    teacher_id = token.teacher_id or ""
    for slot in slots:
        if not state.teacher_free(teacher_id, slot) or not state.cohort_free(token.cohort_key, slot):
            continue
        for room in rooms:
            if not state.room_free(room.id, slot):
                continue
            entry = TimetableEntry.from_token(token, slot, room.id)
            state.occupy(entry)
            return entry
    return None


def place_greedy(
    context: PlacementContext,
    tokens: Iterable[SessionToken],
    state: OccupancyState | None = None,
) -> PlacementResult:
    """First pass: place tokens in the given order on their best-scored slot."""
    state = state or OccupancyState()
    entries: list[TimetableEntry] = []
    unassigned: list[SessionToken] = []

    for token in tokens:
        if token.teacher_id is None:
            unassigned.append(token)
            continue
        rooms = context.candidate_rooms(token)
        if not rooms:
            logger.debug("Greedy placement skipped | token=%s reason=%s", token.token_id, REASON_NO_ROOM)
            unassigned.append(token)
            continue
        candidates = context.eligible_slots(token, state)
        # Stable sort keeps the day-major order among equal scores.
        ranked = sorted(candidates, key=lambda slot: score_slot(context, token, slot, state), reverse=True)
        entry = try_place(token, ranked, rooms, state)
        if entry is None:
            logger.debug("Greedy placement failed | token=%s candidates=%s", token.token_id, len(ranked))
            unassigned.append(token)
            continue
        entries.append(entry)

    logger.info("Greedy placement complete | placed=%s unassigned=%s", len(entries), len(unassigned))
    return PlacementResult(entries=entries, unassigned=unassigned, state=state)


def diagnose_unassigned(context: PlacementContext, token: SessionToken) -> str:
    if token.teacher_id is None:
        return REASON_NO_TEACHER
    if not context.candidate_rooms(token):
        return REASON_NO_ROOM
    if not any(context.slot_allowed(token, slot) for slot in context.grid.slots):
        return REASON_NO_SLOT
    return REASON_EXHAUSTED
