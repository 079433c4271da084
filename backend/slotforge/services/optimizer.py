from __future__ import annotations

import logging
import random
from collections import Counter, defaultdict
from dataclasses import dataclass, replace
from typing import Callable, Collection, Sequence

from slotforge.schemas.generator import SoftCostWeights
from slotforge.services.entries import TimetableEntry
from slotforge.services.grid import SlotKey
from slotforge.services.validity import is_schedule_valid

logger = logging.getLogger(__name__)

PRACTICALS_PER_TEACHER_LIMIT = 2


@dataclass
class OptimizationResult:
    entries: list[TimetableEntry]
    initial_cost: float
    final_cost: float
    accepted_swaps: int
    iterations: int


def teacher_gap_count(entries: Sequence[TimetableEntry]) -> int:
    """Idle periods between a teacher's first and last session of each day."""
    periods_by_teacher_day: dict[tuple[str, int], list[int]] = defaultdict(list)
    for entry in entries:
        periods_by_teacher_day[(entry.teacher_id, entry.day)].append(entry.period)
    gaps = 0
    for periods in periods_by_teacher_day.values():
        ordered = sorted(set(periods))
        gaps += sum(later - earlier - 1 for earlier, later in zip(ordered, ordered[1:]))
    return gaps


def soft_cost(
    entries: Sequence[TimetableEntry],
    room_ids: Collection[str],
    weights: SoftCostWeights | None = None,
) -> float:
    """Lower is better. Only ranks schedules that are already valid."""
    weights = weights or SoftCostWeights()
    teacher_slots: dict[str, set[SlotKey]] = defaultdict(set)
    practicals: Counter[str] = Counter()
    for entry in entries:
        teacher_slots[entry.teacher_id].add(entry.slot)
        if entry.kind == "practical":
            practicals[entry.teacher_id] += 1

    cost = weights.teacher_slot * sum(len(slots) for slots in teacher_slots.values())
    used_rooms = {entry.room_id for entry in entries}
    cost += weights.unused_room * len(set(room_ids) - used_rooms)
    cost += weights.practical_overload * sum(
        count - PRACTICALS_PER_TEACHER_LIMIT for count in practicals.values() if count > PRACTICALS_PER_TEACHER_LIMIT
    )
    if weights.teacher_gap:
        cost += weights.teacher_gap * teacher_gap_count(entries)
    return cost


def swap_placements(first: TimetableEntry, second: TimetableEntry) -> tuple[TimetableEntry, TimetableEntry]:
    """Exchange room, day and period; course, teacher and kind stay put."""
    return (
        replace(first, room_id=second.room_id, day=second.day, period=second.period),
        replace(second, room_id=first.room_id, day=first.day, period=first.period),
    )


def optimize_timetable(
    entries: Sequence[TimetableEntry],
    iterations: int,
    *,
    rng: random.Random,
    room_ids: Collection[str],
    weights: SoftCostWeights | None = None,
    is_swap_allowed: Callable[[TimetableEntry, TimetableEntry, Sequence[TimetableEntry]], bool] | None = None,
) -> OptimizationResult:
    """Hill-climb over pairwise swaps, keeping only valid strict improvements."""
    best = list(entries)
    best_cost = soft_cost(best, room_ids, weights)
    initial_cost = best_cost
    accepted = 0
    count = len(best)

    if count >= 2:
        for _ in range(max(0, iterations)):
            first_index = rng.randrange(count)
            second_index = rng.randrange(count)
            if first_index == second_index:
                continue
            moved_first, moved_second = swap_placements(best[first_index], best[second_index])
            candidate = list(best)
            candidate[first_index] = moved_first
            candidate[second_index] = moved_second
            if is_swap_allowed is not None and not is_swap_allowed(moved_first, moved_second, candidate):
                continue
            if not is_schedule_valid(candidate):
                continue
            candidate_cost = soft_cost(candidate, room_ids, weights)
            if candidate_cost < best_cost:
                best = candidate
                best_cost = candidate_cost
                accepted += 1

    logger.info(
        "Local search complete | iterations=%s accepted_swaps=%s cost_before=%.1f cost_after=%.1f",
        iterations,
        accepted,
        initial_cost,
        best_cost,
    )
    return OptimizationResult(
        entries=best,
        initial_cost=initial_cost,
        final_cost=best_cost,
        accepted_swaps=accepted,
        iterations=iterations,
    )
