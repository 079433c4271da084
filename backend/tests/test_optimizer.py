import random

from slotforge.schemas.generator import SoftCostWeights
from slotforge.services.entries import TimetableEntry
from slotforge.services.optimizer import optimize_timetable, soft_cost, swap_placements, teacher_gap_count
from slotforge.services.validity import is_schedule_valid


def _entry(course, teacher, room, day, period, kind="lecture", cohort=None):
    return TimetableEntry(course, teacher, room, day, period, kind, cohort or f"cohort-{course}", f"{course}_{day}_{period}")


def test_soft_cost_terms():
    entries = [_entry("A", "T1", "R1", 1, 1), _entry("B", "T1", "R1", 1, 2)]
    # two teacher slots + one unused room
    assert soft_cost(entries, ["R1", "R2"]) == 2 * 1 + 5 * 1

    labs = [_entry(f"L{i}", "T1", "LAB", 1, i, kind="practical") for i in range(1, 5)]
    assert soft_cost(labs, ["LAB"]) == 4 + 2 * 2


def test_teacher_gap_count_and_weight():
    entries = [_entry("A", "T1", "R1", 1, 1), _entry("B", "T1", "R1", 1, 4), _entry("C", "T1", "R1", 2, 1)]
    assert teacher_gap_count(entries) == 2
    assert soft_cost(entries, ["R1"], SoftCostWeights(teacher_gap=10)) == 3 + 20


def test_swap_exchanges_room_and_slot_only():
    first = _entry("A", "T1", "R1", 1, 1)
    second = _entry("B", "T2", "R2", 3, 5)
    moved_first, moved_second = swap_placements(first, second)

    assert (moved_first.course_id, moved_first.teacher_id) == ("A", "T1")
    assert (moved_first.room_id, moved_first.day, moved_first.period) == ("R2", 3, 5)
    assert (moved_second.room_id, moved_second.day, moved_second.period) == ("R1", 1, 1)


def test_optimizer_closes_teacher_gaps():
    entries = [_entry("A", "T1", "R1", 1, 1), _entry("B", "T1", "R1", 1, 3), _entry("C", "T2", "R1", 1, 2)]
    result = optimize_timetable(
        entries,
        200,
        rng=random.Random(7),
        room_ids=["R1"],
        weights=SoftCostWeights(teacher_gap=10),
    )

    assert result.final_cost < result.initial_cost
    assert result.accepted_swaps >= 1
    assert teacher_gap_count(result.entries) == 0
    assert is_schedule_valid(result.entries)
    assert sorted(entry.course_id for entry in result.entries) == ["A", "B", "C"]


def test_optimizer_never_regresses_and_is_deterministic():
    entries = [_entry(f"C{i}", f"T{i % 3}", f"R{i % 2}", 1 + i % 5, 1 + i // 5) for i in range(12)]
    assert is_schedule_valid(entries)

    first = optimize_timetable(entries, 500, rng=random.Random(3), room_ids=["R0", "R1", "R2"])
    second = optimize_timetable(entries, 500, rng=random.Random(3), room_ids=["R0", "R1", "R2"])

    assert first.final_cost <= first.initial_cost
    assert is_schedule_valid(first.entries)
    assert first.entries == second.entries


def test_rejected_swaps_leave_entries_untouched():
    entries = [_entry("A", "T1", "R1", 1, 1), _entry("B", "T1", "R1", 1, 3), _entry("C", "T2", "R1", 1, 2)]
    result = optimize_timetable(
        entries,
        200,
        rng=random.Random(7),
        room_ids=["R1"],
        weights=SoftCostWeights(teacher_gap=10),
        is_swap_allowed=lambda first, second, candidate: False,
    )
    assert result.entries == entries
    assert result.accepted_swaps == 0


def test_tiny_inputs_are_returned_unchanged():
    single = [_entry("A", "T1", "R1", 1, 1)]
    result = optimize_timetable(single, 100, rng=random.Random(1), room_ids=["R1"])
    assert result.entries == single
    assert result.final_cost == result.initial_cost

    assert optimize_timetable([], 100, rng=random.Random(1), room_ids=[]).entries == []
