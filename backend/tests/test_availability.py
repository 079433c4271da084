from slotforge.schemas.settings import TimetableConstraints
from slotforge.services.availability import UNRESTRICTED, parse_availability
from slotforge.services.grid import SlotGrid, SlotKey


def test_blank_availability_is_unrestricted(default_grid):
    for raw in (None, "", "   "):
        availability, warnings = parse_availability(raw, default_grid, owner="T1")
        assert availability == UNRESTRICTED
        assert warnings == []
        assert availability.allows(SlotKey(5, 8))


def test_whole_hour_window_maps_to_contained_periods(default_grid):
    availability, warnings = parse_availability("Mon 9-12", default_grid, owner="T1")

    assert warnings == []
    assert availability.restricted
    assert availability.slots == {SlotKey(1, 1), SlotKey(1, 2), SlotKey(1, 3)}
    assert not availability.allows(SlotKey(1, 4))
    assert not availability.allows(SlotKey(2, 1))


def test_partial_period_overlap_is_not_available(default_grid):
    availability, _ = parse_availability("Mon 9:30-12", default_grid)
    assert availability.slots == {SlotKey(1, 2), SlotKey(1, 3)}


def test_multiple_clauses_are_unioned(default_grid):
    availability, _ = parse_availability("Mon 9-10, Wed 15-17", default_grid)
    assert availability.slots == {SlotKey(1, 1), SlotKey(3, 7), SlotKey(3, 8)}


def test_days_outside_working_week_leave_teacher_with_no_slots(default_grid):
    availability, warnings = parse_availability("Sat 9-12", default_grid, owner="T9")

    assert warnings == []
    assert availability.restricted
    assert availability.slots == frozenset()
    assert not availability.allows(SlotKey(1, 1))


def test_saturday_counts_when_it_is_a_working_day():
    grid = SlotGrid.from_constraints(TimetableConstraints(working_days=[1, 6]))
    availability, _ = parse_availability("Sat 9-11", grid)
    assert availability.slots == {SlotKey(6, 1), SlotKey(6, 2)}


def test_malformed_clause_is_skipped_with_warning(default_grid):
    availability, warnings = parse_availability("Mon 9-11, mornings only", default_grid, owner="T1")

    assert availability.slots == {SlotKey(1, 1), SlotKey(1, 2)}
    assert len(warnings) == 1
    assert "mornings only" in warnings[0]


def test_unusable_string_falls_back_to_full_availability(default_grid):
    availability, warnings = parse_availability("whenever", default_grid, owner="T1")

    assert availability == UNRESTRICTED
    assert len(warnings) == 2
    assert "fully available" in warnings[-1]


def test_reversed_window_is_rejected(default_grid):
    availability, warnings = parse_availability("Mon 12-9", default_grid, owner="T1")
    assert availability == UNRESTRICTED
    assert "invalid hours" in warnings[0]
