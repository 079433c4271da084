from conftest import make_course, make_room
from slotforge.schemas.settings import TimetableConstraints
from slotforge.services.entries import TimetableEntry
from slotforge.services.grid import SlotGrid, SlotKey
from slotforge.services.placement import PlacementContext
from slotforge.services.resolver import attempt_ceiling, resolve_unassigned
from slotforge.services.sessions import build_session_tokens
from slotforge.services.validity import is_schedule_valid


def _context(rooms, constraints=None) -> PlacementContext:
    grid = SlotGrid.from_constraints(constraints or TimetableConstraints())
    return PlacementContext(grid=grid, rooms=tuple(rooms))


def test_attempt_ceiling_scales_with_problem_size():
    assert attempt_ceiling(3, 40) == 5000
    assert attempt_ceiling(200, 40, 10) == 8001
    assert attempt_ceiling(0, 40) == 5000


def test_resolver_places_with_first_fit():
    tokens, _ = build_session_tokens([make_course("C1", "1L")])
    result = resolve_unassigned(_context([make_room("R1")]), [], tokens)

    assert result.unassigned == []
    assert result.entries[0].slot == SlotKey(1, 1)


def test_resolver_rebuilds_occupancy_from_existing_entries():
    existing = TimetableEntry("X", "T1", "R1", 1, 1, "lecture", "sem:9_yr:9", "X_L1")
    tokens, _ = build_session_tokens([make_course("C1", "1L", teacher_id="T1")])
    result = resolve_unassigned(_context([make_room("R1")]), [existing], tokens)

    assert result.entries[0] == existing
    assert result.entries[1].slot == SlotKey(1, 2)
    assert is_schedule_valid(result.entries)


def test_unplaceable_tokens_stay_queued_and_loop_terminates():
    tokens, _ = build_session_tokens(
        [make_course("BIG", "2L", max_students=500), make_course("NOBODY", "1L", teacher_id=None)]
    )
    result = resolve_unassigned(_context([make_room("R1")]), [], tokens, max_attempts=10_000_000)

    assert result.entries == []
    assert sorted(token.token_id for token in result.unassigned) == ["BIG_L1", "BIG_L2", "NOBODY_L1"]


def test_zero_attempts_places_nothing():
    tokens, _ = build_session_tokens([make_course("C1", "1L")])
    result = resolve_unassigned(_context([make_room("R1")]), [], tokens, max_attempts=0)
    assert result.entries == []
    assert len(result.unassigned) == 1


def test_overflow_is_bounded_by_available_slots():
    constraints = TimetableConstraints(working_days=[1], max_periods_per_day=2)
    tokens, _ = build_session_tokens([make_course("C1", "3L")])
    result = resolve_unassigned(_context([make_room("R1")], constraints), [], tokens)

    assert len(result.entries) == 2
    assert [token.token_id for token in result.unassigned] == ["C1_L3"]
