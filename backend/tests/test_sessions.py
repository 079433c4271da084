import pytest

from conftest import make_course
from slotforge.services.sessions import build_session_tokens, expected_session_counts, parse_split


@pytest.mark.parametrize(
    ("split", "expected"),
    [
        ("2L+1P", (2, 1)),
        ("3L", (3, 0)),
        ("2P", (0, 2)),
        (" 1l + 2p ", (1, 2)),
        ("", (0, 0)),
        (None, (0, 0)),
        ("2X", None),
        ("2L+", None),
        ("L+P", None),
    ],
)
def test_parse_split(split, expected):
    assert parse_split(split) == expected


def test_tokens_follow_priority_order():
    courses = [
        make_course("B", "1L", course_type="elective"),
        make_course("A", "2L+1P", course_type="core"),
        make_course("C", "1L", course_type="major"),
    ]
    tokens, warnings = build_session_tokens(courses)

    assert warnings == []
    assert [token.token_id for token in tokens] == ["A_L1", "A_L2", "A_P1", "C_L1", "B_L1"]
    assert [token.priority for token in tokens] == [1000, 999, 998, 800, 400]
    assert tokens[2].kind == "practical"
    assert tokens[0].cohort_key == "sem:1_yr:1"


def test_demand_breaks_priority_ties_and_input_order_is_stable():
    courses = [
        make_course("SMALL", "1L", max_students=30),
        make_course("BIG", "1L", max_students=60),
        make_course("SMALL2", "1L", max_students=30),
    ]
    tokens, _ = build_session_tokens(courses)
    assert [token.course_id for token in tokens] == ["BIG", "SMALL", "SMALL2"]


def test_malformed_and_empty_splits_produce_warnings():
    courses = [make_course("BAD", "two lectures"), make_course("NONE", "0L"), make_course("OK", "1L")]
    tokens, warnings = build_session_tokens(courses)

    assert [token.course_id for token in tokens] == ["OK"]
    assert len(warnings) == 2
    assert "BAD" in warnings[0]
    assert "NONE" in warnings[1]


def test_course_without_teacher_still_yields_tokens():
    tokens, _ = build_session_tokens([make_course("C1", "2L", teacher_id="  ")])
    assert len(tokens) == 2
    assert all(token.teacher_id is None for token in tokens)


def test_expected_session_counts():
    courses = [make_course("A", "2L+1P"), make_course("B", "oops")]
    assert expected_session_counts(courses) == {"A": 3, "B": 0}
