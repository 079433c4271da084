from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Literal

from slotforge.schemas.course import CourseCategory, CourseInput

logger = logging.getLogger(__name__)

SessionKind = Literal["lecture", "practical"]

SPLIT_PART_PATTERN = re.compile(r"^\s*(\d+)\s*([LP])\s*$", re.IGNORECASE)

CATEGORY_PRIORITY = {
    CourseCategory.core: 1000,
    CourseCategory.major: 800,
}
DEFAULT_PRIORITY = 400


@dataclass(frozen=True)
class SessionToken:
    token_id: str
    course_id: str
    teacher_id: str | None
    kind: SessionKind
    cohort_key: str
    department: str
    demand: int
    priority: int

    @property
    def is_practical(self) -> bool:
        return self.kind == "practical"


def parse_split(split: str | None) -> tuple[int, int] | None:
    """Return ``(lectures, practicals)`` for ``"2L+1P"``, ``"3L"`` or ``"2P"``.

    ``None`` means the string is malformed.
    """
    if split is None or not split.strip():
        return 0, 0
    lectures = 0
    practicals = 0
    for part in split.split("+"):
        match = SPLIT_PART_PATTERN.match(part)
        if match is None:
            return None
        count = int(match.group(1))
        if match.group(2).upper() == "L":
            lectures = count
        else:
            practicals = count
    return lectures, practicals


def base_priority(category: CourseCategory) -> int:
    return CATEGORY_PRIORITY.get(category, DEFAULT_PRIORITY)


def expand_course(course: CourseInput, lectures: int, practicals: int) -> list[SessionToken]:
    priority = base_priority(course.course_type)
    tokens: list[SessionToken] = []
    for index in range(lectures):
        tokens.append(
            SessionToken(
                token_id=f"{course.id}_L{index + 1}",
                course_id=course.id,
                teacher_id=course.assigned_teacher_id,
                kind="lecture",
                cohort_key=course.cohort_key,
                department=course.department,
                demand=course.max_students,
                priority=priority - index,
            )
        )
    for index in range(practicals):
        tokens.append(
            SessionToken(
                token_id=f"{course.id}_P{index + 1}",
                course_id=course.id,
                teacher_id=course.assigned_teacher_id,
                kind="practical",
                cohort_key=course.cohort_key,
                department=course.department,
                demand=course.max_students,
                priority=priority - lectures - index,
            )
        )
    return tokens


def build_session_tokens(courses: Iterable[CourseInput]) -> tuple[list[SessionToken], list[str]]:
    """Expand every course into session tokens, highest priority first."""
    tokens: list[SessionToken] = []
    warnings: list[str] = []
    for course in courses:
        parsed = parse_split(course.theory_practical)
        if parsed is None:
            warnings.append(
                f"Course {course.code}: malformed theory/practical split {course.theory_practical!r}; no sessions created"
            )
            continue
        lectures, practicals = parsed
        if lectures + practicals == 0:
            warnings.append(f"Course {course.code}: theory/practical split {course.theory_practical!r} yields no sessions")
            continue
        tokens.extend(expand_course(course, lectures, practicals))

    # Stable sort: equal keys keep course input order.
    tokens.sort(key=lambda token: (token.priority, token.demand), reverse=True)
    for message in warnings:
        logger.warning(message)
    logger.info("Session tokens built | courses_with_sessions=%s tokens=%s", len({t.course_id for t in tokens}), len(tokens))
    return tokens, warnings


def expected_session_counts(courses: Iterable[CourseInput]) -> dict[str, int]:
    counts: dict[str, int] = {}
    for course in courses:
        parsed = parse_split(course.theory_practical) or (0, 0)
        counts[course.id] = parsed[0] + parsed[1]
    return counts
