import pytest
from fastapi.testclient import TestClient #in-process http client, no real server needed

from slotforge.main import app
from slotforge.schemas.course import CourseInput
from slotforge.schemas.generator import GenerationSettings
from slotforge.schemas.room import RoomInput
from slotforge.schemas.settings import TimetableConstraints
from slotforge.schemas.teacher import TeacherInput
from slotforge.services.grid import SlotGrid
from slotforge.services.scheduler import TimetableScheduler


def make_course(course_id: str = "C1", split: str = "2L", teacher_id: str | None = "T1", **overrides) -> CourseInput:
    values = {
        "id": course_id,
        "code": course_id,
        "name": f"Course {course_id}",
        "credits": 3,
        "theory_practical": split,
        "department": "CSE",
        "assigned_teacher_id": teacher_id,
        "max_students": 40,
        "semester": "1",
        "year": 1,
    }
    values.update(overrides)
    return CourseInput(**values)


def make_teacher(teacher_id: str = "T1", **overrides) -> TeacherInput:
    values = {"id": teacher_id, "name": f"Teacher {teacher_id}", "department": "CSE"}
    values.update(overrides)
    return TeacherInput(**values)


def make_room(room_id: str = "R1", capacity: int = 60, room_type: str = "classroom", **overrides) -> RoomInput:
    values = {"id": room_id, "room_number": room_id, "capacity": capacity, "room_type": room_type}
    values.update(overrides)
    return RoomInput(**values)


@pytest.fixture()
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def default_grid() -> SlotGrid:
    # Mon-Fri, 09:00-17:00, 60 minute periods: 8 periods a day.
    return SlotGrid.from_constraints(TimetableConstraints())


@pytest.fixture()
def build_scheduler():
    def _build(courses, teachers, rooms, constraints=None, **settings) -> TimetableScheduler:
        settings.setdefault("random_seed", 42)
        return TimetableScheduler(
            courses=courses,
            teachers=teachers,
            rooms=rooms,
            constraints=constraints or TimetableConstraints(),
            settings=GenerationSettings(**settings),
        )

    return _build


@pytest.fixture()
def snapshot_payload() -> dict:
    return {
        "courses": [
            {"id": "CS101", "code": "CS101", "theory_practical": "2L+1P", "assigned_teacher_id": "T1",
             "max_students": 40, "semester": 1, "year": 1, "course_type": "core"},
            {"id": "MA101", "code": "MA101", "theory_practical": "3L", "assigned_teacher_id": "T2",
             "max_students": 40, "semester": 1, "year": 1, "course_type": "major"},
        ],
        "teachers": [
            {"id": "T1", "name": "Ada", "weekly_workload": 10},
            {"id": "T2", "name": "Grace", "availability_raw": "Mon 9-12, Wed 9-17"},
        ],
        "rooms": [
            {"id": "R1", "room_number": "101", "capacity": 60, "room_type": "classroom"},
            {"id": "L1", "room_number": "Lab 1", "capacity": 45, "room_type": "lab"},
        ],
        "constraints": {"working_days": [1, 2, 3], "max_periods_per_day": 6},
        "settings": {"random_seed": 7, "optimizer_iterations": 300},
    }
