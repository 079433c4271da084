from __future__ import annotations

from dataclasses import dataclass

from slotforge.services.grid import SlotKey, period_label
from slotforge.services.sessions import SessionKind, SessionToken


@dataclass(frozen=True)
class TimetableEntry:
    course_id: str
    teacher_id: str
    room_id: str
    day: int
    period: int
    kind: SessionKind
    cohort_key: str
    token_id: str = ""

    @property
    def slot(self) -> SlotKey:
        return SlotKey(self.day, self.period)

    @property
    def period_label(self) -> str:
        return period_label(self.period)

    @classmethod
    def from_token(cls, token: SessionToken, slot: SlotKey, room_id: str) -> "TimetableEntry":
        return cls(
            course_id=token.course_id,
            teacher_id=token.teacher_id or "",
            room_id=room_id,
            day=slot.day,
            period=slot.period,
            kind=token.kind,
            cohort_key=token.cohort_key,
            token_id=token.token_id,
        )
