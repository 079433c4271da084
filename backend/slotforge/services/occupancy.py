from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Iterable

from slotforge.services.entries import TimetableEntry
from slotforge.services.grid import SlotKey


@dataclass
class OccupancyState:
    """Slots already consumed by each teacher, room and cohort during one run."""

    teacher_slots: dict[str, set[SlotKey]] = field(default_factory=lambda: defaultdict(set))
    room_slots: dict[str, set[SlotKey]] = field(default_factory=lambda: defaultdict(set))
    cohort_slots: dict[str, set[SlotKey]] = field(default_factory=lambda: defaultdict(set))
    teacher_practical_slots: dict[str, set[SlotKey]] = field(default_factory=lambda: defaultdict(set))

    @classmethod
    def from_entries(cls, entries: Iterable[TimetableEntry]) -> "OccupancyState":
        state = cls()
        for entry in entries:
            state.occupy(entry)
        return state

    def teacher_free(self, teacher_id: str, slot: SlotKey) -> bool:
        return slot not in self.teacher_slots.get(teacher_id, ())

    def room_free(self, room_id: str, slot: SlotKey) -> bool:
        return slot not in self.room_slots.get(room_id, ())

    def cohort_free(self, cohort_key: str, slot: SlotKey) -> bool:
        return slot not in self.cohort_slots.get(cohort_key, ())

    def is_free(self, *, teacher_id: str, room_id: str, cohort_key: str, slot: SlotKey) -> bool:
        return (
            self.teacher_free(teacher_id, slot)
            and self.room_free(room_id, slot)
            and self.cohort_free(cohort_key, slot)
        )

    def teacher_load(self, teacher_id: str) -> int:
        return len(self.teacher_slots.get(teacher_id, ()))

    def teacher_day_load(self, teacher_id: str, day: int) -> int:
        return sum(1 for slot in self.teacher_slots.get(teacher_id, ()) if slot.day == day)

    def teacher_has_practical_at(self, teacher_id: str, slot: SlotKey) -> bool:
        return slot in self.teacher_practical_slots.get(teacher_id, ())

    def occupy(self, entry: TimetableEntry) -> None:
        slot = entry.slot
        self.teacher_slots[entry.teacher_id].add(slot)
        self.room_slots[entry.room_id].add(slot)
        self.cohort_slots[entry.cohort_key].add(slot)
        if entry.kind == "practical":
            self.teacher_practical_slots[entry.teacher_id].add(slot)
