from __future__ import annotations

from collections import Counter, defaultdict
from typing import Mapping, Sequence

from slotforge.schemas.conflict import ConflictDetail, ConflictReport
from slotforge.schemas.room import RoomInput, RoomType
from slotforge.services.entries import TimetableEntry
from slotforge.services.grid import SlotGrid, SlotKey, format_slot_key


def is_schedule_valid(entries: Sequence[TimetableEntry]) -> bool:
    """True when no teacher, room or cohort holds the same slot twice."""
    teacher_map: dict[str, set[SlotKey]] = defaultdict(set)
    room_map: dict[str, set[SlotKey]] = defaultdict(set)
    cohort_map: dict[str, set[SlotKey]] = defaultdict(set)

    for entry in entries:
        slot = entry.slot
        for occupied, owner in (
            (teacher_map, entry.teacher_id),
            (room_map, entry.room_id),
            (cohort_map, entry.cohort_key),
        ):
            if slot in occupied[owner]:
                return False
            occupied[owner].add(slot)
    return True


def detect_conflicts(
    entries: Sequence[TimetableEntry],
    rooms: Mapping[str, RoomInput] | None = None,
    demand_by_course: Mapping[str, int] | None = None,
    grid: SlotGrid | None = None,
) -> ConflictReport:
    rooms = rooms or {}
    demand_by_course = demand_by_course or {}
    conflicts: list[ConflictDetail] = []

    by_resource: dict[tuple[str, str, SlotKey], list[int]] = defaultdict(list)
    for index, entry in enumerate(entries):
        by_resource[("teacher", entry.teacher_id, entry.slot)].append(index)
        by_resource[("room", entry.room_id, entry.slot)].append(index)
        by_resource[("cohort", entry.cohort_key, entry.slot)].append(index)

        if grid is not None and entry.slot not in grid:
            conflicts.append(
                ConflictDetail(
                    id=f"grid-{index}",
                    conflict_type="outside_grid",
                    description=f"{entry.course_id} is booked at {format_slot_key(entry.slot)}, outside the working grid",
                    slot=format_slot_key(entry.slot),
                    affected_entries=[index],
                )
            )

        room = rooms.get(entry.room_id)
        if room is None:
            continue
        slot_text = format_slot_key(entry.slot)
        demand = demand_by_course.get(entry.course_id, 0)
        if room.capacity < demand:
            conflicts.append(
                ConflictDetail(
                    id=f"cap-{index}",
                    conflict_type="room_capacity",
                    description=f"Room {room.id} capacity ({room.capacity}) < students ({demand}) for {entry.course_id}",
                    slot=slot_text,
                    affected_entries=[index],
                )
            )
        if (entry.kind == "practical") != (room.room_type == RoomType.lab):
            conflicts.append(
                ConflictDetail(
                    id=f"type-{index}",
                    conflict_type="room_type",
                    description=f"{entry.kind.title()} session of {entry.course_id} in {room.room_type.value} room {room.id}",
                    slot=slot_text,
                    affected_entries=[index],
                )
            )

    for (resource, owner, slot), indices in by_resource.items():
        if len(indices) < 2:
            continue
        courses = ", ".join(entries[index].course_id for index in indices)
        conflicts.append(
            ConflictDetail(
                id=f"{resource}-{owner}-{format_slot_key(slot)}",
                conflict_type=f"{resource}_conflict",
                description=f"{resource.title()} {owner} double-booked at {format_slot_key(slot)}: {courses}",
                slot=format_slot_key(slot),
                affected_entries=indices,
            )
        )

    counts = Counter(item.conflict_type for item in conflicts)
    return ConflictReport(valid=not conflicts, conflicts=conflicts, conflicts_by_type=dict(counts))
