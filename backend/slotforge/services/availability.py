from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from slotforge.services.grid import SlotGrid, SlotKey

logger = logging.getLogger(__name__)

AVAILABILITY_DAYS = {
    "Mon": 1,
    "Tue": 2,
    "Wed": 3,
    "Thu": 4,
    "Fri": 5,
    "Sat": 6,
}

CLAUSE_PATTERN = re.compile(
    r"^(?P<day>[A-Za-z]+)\s+(?P<start_h>\d{1,2})(?::(?P<start_m>[0-5]\d))?"
    r"\s*-\s*(?P<end_h>\d{1,2})(?::(?P<end_m>[0-5]\d))?$"
)


@dataclass(frozen=True)
class Availability:
    """Slots a teacher may be booked in.

    An unrestricted availability admits every slot. A restricted one admits
    only ``slots``, which may be empty when the stated windows miss the
    working week entirely.
    """

    restricted: bool
    slots: frozenset[SlotKey] = frozenset()

    def allows(self, slot: SlotKey) -> bool:
        return not self.restricted or slot in self.slots


UNRESTRICTED = Availability(restricted=False)


def parse_availability(raw: str | None, grid: SlotGrid, *, owner: str = "") -> tuple[Availability, list[str]]:
    """Turn ``"Mon 9-12, Tue 9-17"`` into the bookable slot set.

    A period counts as available when its whole [start, end) interval sits
    inside one of the stated windows. Unknown days are skipped; clauses that
    do not parse are skipped and reported back as warnings.
    """
    if raw is None or not raw.strip():
        return UNRESTRICTED, []

    warnings: list[str] = []
    slots: set[SlotKey] = set()
    matched_any = False

    for clause in raw.split(","):
        text = clause.strip()
        if not text:
            continue
        match = CLAUSE_PATTERN.match(text)
        if match is None:
            warnings.append(f"Teacher {owner}: ignored malformed availability clause {text!r}")
            continue
        start = int(match["start_h"]) * 60 + int(match["start_m"] or 0)
        end = int(match["end_h"]) * 60 + int(match["end_m"] or 0)
        if end <= start or end > 24 * 60:
            warnings.append(f"Teacher {owner}: ignored availability clause with invalid hours {text!r}")
            continue
        matched_any = True

        day = AVAILABILITY_DAYS.get(match["day"].title())
        if day is None or day not in grid.days:
            logger.debug("Availability clause skipped | teacher=%s clause=%s", owner, text)
            continue
        slots.update(SlotKey(day, period) for period in grid.periods_within(start, end))

    if not matched_any:
        warnings.append(f"Teacher {owner}: availability {raw!r} has no usable clause; treating as fully available")
        return UNRESTRICTED, warnings
    return Availability(restricted=True, slots=frozenset(slots)), warnings
