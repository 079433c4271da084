from __future__ import annotations

import logging
from collections import deque
from typing import Iterable

from slotforge.services.entries import TimetableEntry
from slotforge.services.occupancy import OccupancyState
from slotforge.services.placement import PlacementContext, PlacementResult, try_place
from slotforge.services.sessions import SessionToken

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 5000


def attempt_ceiling(unassigned_count: int, slot_count: int, configured: int | None = None) -> int:
    return max(configured or DEFAULT_MAX_ATTEMPTS, unassigned_count * slot_count + 1)


def resolve_unassigned(
    context: PlacementContext,
    entries: Iterable[TimetableEntry],
    unassigned: Iterable[SessionToken],
    *,
    max_attempts: int | None = None,
) -> PlacementResult:
    """Retry tokens the greedy pass left behind, first-fit, with bounded retries.

    Occupancy is rebuilt from ``entries`` so the resolver never trusts state
    handed over from an earlier phase. Failed tokens are re-queued at the
    back. A failed attempt books nothing, so once a whole cycle through the
    queue places nothing the remaining tokens cannot succeed either and the
    loop stops early.
    """
    assigned = list(entries)
    state = OccupancyState.from_entries(assigned)
    queue: deque[SessionToken] = deque(unassigned)
    ceiling = max_attempts if max_attempts is not None else attempt_ceiling(len(queue), len(context.grid.slots))

    attempts = 0
    failures_in_a_row = 0
    resolved = 0
    while queue and attempts < ceiling and failures_in_a_row < len(queue):
        attempts += 1
        token = queue.popleft()
        entry = None
        if token.teacher_id is not None:
            rooms = context.candidate_rooms(token)
            if rooms:
                entry = try_place(token, context.eligible_slots(token, state), rooms, state)
        if entry is None:
            queue.append(token)
            failures_in_a_row += 1
            continue
        assigned.append(entry)
        resolved += 1
        failures_in_a_row = 0

    logger.info(
        "Conflict resolution complete | resolved=%s remaining=%s attempts=%s ceiling=%s",
        resolved,
        len(queue),
        attempts,
        ceiling,
    )
    return PlacementResult(entries=assigned, unassigned=list(queue), state=state)
