"""Recurrence: re-arming an expired record for another cycle."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from tick_lifecycle.temporal import Temporal
from tick_lifecycle.types import EventState

if TYPE_CHECKING:
    from tick_lifecycle.temporal import WorldClock
    from tick_lifecycle.types import EventRecord

log = logging.getLogger(__name__)


def _cycle_end(record: EventRecord, clock: WorldClock) -> Temporal:
    # A forced expiry may carry no concrete instant; measure from now then.
    at = record.expiration.at
    return at if isinstance(at, Temporal) else clock.now()


def recurrence_allowed(record: EventRecord, clock: WorldClock) -> bool:
    """Would this expired record come back if re-armed now? Does not mutate.

    The cutoff is checked against the instant the cycle expired, so the
    answer does not depend on when settlement happens to run.
    """
    exp = record.expiration
    if not exp.recurs:
        return False
    if exp.repeat_until is not None and exp.repeat_until <= _cycle_end(record, clock):
        return False
    if exp.repeat_count is not None and exp.repeat_count <= 1:
        return False
    return True


def cycle_stalled(record: EventRecord) -> bool:
    """True if the next cycle would start no later than the one that ended."""
    start = record.initiation.at
    end = record.expiration.at
    if not isinstance(start, Temporal) or not isinstance(end, Temporal):
        return False
    return end.add(record.initiation.delay) <= start


def rearm(record: EventRecord, clock: WorldClock) -> bool:
    """Evaluate recurrence for an expired record.

    Returns True if the record was reset to CREATED for a new cycle. The
    next initiation is measured from the actual expiration instant, not from
    now, so batched settlement keeps cycle spacing exact. A record whose
    recurrence is over is left as is, so calling this again is harmless.
    """
    if record.state is not EventState.EXPIRED:
        return False

    exp = record.expiration
    if not exp.recurs:
        return False

    if not recurrence_allowed(record, clock):
        if exp.repeat_count == 1:
            exp.repeat_count = 0
            log.info("Event %s finished its last cycle", record.id)
        return False

    if exp.repeat_count is not None:
        exp.repeat_count -= 1

    base = _cycle_end(record, clock)
    record.initiation.at = base.add(record.initiation.delay)
    record.activation.at = None
    exp.at = None
    record.state = EventState.CREATED
    log.info(
        "Event %s re-armed, next initiation at %s (%s cycles left)",
        record.id,
        record.initiation.at.time,
        "unbounded" if exp.repeat_count is None else exp.repeat_count,
    )
    return True
