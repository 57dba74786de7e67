"""Lifecycle engine configuration dataclass."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class LifecycleConfig:
    """Immutable configuration for event settlement.

    Attributes:
        max_stalled_cycles: Re-arms allowed in a row, within one settle(),
            for cycles that take no time (the next cycle would start no later
            than the one that just ended). Past this the event's recurrence
            is stopped for good. Cycles that advance time are never limited.
        log_transitions: Emit a DEBUG log record for every transition.
    """

    max_stalled_cycles: int = 1_000
    log_transitions: bool = True
