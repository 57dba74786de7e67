"""EventHost - the owning container for a set of lifecycle events."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable

from tick_lifecycle.config import LifecycleConfig
from tick_lifecycle.engine import LifecycleEvent
from tick_lifecycle.types import EventRecord, EventState, SnapshotError

if TYPE_CHECKING:
    from tick_lifecycle.context import EventContext
    from tick_lifecycle.hooks import TransitionHooks
    from tick_lifecycle.temporal import WorldClock

log = logging.getLogger(__name__)

_SNAPSHOT_VERSION = 1


class EventHost:
    """Holds the events of one owner, keyed by id. Insertion order preserved.

    The host is the single parent of its events: it builds them, drives
    their settlement when time moves, and discards them.
    """

    def __init__(
        self,
        owner: Any,
        clock: WorldClock,
        config: LifecycleConfig | None = None,
    ) -> None:
        self._owner = owner
        self._clock = clock
        self._config = config if config is not None else LifecycleConfig()
        self._events: dict[str, LifecycleEvent] = {}

    @property
    def owner(self) -> Any:
        return self._owner

    @property
    def clock(self) -> WorldClock:
        return self._clock

    # --- Registration ---

    def create(
        self,
        record: EventRecord | dict[str, Any],
        hooks: TransitionHooks | None = None,
    ) -> LifecycleEvent:
        """Build an event owned by this host and add it. Replaces same id."""
        event = LifecycleEvent(
            self._owner, record, clock=self._clock, hooks=hooks, config=self._config
        )
        self.add(event)
        return event

    def add(self, event: LifecycleEvent) -> None:
        """Add an event built elsewhere. It must share this host's owner."""
        if event.owner is not self._owner:
            raise ValueError(f"Event {event.id!r} belongs to a different owner")
        self._events[event.id] = event

    def remove(self, event_id: str) -> LifecycleEvent | None:
        return self._events.pop(event_id, None)

    # --- Queries ---

    def get(self, event_id: str) -> LifecycleEvent | None:
        return self._events.get(event_id)

    def events(self) -> list[LifecycleEvent]:
        return list(self._events.values())

    def ids(self) -> list[str]:
        return list(self._events)

    def in_state(self, state: EventState) -> list[LifecycleEvent]:
        """All events currently in *state*, in insertion order."""
        return [e for e in self._events.values() if e.state is state]

    def __len__(self) -> int:
        return len(self._events)

    def __contains__(self, event_id: object) -> bool:
        return event_id in self._events

    # --- Settlement ---

    async def settle_all(self, context: EventContext | None = None) -> int:
        """Settle every event in insertion order. Returns total transitions.

        The first hook error stops the sweep and propagates; events after the
        failing one are left for the next call.
        """
        total = 0
        for event in list(self._events.values()):
            total += await event.settle(context)
        if total:
            log.debug(
                "Settled %d events at %s: %d transitions",
                len(self._events),
                self._clock.time,
                total,
            )
        return total

    async def advance(self, seconds: float, context: EventContext | None = None) -> int:
        """Move the clock forward (or back) and settle everything."""
        self._clock.advance(seconds)
        return await self.settle_all(context)

    # --- Serialization ---

    def snapshot(self) -> dict[str, Any]:
        """Serialize every event record (not hooks)."""
        return {
            "version": _SNAPSHOT_VERSION,
            "time": self._clock.time,
            "events": [e.record.to_dict() for e in self._events.values()],
        }

    def restore(
        self,
        data: dict[str, Any],
        hooks_for: Callable[[EventRecord], TransitionHooks | None] | None = None,
    ) -> None:
        """Replace all events from a snapshot.

        The clock is not moved. *hooks_for* supplies the hook set for each
        restored record; events without one get the default hooks.
        """
        version = data.get("version")
        if version != _SNAPSHOT_VERSION:
            raise SnapshotError(
                f"Unsupported snapshot version {version!r}, expected {_SNAPSHOT_VERSION}"
            )

        records = [EventRecord.from_dict(d) for d in data.get("events", [])]
        events: dict[str, LifecycleEvent] = {}
        for record in records:
            if not record.id:
                raise SnapshotError("Snapshot contains an event without an id")
            hooks = hooks_for(record) if hooks_for is not None else None
            events[record.id] = LifecycleEvent(
                self._owner, record, clock=self._clock, hooks=hooks, config=self._config
            )
        self._events = events
        log.info("Restored %d events", len(events))
