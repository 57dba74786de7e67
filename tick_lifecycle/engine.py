"""LifecycleEvent - the settlement engine for one timed event."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from tick_lifecycle.config import LifecycleConfig
from tick_lifecycle.context import EventContext
from tick_lifecycle.hooks import TransitionHooks, resolve
from tick_lifecycle.recurrence import cycle_stalled, rearm, recurrence_allowed
from tick_lifecycle.temporal import NEVER, Temporal
from tick_lifecycle.types import (
    EventConstructionError,
    EventRecord,
    EventState,
    ProtocolError,
)

if TYPE_CHECKING:
    from tick_lifecycle.temporal import WorldClock

log = logging.getLogger(__name__)


class LifecycleEvent:
    """Drives one EventRecord through CREATED, INITIATED, ACTIVATED, EXPIRED.

    The record is mutated only through :meth:`settle`, :meth:`activate` and
    :meth:`force_expire`. Settlement is re-entrant safe: a call that arrives
    while a pass is suspended inside a hook is folded into exactly one
    follow-up pass.
    """

    def __init__(
        self,
        owner: Any,
        record: EventRecord | dict[str, Any],
        *,
        clock: WorldClock,
        hooks: TransitionHooks | None = None,
        config: LifecycleConfig | None = None,
    ) -> None:
        if owner is None:
            raise EventConstructionError("An event requires an owner")
        if isinstance(record, dict):
            record = EventRecord.from_dict(record)
        if not record.id:
            raise EventConstructionError("An event requires an id")
        _validate_timings(record)
        if not record.title:
            record.title = record.id

        self._owner = owner
        self._record = record
        self._clock = clock
        self._hooks = hooks if hooks is not None else TransitionHooks()
        self._config = config if config is not None else LifecycleConfig()
        # Scheduling reference for the first initiation.
        self._reference: Temporal = clock.now()
        self._running = False
        self._run_again = False
        self._stalled_cycles = 0

    # --- Queries ---

    @property
    def owner(self) -> Any:
        return self._owner

    @property
    def record(self) -> EventRecord:
        return self._record

    @property
    def id(self) -> str:
        return self._record.id

    @property
    def title(self) -> str:
        return self._record.title

    @property
    def state(self) -> EventState:
        return self._record.state

    @property
    def clock(self) -> WorldClock:
        return self._clock

    @property
    def hooks(self) -> TransitionHooks:
        return self._hooks

    @property
    def is_settling(self) -> bool:
        return self._running

    @property
    def is_manual(self) -> bool:
        return self._record.activation.manual_trigger

    def time_until_activation(self) -> float | None:
        """Seconds until scheduled activation. None if unscheduled or manual."""
        at = self._record.activation.at
        if not isinstance(at, Temporal):
            return None
        return max(0.0, at.time - self._clock.time)

    def time_remaining(self) -> float | None:
        """Seconds until expiration. None if unscheduled or indefinite."""
        at = self._record.expiration.at
        if not isinstance(at, Temporal):
            return None
        return max(0.0, at.time - self._clock.time)

    # --- Settlement ---

    async def settle(self, context: EventContext | None = None) -> int:
        """Apply every transition the clock currently justifies.

        Returns the number of transitions applied, including those of any
        coalesced follow-up passes. A call made while a pass is running
        returns 0 immediately and schedules one more pass.

        If a pass raises, a follow-up requested during it is dropped along
        with the failed pass; the error reaching the first caller stands for
        both requests. Call settle() again to retry.
        """
        if self._running:
            self._run_again = True
            return 0

        ctx = context if context is not None else EventContext.system()
        self._running = True
        self._stalled_cycles = 0
        applied = 0
        try:
            while True:
                self._run_again = False
                applied += await self._run_pass(ctx)
                if not self._run_again:
                    break
        except Exception as exc:
            log.warning(
                "Settlement of event %s failed in state %s: %s",
                self.id,
                self.state.value,
                exc,
            )
            raise
        finally:
            self._running = False
            self._run_again = False
        return applied

    async def activate(self, context: EventContext | None = None) -> int:
        """Manually activate an INITIATED event, then settle.

        Returns the transitions applied. If a pass is already suspended in a
        hook, the activation time is stamped now and the running pass picks
        it up; this call then returns 0 and the transition lands before the
        running settle() returns.
        """
        if self._record.state is not EventState.INITIATED:
            raise ProtocolError(
                self.id,
                self._record.state,
                f"Cannot activate event {self.id!r} in state {self._record.state.value!r}",
            )
        now = self._clock.now()
        self._record.activation.at = now
        log.debug("Event %s manually triggered at %s", self.id, now.time)
        return await self.settle(context)

    def force_expire(self, context: EventContext | None = None) -> None:
        """Move straight to EXPIRED, stamping the expiration time if unset.

        Recurrence is evaluated by the next settlement step.
        """
        rec = self._record
        if rec.state is EventState.EXPIRED:
            return
        if not isinstance(rec.expiration.at, Temporal):
            now = self._clock.now()
            act = rec.activation.at
            rec.expiration.at = max(now, act) if isinstance(act, Temporal) else now
        self._enter(EventState.EXPIRED)

    # --- Internal ---

    async def _run_pass(self, ctx: EventContext) -> int:
        applied = 0
        while await self._step(ctx):
            applied += 1
        return applied

    async def _step(self, ctx: EventContext) -> bool:
        """Try the single transition that applies to the current state."""
        rec = self._record
        state = rec.state

        if state is EventState.CREATED:
            if rec.initiation.at is None:
                rec.initiation.at = self._reference.add(rec.initiation.delay)
            if not rec.initiation.at.past_or_present(self._clock):
                return False
            if await resolve(self._hooks.pre_initiate(self, ctx)) is False:
                return False
            self._enter(EventState.INITIATED)
            await resolve(self._hooks.on_initiate(self, ctx))
            return True

        if state is EventState.INITIATED:
            if rec.activation.at is None:
                if rec.activation.manual_trigger:
                    rec.activation.at = NEVER
                else:
                    base = rec.initiation.at if rec.initiation.at is not None else self._reference
                    rec.activation.at = base.add(rec.activation.delay)
            if not rec.activation.at.past_or_present(self._clock):
                return False
            if await resolve(self._hooks.pre_activate(self, ctx)) is False:
                return False
            self._enter(EventState.ACTIVATED)
            await resolve(self._hooks.on_activate(self, ctx))
            return True

        if state is EventState.ACTIVATED:
            if rec.expiration.at is None:
                if rec.expiration.duration is None:
                    rec.expiration.at = NEVER
                else:
                    act = rec.activation.at
                    base = act if isinstance(act, Temporal) else self._clock.now()
                    rec.expiration.at = base.add(rec.expiration.duration)
            if not rec.expiration.at.past_or_present(self._clock):
                return False
            if await resolve(self._hooks.pre_expire(self, ctx)) is False:
                return False
            self._enter(EventState.EXPIRED)
            await resolve(self._hooks.on_expire(self, ctx))
            return True

        # EXPIRED: re-arm if recurrence allows. Only cycles that take no time
        # could repeat without end, so only those are counted.
        if cycle_stalled(rec) and recurrence_allowed(rec, self._clock):
            self._stalled_cycles += 1
            if self._stalled_cycles > self._config.max_stalled_cycles:
                rec.expiration.repeat_count = 0
                log.warning(
                    "Event %s repeated %d zero-length cycles in one settle; recurrence stopped",
                    self.id,
                    self._config.max_stalled_cycles,
                )
                return False
        else:
            self._stalled_cycles = 0
        return rearm(rec, self._clock)

    def _enter(self, state: EventState) -> None:
        old = self._record.state
        self._record.state = state
        if self._config.log_transitions:
            log.debug(
                "Event %s: %s -> %s at %s", self.id, old.value, state.value, self._clock.time
            )

    def __repr__(self) -> str:
        return f"LifecycleEvent(id={self.id!r}, state={self.state.value!r})"


def _validate_timings(record: EventRecord) -> None:
    if record.initiation.delay < 0:
        raise EventConstructionError(f"Event {record.id!r}: initiation delay must be >= 0")
    if record.activation.delay < 0:
        raise EventConstructionError(f"Event {record.id!r}: activation delay must be >= 0")
    duration = record.expiration.duration
    if duration is not None and duration < 0:
        raise EventConstructionError(f"Event {record.id!r}: duration must be >= 0")
