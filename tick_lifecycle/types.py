"""Event record data model, lifecycle states, and error types."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from tick_lifecycle.temporal import NEVER, Instant, Never, Temporal

_NEVER_TAG = "never"


class EventState(str, Enum):
    CREATED = "created"
    INITIATED = "initiated"
    ACTIVATED = "activated"
    EXPIRED = "expired"


# Fixed forward order of a single life.
STATE_ORDER: tuple[EventState, ...] = (
    EventState.CREATED,
    EventState.INITIATED,
    EventState.ACTIVATED,
    EventState.EXPIRED,
)


class LifecycleError(Exception):
    """Base class for lifecycle engine errors."""


class EventConstructionError(LifecycleError, ValueError):
    """Raised when an event is built without an id or an owner."""


class ProtocolError(LifecycleError):
    """Raised when an operation is called in a state that does not allow it."""

    def __init__(self, event_id: str, state: EventState, message: str) -> None:
        self.event_id = event_id
        self.state = state
        super().__init__(message)


class SnapshotError(LifecycleError):
    """Raised on restore failures (version mismatch, malformed record)."""


class ScriptSafetyError(LifecycleError):
    """Raised when a script action contains a disallowed keyword."""


@dataclass
class Initiation:
    """When the event becomes a candidate for activation."""

    delay: float = 0  # seconds after the scheduling reference
    at: Temporal | None = None


@dataclass
class Activation:
    """When the event takes effect. Manual triggers never activate on time."""

    manual_trigger: bool = False
    delay: float = 0  # seconds after initiation
    at: Instant | None = None


@dataclass
class Expiration:
    """When the event ends, and how often it comes back."""

    duration: float | None = None  # seconds after activation, None = indefinite
    at: Instant | None = None
    repeat_count: int | None = None
    repeat_until: Temporal | None = None

    @property
    def recurs(self) -> bool:
        return self.repeat_count is not None or self.repeat_until is not None


@dataclass
class EventRecord:
    """Persistent state of one timed event. Serializable."""

    id: str
    title: str = ""
    state: EventState = EventState.CREATED
    initiation: Initiation = field(default_factory=Initiation)
    activation: Activation = field(default_factory=Activation)
    expiration: Expiration = field(default_factory=Expiration)

    def scheduled_times(self) -> list[Instant]:
        """The phase times that are currently set, in phase order."""
        times: list[Instant | None] = [
            self.initiation.at,
            self.activation.at,
            self.expiration.at,
        ]
        return [t for t in times if t is not None]

    def schedule_order_ok(self) -> bool:
        """True if initiation <= activation <= expiration for all set times."""
        times = self.scheduled_times()
        return all(a <= b for a, b in zip(times, times[1:]))

    # --- Serialization ---

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "state": self.state.value,
            "initiation": {
                "delay": self.initiation.delay,
                "at": _dump_instant(self.initiation.at),
            },
            "activation": {
                "manual_trigger": self.activation.manual_trigger,
                "delay": self.activation.delay,
                "at": _dump_instant(self.activation.at),
            },
            "expiration": {
                "duration": self.expiration.duration,
                "at": _dump_instant(self.expiration.at),
                "repeat_count": self.expiration.repeat_count,
                "repeat_until": _dump_instant(self.expiration.repeat_until),
            },
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EventRecord:
        try:
            state = EventState(data.get("state", EventState.CREATED.value))
        except ValueError as exc:
            raise SnapshotError(f"Unknown event state {data.get('state')!r}") from exc

        ini = data.get("initiation") or {}
        act = data.get("activation") or {}
        exp = data.get("expiration") or {}

        initiation_at = _load_instant(ini.get("at"))
        repeat_until = _load_instant(exp.get("repeat_until"))
        if isinstance(initiation_at, Never) or isinstance(repeat_until, Never):
            raise SnapshotError("Only activation and expiration times may be 'never'")

        return cls(
            id=data.get("id", ""),
            title=data.get("title", ""),
            state=state,
            initiation=Initiation(
                delay=ini.get("delay") or 0,
                at=initiation_at,
            ),
            activation=Activation(
                manual_trigger=bool(act.get("manual_trigger", False)),
                delay=act.get("delay") or 0,
                at=_load_instant(act.get("at")),
            ),
            expiration=Expiration(
                duration=exp.get("duration"),
                at=_load_instant(exp.get("at")),
                repeat_count=exp.get("repeat_count"),
                repeat_until=repeat_until,
            ),
        )


def _dump_instant(value: Instant | None) -> float | str | None:
    if value is None:
        return None
    if isinstance(value, Never):
        return _NEVER_TAG
    return value.time


def _load_instant(value: Any) -> Instant | None:
    if value is None:
        return None
    if value == _NEVER_TAG:
        return NEVER
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SnapshotError(f"Cannot restore instant from {value!r}")
    return Temporal(float(value))
