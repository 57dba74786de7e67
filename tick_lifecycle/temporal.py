"""Simulation time: instants, the never sentinel, and the world clock."""
from __future__ import annotations

from dataclasses import dataclass
from functools import total_ordering
from typing import Union


@total_ordering
@dataclass(frozen=True, slots=True)
class Temporal:
    """A point in simulation time, in seconds. Ordered by time only."""

    time: float

    def __lt__(self, other: object) -> bool:
        if isinstance(other, Never):
            return True
        if not isinstance(other, Temporal):
            return NotImplemented
        return self.time < other.time

    def add(self, seconds: float) -> Temporal:
        return Temporal(self.time + seconds)

    def subtract(self, seconds: float) -> Temporal:
        return Temporal(self.time - seconds)

    def compare(self, other: Temporal) -> float:
        """Positive if later than *other*, negative if earlier, 0 if equal."""
        return self.time - other.time

    def past(self, clock: WorldClock) -> bool:
        return self.time < clock.time

    def past_or_present(self, clock: WorldClock) -> bool:
        return self.time <= clock.time

    def future(self, clock: WorldClock) -> bool:
        return self.time > clock.time

    def future_or_present(self, clock: WorldClock) -> bool:
        return self.time >= clock.time

    def elapsed(self, clock: WorldClock) -> float:
        """Absolute seconds between this instant and the clock's now."""
        return abs(clock.time - self.time)

    @staticmethod
    def from_time(time: float) -> Temporal:
        return Temporal(float(time))

    @staticmethod
    def now(clock: WorldClock) -> Temporal:
        return clock.now()


class Never:
    """Sentinel instant that is never reached automatically.

    Sorts after every Temporal. Adding a duration leaves it unchanged.
    """

    _instance: Never | None = None

    def __new__(cls) -> Never:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NEVER"

    def __lt__(self, other: object) -> bool:
        if isinstance(other, (Temporal, Never)):
            return False
        return NotImplemented

    def __le__(self, other: object) -> bool:
        if isinstance(other, Never):
            return True
        if isinstance(other, Temporal):
            return False
        return NotImplemented

    def __gt__(self, other: object) -> bool:
        if isinstance(other, Temporal):
            return True
        if isinstance(other, Never):
            return False
        return NotImplemented

    def __ge__(self, other: object) -> bool:
        if isinstance(other, (Temporal, Never)):
            return True
        return NotImplemented

    def add(self, seconds: float) -> Never:
        return self

    def past(self, clock: WorldClock) -> bool:
        return False

    def past_or_present(self, clock: WorldClock) -> bool:
        return False

    def future(self, clock: WorldClock) -> bool:
        return True

    def future_or_present(self, clock: WorldClock) -> bool:
        return True


NEVER = Never()

# A scheduled phase time: a concrete instant, never, or not yet computed.
Instant = Union[Temporal, Never]


class WorldClock:
    """Injectable simulation time source.

    The clock only moves when told to. Jumps may be arbitrarily large in
    either direction.
    """

    def __init__(self, time: float = 0.0) -> None:
        self._time = float(time)

    @property
    def time(self) -> float:
        return self._time

    def now(self) -> Temporal:
        return Temporal(self._time)

    def advance(self, seconds: float) -> Temporal:
        self._time += seconds
        return self.now()

    def set(self, time: float) -> Temporal:
        self._time = float(time)
        return self.now()

    def reset(self, time: float = 0.0) -> None:
        self._time = float(time)
