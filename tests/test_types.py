"""Tests for tick_lifecycle.types — records, defaults, and the persisted shape."""
from __future__ import annotations

import json

import pytest

from tick_lifecycle.temporal import NEVER, Temporal
from tick_lifecycle.types import (
    Activation,
    EventConstructionError,
    EventRecord,
    EventState,
    Expiration,
    Initiation,
    LifecycleError,
    SnapshotError,
)


class TestDefaults:
    def test_minimal_record(self) -> None:
        r = EventRecord(id="bleed")
        assert r.title == ""
        assert r.state is EventState.CREATED
        assert r.initiation == Initiation(delay=0, at=None)
        assert r.activation == Activation(manual_trigger=False, delay=0, at=None)
        assert r.expiration.duration is None
        assert r.expiration.repeat_count is None
        assert r.expiration.repeat_until is None

    def test_state_values(self) -> None:
        assert [s.value for s in EventState] == [
            "created",
            "initiated",
            "activated",
            "expired",
        ]

    def test_recurs_only_when_configured(self) -> None:
        assert not Expiration().recurs
        assert Expiration(repeat_count=3).recurs
        assert Expiration(repeat_until=Temporal(100)).recurs

    def test_construction_error_is_value_error(self) -> None:
        assert issubclass(EventConstructionError, ValueError)
        assert issubclass(EventConstructionError, LifecycleError)


class TestScheduleOrder:
    def test_unset_times_are_fine(self) -> None:
        assert EventRecord(id="a").schedule_order_ok()

    def test_ordered_times(self) -> None:
        r = EventRecord(
            id="a",
            initiation=Initiation(at=Temporal(1)),
            activation=Activation(at=Temporal(2)),
            expiration=Expiration(at=NEVER),
        )
        assert r.schedule_order_ok()

    def test_out_of_order_times(self) -> None:
        r = EventRecord(
            id="a",
            initiation=Initiation(at=Temporal(5)),
            activation=Activation(at=Temporal(2)),
        )
        assert not r.schedule_order_ok()


class TestSerialization:
    def test_to_dict_is_json_safe(self) -> None:
        r = EventRecord(
            id="poison",
            title="Poison",
            state=EventState.ACTIVATED,
            initiation=Initiation(delay=5, at=Temporal(5)),
            activation=Activation(manual_trigger=True, at=NEVER),
            expiration=Expiration(duration=60, repeat_count=3, repeat_until=Temporal(500)),
        )
        data = r.to_dict()
        assert json.loads(json.dumps(data)) == data
        assert data["state"] == "activated"
        assert data["initiation"] == {"delay": 5, "at": 5.0}
        assert data["activation"]["at"] == "never"
        assert data["expiration"]["at"] is None
        assert data["expiration"]["repeat_until"] == 500.0

    def test_round_trip(self) -> None:
        r = EventRecord(
            id="poison",
            title="Poison",
            state=EventState.INITIATED,
            initiation=Initiation(delay=5, at=Temporal(5)),
            activation=Activation(manual_trigger=True, at=NEVER),
            expiration=Expiration(duration=None, repeat_count=2),
        )
        assert EventRecord.from_dict(r.to_dict()) == r

    def test_from_dict_fills_defaults(self) -> None:
        r = EventRecord.from_dict({"id": "x"})
        assert r == EventRecord(id="x")

    def test_unknown_state_rejected(self) -> None:
        with pytest.raises(SnapshotError):
            EventRecord.from_dict({"id": "x", "state": "paused"})

    def test_bad_instant_rejected(self) -> None:
        with pytest.raises(SnapshotError):
            EventRecord.from_dict({"id": "x", "initiation": {"at": "noon"}})

    def test_never_not_allowed_for_initiation(self) -> None:
        with pytest.raises(SnapshotError):
            EventRecord.from_dict({"id": "x", "initiation": {"at": "never"}})
