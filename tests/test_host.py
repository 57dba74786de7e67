"""Tests for tick_lifecycle.host — EventHost registry, settlement, snapshots."""
from __future__ import annotations

import pytest

from tick_lifecycle.engine import LifecycleEvent
from tick_lifecycle.host import EventHost
from tick_lifecycle.hooks import CallbackHooks
from tick_lifecycle.temporal import Temporal, WorldClock
from tick_lifecycle.types import (
    Activation,
    EventRecord,
    EventState,
    Expiration,
    Initiation,
    SnapshotError,
)


class Owner:
    pass


def _record(id: str, *, delay: float = 0, duration: float | None = 10) -> EventRecord:
    return EventRecord(
        id=id,
        initiation=Initiation(delay=delay),
        expiration=Expiration(duration=duration),
    )


class TestRegistry:
    def test_create_and_lookup(self) -> None:
        host = EventHost(Owner(), WorldClock())
        event = host.create(_record("a"))
        host.create({"id": "b"})
        assert host.get("a") is event
        assert host.ids() == ["a", "b"]
        assert len(host) == 2
        assert "b" in host
        assert host.get("missing") is None

    def test_create_replaces_same_id(self) -> None:
        host = EventHost(Owner(), WorldClock())
        host.create(_record("a"))
        second = host.create(_record("a", duration=3))
        assert host.events() == [second]

    def test_add_rejects_foreign_owner(self) -> None:
        host = EventHost(Owner(), WorldClock())
        stranger = LifecycleEvent(Owner(), _record("x"), clock=host.clock)
        with pytest.raises(ValueError):
            host.add(stranger)

    def test_remove(self) -> None:
        host = EventHost(Owner(), WorldClock())
        event = host.create(_record("a"))
        assert host.remove("a") is event
        assert host.remove("a") is None
        assert len(host) == 0


class TestSettlement:
    @pytest.mark.asyncio
    async def test_settle_all_in_insertion_order(self) -> None:
        order: list[str] = []
        hooks = CallbackHooks(on_initiate=lambda e, c: order.append(e.id))
        host = EventHost(Owner(), WorldClock())
        host.create(_record("z"), hooks)
        host.create(_record("a"), hooks)

        assert await host.settle_all() == 4
        assert order == ["z", "a"]
        assert [e.id for e in host.in_state(EventState.ACTIVATED)] == ["z", "a"]

    @pytest.mark.asyncio
    async def test_advance_moves_clock_and_settles(self) -> None:
        host = EventHost(Owner(), WorldClock())
        host.create(_record("short", duration=5))
        host.create(_record("long", duration=50))
        await host.settle_all()

        assert await host.advance(10) == 1
        assert host.clock.time == 10
        assert host.get("short").state is EventState.EXPIRED
        assert host.get("long").state is EventState.ACTIVATED


class TestSnapshot:
    @pytest.mark.asyncio
    async def test_round_trip(self) -> None:
        clock = WorldClock()
        owner = Owner()
        host = EventHost(owner, clock)
        host.create(_record("a", duration=30))
        host.create(
            EventRecord(id="m", activation=Activation(manual_trigger=True)),
        )
        await host.advance(5)
        snap = host.snapshot()
        assert snap["version"] == 1
        assert snap["time"] == 5

        fired: list[str] = []
        restored = EventHost(owner, clock)
        restored.restore(
            snap,
            hooks_for=lambda r: CallbackHooks(on_expire=lambda e, c: fired.append(e.id)),
        )
        assert restored.ids() == ["a", "m"]
        assert restored.get("a").record == host.get("a").record
        assert restored.get("a").record.expiration.at == Temporal(30)

        await restored.advance(25)
        assert fired == ["a"]
        assert restored.get("m").state is EventState.INITIATED

    def test_version_mismatch(self) -> None:
        host = EventHost(Owner(), WorldClock())
        with pytest.raises(SnapshotError):
            host.restore({"version": 99, "events": []})

    def test_missing_id(self) -> None:
        host = EventHost(Owner(), WorldClock())
        host.create(_record("keep"))
        with pytest.raises(SnapshotError):
            host.restore({"version": 1, "events": [{"title": "anonymous"}]})
        assert host.ids() == ["keep"]

    @pytest.mark.asyncio
    async def test_pending_recurrence_survives_restore(self) -> None:
        clock = WorldClock()
        owner = Owner()
        broken = {"on": True}

        def on_expire(event, ctx):
            if broken["on"]:
                raise RuntimeError("expire hook failed")

        host = EventHost(owner, clock)
        host.create(
            EventRecord(id="regen", expiration=Expiration(duration=10, repeat_count=3)),
            CallbackHooks(on_expire=on_expire),
        )
        await host.settle_all()
        with pytest.raises(RuntimeError):
            await host.advance(10)
        assert host.get("regen").state is EventState.EXPIRED
        snap = host.snapshot()

        restored = EventHost(owner, clock)
        restored.restore(snap)
        broken["on"] = False
        await host.settle_all()
        await restored.settle_all()

        live = host.get("regen").record
        again = restored.get("regen").record
        assert again.state is EventState.ACTIVATED
        assert again.initiation.at == Temporal(10)
        assert again.expiration.repeat_count == 2
        assert again.to_dict() == live.to_dict()
