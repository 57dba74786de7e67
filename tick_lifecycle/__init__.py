"""tick-lifecycle - Timed event lifecycle and settlement for simulation clocks."""
from __future__ import annotations

from tick_lifecycle.action import (
    ActionHooks,
    ActionScope,
    FunctionAction,
    IntrinsicAction,
    ScriptAction,
    make_action,
)
from tick_lifecycle.config import LifecycleConfig
from tick_lifecycle.context import EventContext
from tick_lifecycle.engine import LifecycleEvent
from tick_lifecycle.hooks import CallbackHooks, HookChain, TransitionHooks
from tick_lifecycle.host import EventHost
from tick_lifecycle.recurrence import cycle_stalled, rearm, recurrence_allowed
from tick_lifecycle.temporal import NEVER, Never, Temporal, WorldClock
from tick_lifecycle.types import (
    Activation,
    EventConstructionError,
    EventRecord,
    EventState,
    Expiration,
    Initiation,
    LifecycleError,
    ProtocolError,
    ScriptSafetyError,
    SnapshotError,
)

__all__ = [
    "Temporal",
    "Never",
    "NEVER",
    "WorldClock",
    "EventState",
    "EventRecord",
    "Initiation",
    "Activation",
    "Expiration",
    "LifecycleError",
    "EventConstructionError",
    "ProtocolError",
    "SnapshotError",
    "ScriptSafetyError",
    "LifecycleConfig",
    "EventContext",
    "TransitionHooks",
    "CallbackHooks",
    "HookChain",
    "LifecycleEvent",
    "rearm",
    "recurrence_allowed",
    "cycle_stalled",
    "ActionScope",
    "ActionHooks",
    "FunctionAction",
    "IntrinsicAction",
    "ScriptAction",
    "make_action",
    "EventHost",
]
