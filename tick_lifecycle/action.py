"""Actions: instantaneous events that run a payload once when activated."""
from __future__ import annotations

import builtins
import inspect
import logging
import re
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable

from tick_lifecycle.engine import LifecycleEvent
from tick_lifecycle.hooks import TransitionHooks
from tick_lifecycle.types import (
    Activation,
    EventRecord,
    Expiration,
    Initiation,
    ScriptSafetyError,
)

if TYPE_CHECKING:
    from tick_lifecycle.config import LifecycleConfig
    from tick_lifecycle.context import EventContext
    from tick_lifecycle.temporal import WorldClock

log = logging.getLogger(__name__)


class ActionScope(str, Enum):
    """Which object the payload runs against, relative to the event owner."""

    SELF = "self"
    ITEM = "item"
    ACTOR = "actor"


def resolve_scope(owner: Any, scope: ActionScope) -> Any:
    """Return the payload target for *scope*. Raises LookupError if absent."""
    if scope is ActionScope.SELF:
        target = owner
    elif scope is ActionScope.ITEM:
        target = getattr(owner, "item", None)
    elif scope is ActionScope.ACTOR:
        target = getattr(owner, "actor", None)
    else:
        raise ValueError(f"Unknown action scope: {scope!r}")
    if target is None:
        raise LookupError(f"This action is scoped to {scope.value}, but the target does not exist")
    return target


class ActionHooks(TransitionHooks):
    """Runs a payload on activation, then forces the event to EXPIRED.

    The payload runs at most once per activation of a given event; a nested
    activation of the same event while the payload is in flight is ignored.
    The event expires whether the payload succeeds or raises, and payload
    errors propagate out of the settlement that triggered them.
    """

    def __init__(self, scope: ActionScope = ActionScope.SELF, is_async: bool = False) -> None:
        self.scope = scope
        self.is_async = is_async
        self._functions: dict[str, Callable[..., Any]] = {}
        self._in_flight: set[str] = set()

    def build_function(self, event: LifecycleEvent) -> Callable[..., Any]:
        """Produce the payload callable. Subclasses must override."""
        raise NotImplementedError

    def function(self, event: LifecycleEvent) -> Callable[..., Any]:
        """The payload for *event*, built on first use."""
        fn = self._functions.get(event.id)
        if fn is None:
            fn = self._functions[event.id] = self.build_function(event)
        return fn

    def execute(self, event: LifecycleEvent, context: EventContext) -> Any:
        """Call the payload. May return an awaitable."""
        return self.function(event)(context)

    def execute_sync(self, event: LifecycleEvent, context: EventContext) -> Any:
        """Call the payload and require a plain (non-awaitable) result."""
        if self.is_async:
            raise RuntimeError("Synchronous execution is not supported for this action")
        result = self.execute(event, context)
        if inspect.isawaitable(result):
            if inspect.iscoroutine(result):
                result.close()
            raise RuntimeError("Awaitable returned when synchronous execution expected")
        return result

    def is_running(self, event: LifecycleEvent) -> bool:
        return event.id in self._in_flight

    async def on_activate(self, event: LifecycleEvent, context: EventContext) -> None:
        if event.id in self._in_flight:
            return
        self._in_flight.add(event.id)
        try:
            result = self.execute(event, context)
            if inspect.isawaitable(result):
                await result
        finally:
            self._in_flight.discard(event.id)
            event.force_expire(context)


class FunctionAction(ActionHooks):
    """Action whose payload is a Python callable taking the context."""

    def __init__(
        self,
        fn: Callable[..., Any],
        scope: ActionScope = ActionScope.SELF,
        bind_target: bool = False,
    ) -> None:
        super().__init__(scope=scope, is_async=inspect.iscoroutinefunction(fn))
        self.fn = fn
        self.bind_target = bind_target

    def build_function(self, event: LifecycleEvent) -> Callable[..., Any]:
        if not self.bind_target:
            return self.fn
        target = resolve_scope(event.owner, self.scope)
        fn = self.fn
        return lambda context: fn(target, context)


class IntrinsicAction(ActionHooks):
    """Action whose payload is a named method on the scoped target."""

    def __init__(self, function_name: str, scope: ActionScope = ActionScope.SELF) -> None:
        super().__init__(scope=scope)
        self.function_name = function_name

    def build_function(self, event: LifecycleEvent) -> Callable[..., Any]:
        target = resolve_scope(event.owner, self.scope)
        func = getattr(target, self.function_name, None)
        if func is None or not callable(func):
            raise AttributeError(
                f'The target of this action does not have a function named "{self.function_name}"'
            )
        self.is_async = inspect.iscoroutinefunction(func)
        return func


DISALLOWED_KEYWORDS: tuple[str, ...] = (
    "import",
    "__import__",
    "eval",
    "exec",
    "compile",
    "open",
    "globals",
    "locals",
    "vars",
    "getattr",
    "setattr",
    "delattr",
    "breakpoint",
    "input",
)

_SAFE_BUILTINS: dict[str, Any] = {
    name: getattr(builtins, name)
    for name in (
        "abs", "all", "any", "bool", "dict", "enumerate", "filter", "float",
        "int", "isinstance", "len", "list", "map", "max", "min", "range",
        "round", "set", "sorted", "str", "sum", "tuple", "zip",
        "Exception", "ValueError", "RuntimeError", "KeyError",
    )
}


def check_script_safety(script: str) -> None:
    """Reject scripts that mention a disallowed keyword or dunder names."""
    lowered = script.lower()
    for keyword in DISALLOWED_KEYWORDS:
        if re.search(rf"\b{re.escape(keyword.lower())}\b", lowered):
            raise ScriptSafetyError(f"Disallowed keyword detected in script: {keyword}")
    if "__" in script:
        raise ScriptSafetyError("Dunder names are not allowed in scripts")


class ScriptAction(ActionHooks):
    """Action whose payload is a script body compiled into a function.

    The body runs as ``def script(self, context)`` (or ``async def`` when
    *is_async*), with ``self`` bound to the scoped target and only a small
    table of builtins visible.
    """

    def __init__(
        self,
        script: str = "return",
        scope: ActionScope = ActionScope.SELF,
        is_async: bool = False,
    ) -> None:
        super().__init__(scope=scope, is_async=is_async)
        self.script = script or "return"

    def build_function(self, event: LifecycleEvent) -> Callable[..., Any]:
        check_script_safety(self.script)
        target = resolve_scope(event.owner, self.scope)
        body = "\n".join("    " + line for line in self.script.splitlines()) or "    return"
        header = "async def script(self, context):" if self.is_async else "def script(self, context):"
        namespace: dict[str, Any] = {"__builtins__": _SAFE_BUILTINS}
        exec(compile(f"{header}\n{body}\n", f"<script:{event.id}>", "exec"), namespace)
        script = namespace["script"]
        log.debug("Compiled script action for event %s", event.id)
        return lambda context: script(target, context)


def make_action(
    owner: Any,
    id: str,
    hooks: TransitionHooks,
    *,
    clock: WorldClock,
    title: str = "",
    manual_trigger: bool = True,
    delay: float = 0,
    duration: float | None = 0,
    repeat_count: int | None = None,
    config: LifecycleConfig | None = None,
) -> LifecycleEvent:
    """Build a LifecycleEvent configured as an instantaneous action."""
    record = EventRecord(
        id=id,
        title=title,
        initiation=Initiation(delay=0),
        activation=Activation(manual_trigger=manual_trigger, delay=delay),
        expiration=Expiration(duration=duration, repeat_count=repeat_count),
    )
    return LifecycleEvent(owner, record, clock=clock, hooks=hooks, config=config)
