"""Transition hooks: pre-hooks that may veto, on-hooks that run side effects."""
from __future__ import annotations

import inspect
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Union

if TYPE_CHECKING:
    from tick_lifecycle.context import EventContext
    from tick_lifecycle.engine import LifecycleEvent

HookResult = Union[bool, None, Awaitable[Union[bool, None]]]
HookFn = Callable[["LifecycleEvent", "EventContext"], HookResult]

HOOK_NAMES: tuple[str, ...] = (
    "pre_initiate",
    "on_initiate",
    "pre_activate",
    "on_activate",
    "pre_expire",
    "on_expire",
)


async def resolve(result: Any) -> Any:
    """Await *result* if a hook returned an awaitable, else pass it through."""
    if inspect.isawaitable(result):
        return await result
    return result


class TransitionHooks:
    """Default hook set: every transition allowed, no side effects.

    Override any subset. Methods may be plain or ``async``. A ``pre_*`` hook
    vetoes its transition for this pass only by returning exactly ``False``.
    """

    def pre_initiate(self, event: LifecycleEvent, context: EventContext) -> HookResult:
        return True

    def on_initiate(self, event: LifecycleEvent, context: EventContext) -> HookResult:
        return None

    def pre_activate(self, event: LifecycleEvent, context: EventContext) -> HookResult:
        return True

    def on_activate(self, event: LifecycleEvent, context: EventContext) -> HookResult:
        return None

    def pre_expire(self, event: LifecycleEvent, context: EventContext) -> HookResult:
        return True

    def on_expire(self, event: LifecycleEvent, context: EventContext) -> HookResult:
        return None


class CallbackHooks(TransitionHooks):
    """Hook set assembled from keyword callables. Missing ones stay default."""

    def __init__(self, **callbacks: HookFn) -> None:
        unknown = set(callbacks) - set(HOOK_NAMES)
        if unknown:
            raise TypeError(f"Unknown hook name(s): {', '.join(sorted(unknown))}")
        self._callbacks = callbacks

    def _call(
        self, name: str, event: LifecycleEvent, context: EventContext, default: Any
    ) -> HookResult:
        fn = self._callbacks.get(name)
        if fn is None:
            return default
        return fn(event, context)

    def pre_initiate(self, event: LifecycleEvent, context: EventContext) -> HookResult:
        return self._call("pre_initiate", event, context, True)

    def on_initiate(self, event: LifecycleEvent, context: EventContext) -> HookResult:
        return self._call("on_initiate", event, context, None)

    def pre_activate(self, event: LifecycleEvent, context: EventContext) -> HookResult:
        return self._call("pre_activate", event, context, True)

    def on_activate(self, event: LifecycleEvent, context: EventContext) -> HookResult:
        return self._call("on_activate", event, context, None)

    def pre_expire(self, event: LifecycleEvent, context: EventContext) -> HookResult:
        return self._call("pre_expire", event, context, True)

    def on_expire(self, event: LifecycleEvent, context: EventContext) -> HookResult:
        return self._call("on_expire", event, context, None)


class HookChain(TransitionHooks):
    """Runs several hook sets in order.

    A pre-hook vetoes as soon as any member vetoes; later members are not
    consulted. On-hooks run for every member in order, until one of them
    moves the event to another state (an action forcing EXPIRED).
    """

    def __init__(self, *members: TransitionHooks) -> None:
        self.members: list[TransitionHooks] = list(members)

    async def _pre(self, name: str, event: LifecycleEvent, context: EventContext) -> bool:
        for member in self.members:
            if await resolve(getattr(member, name)(event, context)) is False:
                return False
        return True

    async def _on(self, name: str, event: LifecycleEvent, context: EventContext) -> None:
        state = event.state
        for member in self.members:
            await resolve(getattr(member, name)(event, context))
            if event.state is not state:
                return

    def pre_initiate(self, event: LifecycleEvent, context: EventContext) -> HookResult:
        return self._pre("pre_initiate", event, context)

    def on_initiate(self, event: LifecycleEvent, context: EventContext) -> HookResult:
        return self._on("on_initiate", event, context)

    def pre_activate(self, event: LifecycleEvent, context: EventContext) -> HookResult:
        return self._pre("pre_activate", event, context)

    def on_activate(self, event: LifecycleEvent, context: EventContext) -> HookResult:
        return self._on("on_activate", event, context)

    def pre_expire(self, event: LifecycleEvent, context: EventContext) -> HookResult:
        return self._pre("pre_expire", event, context)

    def on_expire(self, event: LifecycleEvent, context: EventContext) -> HookResult:
        return self._on("on_expire", event, context)
