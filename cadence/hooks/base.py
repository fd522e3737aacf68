"""Hook interface."""

import inspect
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any

from cadence.hooks.events import TaskHookEvent

HookCallable = Callable[[TaskHookEvent], Awaitable[None] | None]


class TaskHook(ABC):
    """Observer attached to a task's hook container.

    A hook may be shared by reference across many tasks. State-only hooks
    register for NoInterest and are never invoked; frames query them through
    the container instead.
    """

    @abstractmethod
    async def on_event(self, event: TaskHookEvent) -> None:
        """Handle an emitted event."""


class FunctionHook(TaskHook):
    """Adapts a plain sync or async callable to the TaskHook interface."""

    def __init__(self, func: HookCallable) -> None:
        self.func = func

    async def on_event(self, event: TaskHookEvent) -> None:
        result: Any = self.func(event)
        if inspect.isawaitable(result):
            await result

    def __eq__(self, other: object) -> bool:
        if isinstance(other, FunctionHook):
            return self.func == other.func
        return NotImplemented

    def __repr__(self) -> str:
        return f"FunctionHook({getattr(self.func, '__qualname__', self.func)!r})"


def as_hook(hook: TaskHook | HookCallable) -> TaskHook:
    if isinstance(hook, TaskHook):
        return hook
    if not callable(hook):
        raise TypeError(f"Hook must be a TaskHook or a callable, got {type(hook).__name__}")
    return FunctionHook(hook)
