"""Frame interface and leaf frames.

A frame tree is immutable once built. ``execute`` returns a FrameOutcome on
success and raises a FrameExecutionError subclass on failure; anything a
user action raises is wrapped in UserError at the leaf.
"""

import asyncio
import inspect
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any

from cadence.aio import race
from cadence.errors import FrameCancelledError, FrameExecutionError, UserError
from cadence.task.context import TaskContext

TaskAction = Callable[[TaskContext], Any | Awaitable[Any]]


class FrameOutcome(str, Enum):
    """Non-failure results of a frame."""

    SUCCESS = "success"
    SKIPPED = "skipped"


class TaskFrame(ABC):
    """A node of the execution tree."""

    frame_type: str = "frame"

    @abstractmethod
    async def execute(self, ctx: TaskContext) -> FrameOutcome:
        """Run this frame.

        Raises:
            FrameExecutionError: On any failure of this frame or its children
        """

    @property
    def children(self) -> tuple["TaskFrame", ...]:
        return ()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({', '.join(repr(c) for c in self.children)})"


def action_name(action: Callable[..., Any]) -> str:
    return getattr(action, "__qualname__", None) or type(action).__name__


async def call_user(func: Callable[..., Any], *args: Any) -> Any:
    """Call a sync or async user callable, wrapping what it raises in UserError."""
    try:
        result = func(*args)
        if inspect.isawaitable(result):
            result = await result
    except FrameExecutionError:
        raise
    except Exception as exc:
        raise UserError(exc) from exc
    return result


class FunctionFrame(TaskFrame):
    """Leaf wrapping a user action.

    The action receives the TaskContext and may be sync or async. Sync
    actions run on the event loop unless ``blocking`` is set, in which case
    they run in a worker thread (where cancellation cannot interrupt them).
    An action may return FrameOutcome.SKIPPED to report a skip.
    """

    frame_type = "function"

    def __init__(self, action: TaskAction, name: str | None = None, blocking: bool = False) -> None:
        if not callable(action):
            raise TypeError("FunctionFrame action must be callable")
        self.action = action
        self.name = name or action_name(action)
        self.blocking = blocking

    async def _call(self, ctx: TaskContext) -> Any:
        if self.blocking:
            result = await asyncio.to_thread(self.action, ctx)
        else:
            result = self.action(ctx)
        if inspect.isawaitable(result):
            result = await result
        return result

    async def execute(self, ctx: TaskContext) -> FrameOutcome:
        ctx.token.raise_if_cancelled()
        winner, future = await race(self._call(ctx), ctx.token.wait())
        if winner == 1:
            raise FrameCancelledError(reason=ctx.token.reason)

        try:
            result = future.result()
        except FrameExecutionError:
            raise
        except Exception as exc:
            raise UserError(exc) from exc

        if isinstance(result, FrameOutcome):
            return result
        return FrameOutcome.SUCCESS

    def __repr__(self) -> str:
        return f"FunctionFrame({self.name!r})"


class NoOpFrame(TaskFrame):
    """Succeeds immediately. Useful as a placeholder or fallback."""

    frame_type = "noop"

    async def execute(self, ctx: TaskContext) -> FrameOutcome:
        ctx.token.raise_if_cancelled()
        return FrameOutcome.SUCCESS

    def __repr__(self) -> str:
        return "NoOpFrame()"


def as_frame(value: "TaskFrame | TaskAction") -> TaskFrame:
    """Accept either a frame or a bare action."""
    if isinstance(value, TaskFrame):
        return value
    return FunctionFrame(value)
