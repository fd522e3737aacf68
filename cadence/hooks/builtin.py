"""Ready-made hooks."""

import inspect
from collections.abc import Awaitable, Callable
from typing import Any

from cadence.hooks.base import TaskHook
from cadence.hooks.events import OnRetryAttemptEnd, OnTaskEnd, TaskHookEvent

FAILED_STATUSES = frozenset({"failed", "timed_out"})
NEUTRAL_STATUSES = frozenset({"skipped", "canceled"})


class CircuitBreakerHook(TaskHook):
    """Tracks consecutive failures and opens after a threshold.

    Retriable frames look this hook up in the task's container and stop
    retrying while it is open. Attach it for TASK_LIFECYCLE and/or
    RETRY_EVENTS to feed it, or for NoInterest to drive it manually.
    """

    def __init__(self, threshold: int = 3) -> None:
        if threshold < 1:
            raise ValueError("threshold must be >= 1")
        self.threshold = threshold
        self.consecutive_failures = 0
        self._tripped = False

    @property
    def is_open(self) -> bool:
        return self._tripped or self.consecutive_failures >= self.threshold

    def trip(self) -> None:
        self._tripped = True

    def reset(self) -> None:
        self._tripped = False
        self.consecutive_failures = 0

    async def on_event(self, event: TaskHookEvent) -> None:
        if isinstance(event, OnRetryAttemptEnd):
            failed = event.error is not None
        elif isinstance(event, OnTaskEnd):
            if event.status in NEUTRAL_STATUSES:
                return
            failed = event.status in FAILED_STATUSES
        else:
            return

        if failed:
            self.consecutive_failures += 1
        else:
            self.consecutive_failures = 0


class ErrorHandlerHook(TaskHook):
    """Calls ``handler(error, event)`` whenever a run ends with an error.

    Attach for OnTaskEnd.
    """

    def __init__(self, handler: Callable[[Exception, OnTaskEnd], Awaitable[None] | None]) -> None:
        self.handler = handler

    async def on_event(self, event: TaskHookEvent) -> None:
        if not isinstance(event, OnTaskEnd) or event.error is None:
            return
        result: Any = self.handler(event.error, event)
        if inspect.isawaitable(result):
            await result
