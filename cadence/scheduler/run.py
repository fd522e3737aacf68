"""A single dispatched run of a task."""

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime
from uuid import uuid4

from cadence.clock import SchedulerClock
from cadence.task.cancellation import CancellationToken
from cadence.task.task import Task, TaskRunResult

CompletionCallback = Callable[["TaskRun", TaskRunResult | None], Awaitable[None]]


class TaskRun:
    """Handle the scheduler keeps for an in-flight run.

    ``execute`` is invoked by a dispatcher worker. The completion callback
    always fires, with None as result if the worker itself was torn down.
    """

    def __init__(
        self,
        task: Task,
        clock: SchedulerClock,
        fire_at: datetime,
        on_complete: CompletionCallback | None = None,
    ) -> None:
        self.id = uuid4()
        self.task = task
        self.clock = clock
        self.fire_at = fire_at
        self.token = CancellationToken()
        self.result: TaskRunResult | None = None
        self._on_complete = on_complete
        self._done = asyncio.Event()

    def __repr__(self) -> str:
        return f"TaskRun(id={self.id}, task_id={self.task.id})"

    @property
    def done(self) -> bool:
        return self._done.is_set()

    def cancel(self, reason: str = "cancelled") -> None:
        self.token.cancel(reason)

    async def wait(self) -> TaskRunResult | None:
        await self._done.wait()
        return self.result

    async def execute(self) -> TaskRunResult | None:
        try:
            self.result = await self.task.run(self.clock, self.token, self.id)
        finally:
            self._done.set()
            if self._on_complete is not None:
                await asyncio.shield(self._on_complete(self, self.result))
        return self.result
