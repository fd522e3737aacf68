"""Execution context handed to every frame of a running task."""

from datetime import timedelta
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from cadence.aio import race
from cadence.clock import SchedulerClock, to_timedelta
from cadence.errors import FrameCancelledError
from cadence.hooks.container import TaskHookContainer
from cadence.hooks.events import TaskHookEvent
from cadence.task.cancellation import CancellationToken

if TYPE_CHECKING:
    from cadence.task.task import Task


class TaskContext:
    """Clock, cancellation token and hook container for one run.

    Child contexts share everything except the token, which is derived from
    the parent's so that cancelling a subtree leaves siblings untouched.
    """

    def __init__(
        self,
        task: "Task",
        clock: SchedulerClock,
        token: CancellationToken | None = None,
        run_id: UUID | None = None,
    ) -> None:
        self.task = task
        self.clock = clock
        self.token = token or CancellationToken()
        self.run_id = run_id or uuid4()

    @property
    def hooks(self) -> TaskHookContainer:
        return self.task.hooks

    def child(self) -> "TaskContext":
        return TaskContext(self.task, self.clock, self.token.child(), self.run_id)

    async def emit(self, event_type: type[TaskHookEvent], **payload: Any) -> None:
        """Build an event stamped with task identity and clock time, then emit it."""
        event = event_type(
            task_id=self.task.id,
            task_name=self.task.name,
            run_id=self.run_id,
            timestamp=self.clock.now(),
            **payload,
        )
        await self.task.hooks.emit(event)

    async def sleep(self, duration: float | timedelta) -> None:
        """Wait on the clock; raise FrameCancelledError if cancelled meanwhile."""
        self.token.raise_if_cancelled()
        delay = to_timedelta(duration)
        if delay <= timedelta(0):
            return
        winner, _ = await race(
            self.clock.idle_to(self.clock.now() + delay),
            self.token.wait(),
        )
        if winner == 1:
            raise FrameCancelledError(reason=self.token.reason)
