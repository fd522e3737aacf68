"""Task: the schedulable unit of work."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID, uuid4

from cadence.clock import SchedulerClock
from cadence.errors import (
    FrameCancelledError,
    FrameExecutionError,
    FrameTimeoutError,
    UserError,
)
from cadence.frames.base import FrameOutcome, TaskAction, TaskFrame, as_frame
from cadence.hooks.base import HookCallable, TaskHook
from cadence.hooks.container import HookKind, TaskHookContainer
from cadence.hooks.events import OnTaskEnd, OnTaskStart
from cadence.observability.logging import get_logger
from cadence.schedule.base import TaskSchedule
from cadence.strategy import SchedulingStrategy, SequentialStrategy
from cadence.task.cancellation import CancellationToken
from cadence.task.context import TaskContext
from cadence.task.models import RunHistory, TaskPriority, TaskStatus

logger = get_logger(__name__)


@dataclass(frozen=True)
class TaskRunResult:
    """How one run of a task ended."""

    run_id: UUID
    status: TaskStatus
    started_at: datetime
    finished_at: datetime
    error: FrameExecutionError | None = None

    @property
    def duration_seconds(self) -> float:
        return (self.finished_at - self.started_at).total_seconds()


class Task:
    """A frame tree plus the policies that decide when and how it runs.

    The frame tree is fixed at construction. Status and history are updated
    by the scheduler and by ``run``.
    """

    def __init__(
        self,
        frame: TaskFrame | TaskAction,
        schedule: TaskSchedule,
        *,
        strategy: SchedulingStrategy | None = None,
        priority: TaskPriority = TaskPriority.MEDIUM,
        name: str | None = None,
        max_runs: int | None = None,
        task_id: UUID | None = None,
    ) -> None:
        if max_runs is not None and max_runs < 1:
            raise ValueError("max_runs must be >= 1")
        self.id = task_id or uuid4()
        self.frame = as_frame(frame)
        self.schedule = schedule
        self.strategy = strategy or SequentialStrategy()
        self.priority = TaskPriority(priority)
        self.name = name
        self.max_runs = max_runs
        self.hooks = TaskHookContainer(owner=name or str(self.id))
        self.status = TaskStatus.IDLE
        self.history = RunHistory()

    def __repr__(self) -> str:
        return f"Task(id={self.id}, name={self.name!r}, status={self.status.value})"

    @property
    def exhausted(self) -> bool:
        """True once ``max_runs`` firings have been consumed."""
        return self.max_runs is not None and self.history.fires >= self.max_runs

    async def attach_hook(self, hook: TaskHook | HookCallable, kind: HookKind) -> TaskHook:
        return await self.hooks.attach(hook, kind)

    async def detach_hook(self, hook: TaskHook | HookCallable, kind: HookKind) -> bool:
        return await self.hooks.detach(hook, kind)

    async def run(
        self,
        clock: SchedulerClock,
        token: CancellationToken | None = None,
        run_id: UUID | None = None,
    ) -> TaskRunResult:
        """Execute the frame tree once and record the outcome.

        Failures are captured in the result rather than raised. Emits
        OnTaskStart before and OnTaskEnd after the frame tree.
        """
        ctx = TaskContext(self, clock, token, run_id)
        started_at = clock.now()
        log = logger.bind(task_id=str(self.id), task_name=self.name, run_id=str(ctx.run_id))
        log.debug("task_run_started")
        await ctx.emit(OnTaskStart)

        error: FrameExecutionError | None = None
        try:
            outcome = await self.frame.execute(ctx)
            status = TaskStatus.SKIPPED if outcome == FrameOutcome.SKIPPED else TaskStatus.COMPLETED
        except FrameTimeoutError as exc:
            status, error = TaskStatus.TIMED_OUT, exc
        except FrameCancelledError as exc:
            status, error = TaskStatus.CANCELED, exc
        except FrameExecutionError as exc:
            status, error = TaskStatus.FAILED, exc
        except Exception as exc:
            # Predicates and selectors are user code outside any FunctionFrame.
            status, error = TaskStatus.FAILED, UserError(exc)
            error.__cause__ = exc

        finished_at = clock.now()
        self.history.record_outcome(status, finished_at)
        if error is None:
            log.info("task_run_finished", status=status.value)
        else:
            log.warning(
                "task_run_finished",
                status=status.value,
                error_code=error.error_code.value,
                error=str(error),
            )
        await ctx.emit(OnTaskEnd, status=status.value, error=error)
        return TaskRunResult(
            run_id=ctx.run_id,
            status=status,
            started_at=started_at,
            finished_at=finished_at,
            error=error,
        )
