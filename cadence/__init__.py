"""Cadence: a composable single-node task scheduling engine.

A task pairs an execution frame tree (what runs) with a schedule (when),
a strategy (how overlapping firings are resolved) and hooks (how it is
observed).
"""

from cadence.clock import AdvanceableClock, SchedulerClock, SystemClock, VirtualClock
from cadence.errors import (
    CadenceError,
    ConditionFailedError,
    DependencyUnresolvedError,
    DispatchError,
    FrameCancelledError,
    FrameExecutionError,
    FrameIndexError,
    FrameTimeoutError,
    HookError,
    RetryExhaustedError,
    ScheduleError,
    SnapshotError,
    UserError,
)
from cadence.frames import FrameBuilder, FrameOutcome, FunctionFrame, TaskFrame
from cadence.schedule import CronSchedule, ImmediateSchedule, IntervalSchedule, OnceSchedule, TaskSchedule
from cadence.scheduler import Scheduler
from cadence.strategy import (
    AllowParallelStrategy,
    CancelCurrentStrategy,
    SchedulingStrategy,
    SequentialStrategy,
    SkipIfRunningStrategy,
)
from cadence.task import TaskContext, TaskPriority, TaskStatus
from cadence.task.task import Task, TaskRunResult

__all__ = [
    # Core
    "Task",
    "TaskRunResult",
    "TaskContext",
    "TaskPriority",
    "TaskStatus",
    "Scheduler",
    # Clocks
    "SchedulerClock",
    "AdvanceableClock",
    "SystemClock",
    "VirtualClock",
    # Frames
    "TaskFrame",
    "FunctionFrame",
    "FrameOutcome",
    "FrameBuilder",
    # Schedules
    "TaskSchedule",
    "IntervalSchedule",
    "ImmediateSchedule",
    "OnceSchedule",
    "CronSchedule",
    # Strategies
    "SchedulingStrategy",
    "SequentialStrategy",
    "CancelCurrentStrategy",
    "SkipIfRunningStrategy",
    "AllowParallelStrategy",
    # Errors
    "CadenceError",
    "ScheduleError",
    "FrameExecutionError",
    "FrameTimeoutError",
    "RetryExhaustedError",
    "DependencyUnresolvedError",
    "FrameCancelledError",
    "UserError",
    "ConditionFailedError",
    "FrameIndexError",
    "HookError",
    "DispatchError",
    "SnapshotError",
]
