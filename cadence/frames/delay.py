"""Delay frame."""

from datetime import timedelta

from cadence.clock import to_timedelta
from cadence.frames.base import FrameOutcome, TaskFrame
from cadence.hooks.events import OnDelayEnd, OnDelayStart
from cadence.task.context import TaskContext


class DelayFrame(TaskFrame):
    """Waits ``delay`` on the task's clock, then runs the inner frame."""

    frame_type = "delay"

    def __init__(self, inner: TaskFrame, delay: float | timedelta) -> None:
        self.inner = inner
        self.delay = to_timedelta(delay)
        if self.delay < timedelta(0):
            raise ValueError("DelayFrame delay must not be negative")

    @property
    def children(self) -> tuple[TaskFrame, ...]:
        return (self.inner,)

    async def execute(self, ctx: TaskContext) -> FrameOutcome:
        seconds = self.delay.total_seconds()
        await ctx.emit(OnDelayStart, delay_seconds=seconds)
        await ctx.sleep(self.delay)
        await ctx.emit(OnDelayEnd, delay_seconds=seconds)
        return await self.inner.execute(ctx)
