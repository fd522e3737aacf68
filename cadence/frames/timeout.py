"""Timeout frame."""

import asyncio
from datetime import timedelta

from cadence.aio import discard
from cadence.clock import to_timedelta
from cadence.errors import FrameCancelledError, FrameTimeoutError
from cadence.frames.base import FrameOutcome, TaskFrame
from cadence.hooks.events import OnTimeout
from cadence.observability.logging import get_logger
from cadence.task.context import TaskContext

logger = get_logger(__name__)


class TimeoutFrame(TaskFrame):
    """Races the inner frame against a clock deadline.

    On elapse the inner frame's token is cancelled, OnTimeout is emitted once
    and FrameTimeoutError is raised without waiting for the inner frame to
    acknowledge. If the inner frame finishes first its result, failure
    included, propagates unchanged.
    """

    frame_type = "timeout"

    def __init__(self, inner: TaskFrame, duration: float | timedelta) -> None:
        self.inner = inner
        self.duration = to_timedelta(duration)
        if self.duration <= timedelta(0):
            raise ValueError("TimeoutFrame duration must be positive")

    @property
    def children(self) -> tuple[TaskFrame, ...]:
        return (self.inner,)

    async def execute(self, ctx: TaskContext) -> FrameOutcome:
        inner_ctx = ctx.child()
        deadline = ctx.clock.now() + self.duration

        inner = asyncio.ensure_future(self.inner.execute(inner_ctx))
        timer = asyncio.ensure_future(ctx.clock.idle_to(deadline))
        cancelled = asyncio.ensure_future(ctx.token.wait())
        try:
            done, _ = await asyncio.wait({inner, timer, cancelled}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            inner_ctx.token.cancel("aborted")
            for future in (inner, timer, cancelled):
                discard(future)
            raise

        discard(timer)
        discard(cancelled)

        if inner in done:
            return inner.result()

        if cancelled in done:
            inner_ctx.token.cancel(ctx.token.reason)
            discard(inner)
            raise FrameCancelledError(reason=ctx.token.reason)

        seconds = self.duration.total_seconds()
        inner_ctx.token.cancel("timeout")
        discard(inner)
        logger.info("frame_timed_out", task_id=str(ctx.task.id), timeout_seconds=seconds)
        await ctx.emit(OnTimeout, timeout_seconds=seconds)
        raise FrameTimeoutError(f"Frame timed out after {seconds}s", timeout_seconds=seconds)
