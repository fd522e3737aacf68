"""Fallback frame."""

from cadence.errors import FrameCancelledError, FrameExecutionError
from cadence.frames.base import FrameOutcome, TaskFrame
from cadence.hooks.events import OnFallback
from cadence.observability.logging import get_logger
from cadence.task.context import TaskContext

logger = get_logger(__name__)


class FallbackFrame(TaskFrame):
    """Runs ``secondary`` when ``primary`` fails; the secondary's outcome wins."""

    frame_type = "fallback"

    def __init__(self, primary: TaskFrame, secondary: TaskFrame) -> None:
        self.primary = primary
        self.secondary = secondary

    @property
    def children(self) -> tuple[TaskFrame, ...]:
        return (self.primary, self.secondary)

    async def execute(self, ctx: TaskContext) -> FrameOutcome:
        try:
            return await self.primary.execute(ctx)
        except FrameCancelledError:
            raise
        except FrameExecutionError as exc:
            logger.info(
                "frame_fallback",
                task_id=str(ctx.task.id),
                error_code=exc.error_code.value,
                error=str(exc),
            )
            await ctx.emit(OnFallback, error=exc)
        return await self.secondary.execute(ctx)
