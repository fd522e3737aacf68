"""Select frame: picks one child at run time."""

from collections.abc import Awaitable, Callable, Sequence

from cadence.errors import FrameIndexError
from cadence.frames.base import FrameOutcome, TaskFrame, action_name, call_user
from cadence.hooks.events import OnFrameSelection
from cadence.task.context import TaskContext

Selector = Callable[[TaskContext], int | Awaitable[int]]


class SelectFrame(TaskFrame):
    """Runs the child whose index ``selector`` returns."""

    frame_type = "select"

    def __init__(self, frames: Sequence[TaskFrame], selector: Selector) -> None:
        if not frames:
            raise ValueError("SelectFrame requires at least one child frame")
        self.frames = tuple(frames)
        self.selector = selector

    @property
    def children(self) -> tuple[TaskFrame, ...]:
        return self.frames

    @property
    def selector_name(self) -> str:
        return action_name(self.selector)

    async def execute(self, ctx: TaskContext) -> FrameOutcome:
        ctx.token.raise_if_cancelled()
        index = await call_user(self.selector, ctx)
        if not 0 <= index < len(self.frames):
            raise FrameIndexError(index, len(self.frames))
        await ctx.emit(OnFrameSelection, index=index)
        return await self.frames[index].execute(ctx)
