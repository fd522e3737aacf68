"""Frames that own an ordered collection of children."""

import asyncio
from collections.abc import Sequence

from cadence.aio import discard
from cadence.errors import FrameExecutionError
from cadence.frames.base import FrameOutcome, TaskFrame
from cadence.hooks.events import OnChildEnd, OnChildStart
from cadence.task.context import TaskContext


def combine_outcomes(outcomes: Sequence[FrameOutcome]) -> FrameOutcome:
    """SKIPPED only when every child skipped."""
    if outcomes and all(outcome == FrameOutcome.SKIPPED for outcome in outcomes):
        return FrameOutcome.SKIPPED
    return FrameOutcome.SUCCESS


class SequentialFrame(TaskFrame):
    """Runs children in declared order and stops at the first failure."""

    frame_type = "sequential"

    def __init__(self, frames: Sequence[TaskFrame]) -> None:
        if not frames:
            raise ValueError("SequentialFrame requires at least one child frame")
        self.frames = tuple(frames)

    @property
    def children(self) -> tuple[TaskFrame, ...]:
        return self.frames

    async def execute(self, ctx: TaskContext) -> FrameOutcome:
        outcomes: list[FrameOutcome] = []
        for index, frame in enumerate(self.frames):
            ctx.token.raise_if_cancelled()
            await ctx.emit(OnChildStart, index=index)
            try:
                outcome = await frame.execute(ctx)
            except FrameExecutionError as exc:
                await ctx.emit(OnChildEnd, index=index, error=exc)
                raise
            await ctx.emit(OnChildEnd, index=index)
            outcomes.append(outcome)
        return combine_outcomes(outcomes)


class ParallelFrame(TaskFrame):
    """Runs all children concurrently; succeeds only if all succeed.

    With ``cancel_on_failure`` the first failure cancels the remaining
    siblings' tokens. Either way the first failure observed is raised.
    """

    frame_type = "parallel"

    def __init__(self, frames: Sequence[TaskFrame], cancel_on_failure: bool = True) -> None:
        if not frames:
            raise ValueError("ParallelFrame requires at least one child frame")
        self.frames = tuple(frames)
        self.cancel_on_failure = cancel_on_failure

    @property
    def children(self) -> tuple[TaskFrame, ...]:
        return self.frames

    async def _run_child(self, index: int, frame: TaskFrame, ctx: TaskContext) -> FrameOutcome:
        await ctx.emit(OnChildStart, index=index)
        try:
            outcome = await frame.execute(ctx)
        except FrameExecutionError as exc:
            await ctx.emit(OnChildEnd, index=index, error=exc)
            raise
        await ctx.emit(OnChildEnd, index=index)
        return outcome

    async def execute(self, ctx: TaskContext) -> FrameOutcome:
        ctx.token.raise_if_cancelled()
        contexts = [ctx.child() for _ in self.frames]
        pending = {
            asyncio.ensure_future(self._run_child(index, frame, child_ctx))
            for index, (frame, child_ctx) in enumerate(zip(self.frames, contexts, strict=True))
        }
        first_error: BaseException | None = None
        outcomes: list[FrameOutcome] = []

        try:
            while pending:
                done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                for future in done:
                    error = future.exception()
                    if error is None:
                        outcomes.append(future.result())
                    elif first_error is None:
                        first_error = error
                        if self.cancel_on_failure:
                            for child_ctx in contexts:
                                child_ctx.token.cancel("sibling failed")
        except asyncio.CancelledError:
            for child_ctx in contexts:
                child_ctx.token.cancel("aborted")
            for future in pending:
                discard(future)
            raise

        if first_error is not None:
            raise first_error
        return combine_outcomes(outcomes)
