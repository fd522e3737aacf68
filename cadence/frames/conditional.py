"""Conditional frame."""

from collections.abc import Awaitable, Callable

from cadence.errors import ConditionFailedError
from cadence.frames.base import FrameOutcome, TaskFrame, action_name, call_user
from cadence.hooks.events import OnFalseyValue, OnTruthyValue
from cadence.task.context import TaskContext

Predicate = Callable[[TaskContext], bool | Awaitable[bool]]


class ConditionalFrame(TaskFrame):
    """Evaluates a predicate and runs the inner frame only when it holds.

    A false predicate yields FrameOutcome.SKIPPED, which is neither success
    nor failure. Optionally a ``fallback`` frame runs instead, or
    ``error_on_false`` turns the skip into ConditionFailedError.
    """

    frame_type = "condition"

    def __init__(
        self,
        inner: TaskFrame,
        predicate: Predicate,
        fallback: TaskFrame | None = None,
        error_on_false: bool = False,
    ) -> None:
        self.inner = inner
        self.predicate = predicate
        self.fallback = fallback
        self.error_on_false = error_on_false

    @property
    def children(self) -> tuple[TaskFrame, ...]:
        if self.fallback is None:
            return (self.inner,)
        return (self.inner, self.fallback)

    @property
    def predicate_name(self) -> str:
        return action_name(self.predicate)

    async def _evaluate(self, ctx: TaskContext) -> bool:
        return bool(await call_user(self.predicate, ctx))

    async def execute(self, ctx: TaskContext) -> FrameOutcome:
        ctx.token.raise_if_cancelled()
        if await self._evaluate(ctx):
            await ctx.emit(OnTruthyValue)
            return await self.inner.execute(ctx)

        await ctx.emit(OnFalseyValue)
        if self.fallback is not None:
            return await self.fallback.execute(ctx)
        if self.error_on_false:
            raise ConditionFailedError(f"Condition {self.predicate_name} evaluated to false")
        return FrameOutcome.SKIPPED
