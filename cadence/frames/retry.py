"""Retriable frame and backoff strategies."""

import random
from abc import ABC, abstractmethod
from datetime import timedelta

from cadence.clock import to_timedelta
from cadence.errors import FrameCancelledError, FrameExecutionError, RetryExhaustedError
from cadence.frames.base import FrameOutcome, TaskFrame
from cadence.hooks.builtin import CircuitBreakerHook
from cadence.hooks.events import OnRetryAttemptEnd, OnRetryAttemptStart
from cadence.observability.logging import get_logger
from cadence.task.context import TaskContext

logger = get_logger(__name__)


class RetryBackoff(ABC):
    """Computes the wait before retry number ``retry`` (1 for the first retry)."""

    @abstractmethod
    def compute(self, retry: int) -> timedelta:
        pass


class ConstantBackoff(RetryBackoff):
    """Waits the same duration before every retry. Zero means instant retries."""

    def __init__(self, delay: float | timedelta = 0.0) -> None:
        self.delay = to_timedelta(delay)

    def compute(self, retry: int) -> timedelta:
        return self.delay

    def __repr__(self) -> str:
        return f"ConstantBackoff({self.delay.total_seconds()})"


class ExponentialBackoff(RetryBackoff):
    """``initial * factor ** (retry - 1)`` seconds, capped at ``max_delay``."""

    def __init__(
        self,
        initial: float = 1.0,
        factor: float = 2.0,
        max_delay: float | None = None,
    ) -> None:
        if initial < 0 or factor < 1:
            raise ValueError("ExponentialBackoff requires initial >= 0 and factor >= 1")
        self.initial = initial
        self.factor = factor
        self.max_delay = max_delay

    def compute(self, retry: int) -> timedelta:
        seconds = self.initial * self.factor ** max(retry - 1, 0)
        if self.max_delay is not None:
            seconds = min(seconds, self.max_delay)
        return timedelta(seconds=seconds)

    def __repr__(self) -> str:
        return f"ExponentialBackoff({self.initial}, {self.factor}, {self.max_delay})"


class JitterBackoff(RetryBackoff):
    """Randomly distorts another backoff by up to ``±factor`` of its value."""

    def __init__(self, inner: RetryBackoff, factor: float = 0.1) -> None:
        if not 0 <= factor <= 1:
            raise ValueError("JitterBackoff factor must be within [0, 1]")
        self.inner = inner
        self.factor = factor

    def compute(self, retry: int) -> timedelta:
        base = self.inner.compute(retry).total_seconds()
        return timedelta(seconds=max(0.0, base * (1 + random.uniform(-self.factor, self.factor))))

    def __repr__(self) -> str:
        return f"JitterBackoff({self.inner!r}, {self.factor})"


class RetriableFrame(TaskFrame):
    """Runs the inner frame up to ``attempts`` times.

    Emits OnRetryAttemptStart/OnRetryAttemptEnd around every attempt after
    the first. Cancellation is never retried. An open CircuitBreakerHook in
    the task's container stops further attempts early.
    """

    frame_type = "retry"

    def __init__(self, inner: TaskFrame, attempts: int, backoff: RetryBackoff | None = None) -> None:
        if attempts < 1:
            raise ValueError("RetriableFrame requires attempts >= 1")
        self.inner = inner
        self.attempts = attempts
        self.backoff = backoff or ConstantBackoff()

    @property
    def children(self) -> tuple[TaskFrame, ...]:
        return (self.inner,)

    def _breaker_open(self, ctx: TaskContext) -> bool:
        return any(hook.is_open for hook in ctx.hooks.get_all(CircuitBreakerHook))

    async def _attempt(self, ctx: TaskContext, attempt: int) -> FrameOutcome | FrameExecutionError:
        try:
            return await self.inner.execute(ctx)
        except FrameCancelledError:
            raise
        except FrameExecutionError as exc:
            logger.debug(
                "retry_attempt_failed",
                task_id=str(ctx.task.id),
                attempt=attempt,
                max_attempts=self.attempts,
                error=str(exc),
            )
            return exc

    async def execute(self, ctx: TaskContext) -> FrameOutcome:
        result = await self._attempt(ctx, 1)
        if isinstance(result, FrameOutcome):
            return result
        last_error = result
        attempts_made = 1

        for attempt in range(2, self.attempts + 1):
            if self._breaker_open(ctx):
                logger.info("retry_stopped_by_circuit_breaker", task_id=str(ctx.task.id), attempt=attempt)
                break
            await ctx.sleep(self.backoff.compute(attempt - 1))
            await ctx.emit(OnRetryAttemptStart, attempt=attempt, max_attempts=self.attempts)

            result = await self._attempt(ctx, attempt)
            attempts_made = attempt
            if isinstance(result, FrameOutcome):
                await ctx.emit(OnRetryAttemptEnd, attempt=attempt)
                return result
            await ctx.emit(OnRetryAttemptEnd, attempt=attempt, error=result)
            last_error = result

        raise RetryExhaustedError(last_error, attempts=attempts_made)
