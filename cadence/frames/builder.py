"""Fluent construction of decorated frame trees.

Options can be given in any order; ``build`` always nests them the same
way, innermost first::

    Fallback(Condition(Delay(Dependency(Retry(Timeout(base))))), secondary)

so a timeout bounds each attempt, retries sit inside the dependency gate,
and the fallback covers everything else.
"""

from collections.abc import Sequence
from datetime import timedelta

from cadence.frames.base import TaskAction, TaskFrame, as_frame
from cadence.frames.conditional import ConditionalFrame, Predicate
from cadence.frames.delay import DelayFrame
from cadence.frames.dependency import DependencyFrame, DependentBehavior, FrameDependency
from cadence.frames.fallback import FallbackFrame
from cadence.frames.retry import ConstantBackoff, RetriableFrame, RetryBackoff
from cadence.frames.timeout import TimeoutFrame


class FrameBuilder:
    """Collects decorator options for a base frame or action."""

    def __init__(self, base: TaskFrame | TaskAction) -> None:
        self._base = as_frame(base)
        self._timeout: float | timedelta | None = None
        self._retry: tuple[int, RetryBackoff] | None = None
        self._dependency: dict | None = None
        self._delay: float | timedelta | None = None
        self._condition: dict | None = None
        self._fallback: TaskFrame | None = None

    def with_timeout(self, duration: float | timedelta) -> "FrameBuilder":
        self._timeout = duration
        return self

    def with_retry(self, attempts: int, backoff: RetryBackoff | None = None) -> "FrameBuilder":
        self._retry = (attempts, backoff or ConstantBackoff())
        return self

    def with_instant_retry(self, attempts: int) -> "FrameBuilder":
        return self.with_retry(attempts, ConstantBackoff(0))

    def with_dependency(
        self,
        dependency: FrameDependency | Sequence[FrameDependency],
        behavior: DependentBehavior = DependentBehavior.FAIL,
        timeout: float | timedelta | None = None,
        poll_interval: float | timedelta = 0.5,
    ) -> "FrameBuilder":
        self._dependency = {
            "dependency": dependency,
            "behavior": behavior,
            "timeout": timeout,
            "poll_interval": poll_interval,
        }
        return self

    def with_delay(self, delay: float | timedelta) -> "FrameBuilder":
        self._delay = delay
        return self

    def with_condition(
        self,
        predicate: Predicate,
        fallback: TaskFrame | TaskAction | None = None,
        error_on_false: bool = False,
    ) -> "FrameBuilder":
        self._condition = {
            "predicate": predicate,
            "fallback": as_frame(fallback) if fallback is not None else None,
            "error_on_false": error_on_false,
        }
        return self

    def with_fallback(self, secondary: TaskFrame | TaskAction) -> "FrameBuilder":
        self._fallback = as_frame(secondary)
        return self

    def build(self) -> TaskFrame:
        frame = self._base
        if self._timeout is not None:
            frame = TimeoutFrame(frame, self._timeout)
        if self._retry is not None:
            attempts, backoff = self._retry
            frame = RetriableFrame(frame, attempts, backoff)
        if self._dependency is not None:
            frame = DependencyFrame(frame, **self._dependency)
        if self._delay is not None:
            frame = DelayFrame(frame, self._delay)
        if self._condition is not None:
            frame = ConditionalFrame(frame, **self._condition)
        if self._fallback is not None:
            frame = FallbackFrame(frame, self._fallback)
        return frame
