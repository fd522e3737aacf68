"""Frame dependencies and the dependency frame.

Dependencies compose into boolean expressions with ``&``, ``|``, ``^`` and
``~``. A disabled dependency counts as resolved, so it can be switched off
without rebuilding the frame tree.
"""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Sequence
from datetime import timedelta
from enum import Enum
from typing import TYPE_CHECKING, Literal

from cadence.clock import to_timedelta
from cadence.errors import DependencyUnresolvedError
from cadence.frames.base import FrameOutcome, TaskFrame, action_name, call_user
from cadence.hooks.events import OnDependencyValidation
from cadence.observability.logging import get_logger
from cadence.task.context import TaskContext

if TYPE_CHECKING:
    from cadence.task.task import Task

logger = get_logger(__name__)


class FrameDependency(ABC):
    """A condition a DependencyFrame waits on."""

    def __init__(self, name: str | None = None) -> None:
        self.name = name or type(self).__name__
        self.enabled = True

    @abstractmethod
    async def check(self) -> bool:
        """Evaluate the condition itself, ignoring the enabled switch."""

    async def is_resolved(self) -> bool:
        if not self.enabled:
            return True
        return await self.check()

    def enable(self) -> None:
        self.enabled = True

    def disable(self) -> None:
        self.enabled = False

    def __and__(self, other: "FrameDependency") -> "LogicalDependency":
        return LogicalDependency("and", (self, other))

    def __or__(self, other: "FrameDependency") -> "LogicalDependency":
        return LogicalDependency("or", (self, other))

    def __xor__(self, other: "FrameDependency") -> "LogicalDependency":
        return LogicalDependency("xor", (self, other))

    def __invert__(self) -> "LogicalDependency":
        return LogicalDependency("not", (self,))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


class FlagDependency(FrameDependency):
    """Resolved while its flag is set."""

    def __init__(self, resolved: bool = False, name: str | None = None) -> None:
        super().__init__(name)
        self.resolved = resolved

    def resolve(self) -> None:
        self.resolved = True

    def unresolve(self) -> None:
        self.resolved = False

    async def check(self) -> bool:
        return self.resolved


class DynamicDependency(FrameDependency):
    """Resolved when a sync or async callable returns true."""

    def __init__(self, func: Callable[[], bool | Awaitable[bool]], name: str | None = None) -> None:
        super().__init__(name or action_name(func))
        self.func = func

    async def check(self) -> bool:
        return bool(await call_user(self.func))


class TaskDependency(FrameDependency):
    """Resolved once another task has finished ``minimum_runs`` relevant runs.

    ``counts`` selects which runs are relevant: successful ones (default),
    failed ones, or any finished run.
    """

    def __init__(
        self,
        task: "Task",
        minimum_runs: int = 1,
        counts: Literal["success", "failure", "any"] = "success",
        name: str | None = None,
    ) -> None:
        if minimum_runs < 1:
            raise ValueError("minimum_runs must be >= 1")
        super().__init__(name or f"task:{task.name or task.id}")
        self.task = task
        self.minimum_runs = minimum_runs
        self.counts = counts

    async def check(self) -> bool:
        history = self.task.history
        if self.counts == "success":
            relevant = history.successes
        elif self.counts == "failure":
            relevant = history.failures
        else:
            relevant = history.runs
        return relevant >= self.minimum_runs


class LogicalDependency(FrameDependency):
    """Boolean combination of other dependencies."""

    OPERATORS = ("and", "or", "xor", "not")

    def __init__(self, operator: str, operands: Sequence[FrameDependency], name: str | None = None) -> None:
        if operator not in self.OPERATORS:
            raise ValueError(f"Unknown logical operator: {operator}")
        if operator == "not" and len(operands) != 1:
            raise ValueError("'not' takes exactly one operand")
        if operator != "not" and len(operands) < 2:
            raise ValueError(f"'{operator}' takes at least two operands")
        self.operator = operator
        self.operands = tuple(operands)
        super().__init__(name or self._describe())

    def _describe(self) -> str:
        if self.operator == "not":
            return f"not {self.operands[0].name}"
        return "(" + f" {self.operator} ".join(op.name for op in self.operands) + ")"

    async def check(self) -> bool:
        if self.operator == "not":
            return not await self.operands[0].is_resolved()
        if self.operator == "and":
            for operand in self.operands:
                if not await operand.is_resolved():
                    return False
            return True
        if self.operator == "or":
            for operand in self.operands:
                if await operand.is_resolved():
                    return True
            return False
        resolved = [await operand.is_resolved() for operand in self.operands]
        return sum(resolved) % 2 == 1


def all_of(*dependencies: FrameDependency) -> FrameDependency:
    return dependencies[0] if len(dependencies) == 1 else LogicalDependency("and", dependencies)


def any_of(*dependencies: FrameDependency) -> FrameDependency:
    return dependencies[0] if len(dependencies) == 1 else LogicalDependency("or", dependencies)


class DependentBehavior(str, Enum):
    """What a DependencyFrame does when its deadline passes unresolved."""

    FAIL = "fail"
    SUCCEED = "succeed"


class DependencyFrame(TaskFrame):
    """Blocks until the dependency expression resolves, then runs the inner frame.

    Without a ``timeout`` the expression is checked once. With one, it is
    re-checked every ``poll_interval`` until the deadline. Unresolved at the
    deadline raises DependencyUnresolvedError, or returns success without
    running the inner frame under DependentBehavior.SUCCEED.
    """

    frame_type = "dependency"

    def __init__(
        self,
        inner: TaskFrame,
        dependency: FrameDependency | Sequence[FrameDependency],
        behavior: DependentBehavior = DependentBehavior.FAIL,
        timeout: float | timedelta | None = None,
        poll_interval: float | timedelta = 0.5,
    ) -> None:
        if isinstance(dependency, FrameDependency):
            self.dependency = dependency
        else:
            if not dependency:
                raise ValueError("DependencyFrame requires at least one dependency")
            self.dependency = all_of(*dependency)
        self.inner = inner
        self.behavior = DependentBehavior(behavior)
        self.timeout = to_timedelta(timeout) if timeout is not None else None
        self.poll_interval = to_timedelta(poll_interval)
        if self.poll_interval <= timedelta(0):
            raise ValueError("poll_interval must be positive")

    @property
    def children(self) -> tuple[TaskFrame, ...]:
        return (self.inner,)

    async def _wait_resolved(self, ctx: TaskContext) -> bool:
        deadline = ctx.clock.now() + self.timeout if self.timeout is not None else None
        while True:
            ctx.token.raise_if_cancelled()
            if await self.dependency.is_resolved():
                return True
            if deadline is None:
                return False
            remaining = deadline - ctx.clock.now()
            if remaining <= timedelta(0):
                return False
            await ctx.sleep(min(self.poll_interval, remaining))

    async def execute(self, ctx: TaskContext) -> FrameOutcome:
        resolved = await self._wait_resolved(ctx)
        await ctx.emit(OnDependencyValidation, dependency=self.dependency.name, resolved=resolved)
        if resolved:
            return await self.inner.execute(ctx)

        logger.info(
            "dependency_unresolved",
            task_id=str(ctx.task.id),
            dependency=self.dependency.name,
            behavior=self.behavior.value,
        )
        if self.behavior == DependentBehavior.SUCCEED:
            return FrameOutcome.SUCCESS
        raise DependencyUnresolvedError(f"Dependency {self.dependency.name} unresolved")
