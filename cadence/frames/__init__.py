"""Execution frames: composable units that decide how a task's work runs."""

from cadence.frames.base import (
    FrameOutcome,
    FunctionFrame,
    NoOpFrame,
    TaskAction,
    TaskFrame,
    as_frame,
)
from cadence.frames.builder import FrameBuilder
from cadence.frames.collection import ParallelFrame, SequentialFrame
from cadence.frames.conditional import ConditionalFrame
from cadence.frames.delay import DelayFrame
from cadence.frames.dependency import (
    DependencyFrame,
    DependentBehavior,
    DynamicDependency,
    FlagDependency,
    FrameDependency,
    LogicalDependency,
    TaskDependency,
    all_of,
    any_of,
)
from cadence.frames.fallback import FallbackFrame
from cadence.frames.retry import (
    ConstantBackoff,
    ExponentialBackoff,
    JitterBackoff,
    RetriableFrame,
    RetryBackoff,
)
from cadence.frames.select import SelectFrame
from cadence.frames.timeout import TimeoutFrame

__all__ = [
    "FrameOutcome",
    "TaskFrame",
    "TaskAction",
    "FunctionFrame",
    "NoOpFrame",
    "as_frame",
    "RetriableFrame",
    "RetryBackoff",
    "ConstantBackoff",
    "ExponentialBackoff",
    "JitterBackoff",
    "TimeoutFrame",
    "FallbackFrame",
    "ConditionalFrame",
    "SequentialFrame",
    "ParallelFrame",
    "SelectFrame",
    "DelayFrame",
    "DependencyFrame",
    "DependentBehavior",
    "FrameDependency",
    "FlagDependency",
    "DynamicDependency",
    "TaskDependency",
    "LogicalDependency",
    "all_of",
    "any_of",
    "FrameBuilder",
]
