"""Overlap strategies: what to do when a task fires while a run is in flight."""

from abc import ABC, abstractmethod
from enum import Enum


class StrategyDecision(str, Enum):
    PROCEED = "proceed"
    DEFER = "defer"
    CANCEL_AND_RESTART = "cancel_and_restart"
    SKIP = "skip"


class SchedulingStrategy(ABC):
    """Decides how a new firing interacts with runs still in flight."""

    name: str = "strategy"

    @abstractmethod
    def decide(self, active_runs: int) -> StrategyDecision:
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"

    def __eq__(self, other: object) -> bool:
        return type(self) is type(other)

    def __hash__(self) -> int:
        return hash(type(self))


class SequentialStrategy(SchedulingStrategy):
    """Defers the firing until the current run finishes. Never drops it."""

    name = "sequential"

    def decide(self, active_runs: int) -> StrategyDecision:
        return StrategyDecision.DEFER if active_runs else StrategyDecision.PROCEED


class CancelCurrentStrategy(SchedulingStrategy):
    """Cancels the in-flight run(s) and starts the new one."""

    name = "cancel_current"

    def decide(self, active_runs: int) -> StrategyDecision:
        return StrategyDecision.CANCEL_AND_RESTART if active_runs else StrategyDecision.PROCEED


class SkipIfRunningStrategy(SchedulingStrategy):
    """Drops the firing while a run is in flight."""

    name = "skip_if_running"

    def decide(self, active_runs: int) -> StrategyDecision:
        return StrategyDecision.SKIP if active_runs else StrategyDecision.PROCEED


class AllowParallelStrategy(SchedulingStrategy):
    """Runs overlapping firings concurrently."""

    name = "allow_parallel"

    def decide(self, active_runs: int) -> StrategyDecision:
        return StrategyDecision.PROCEED


STRATEGIES: dict[str, type[SchedulingStrategy]] = {
    strategy.name: strategy
    for strategy in (
        SequentialStrategy,
        CancelCurrentStrategy,
        SkipIfRunningStrategy,
        AllowParallelStrategy,
    )
}


def strategy_from_name(name: str) -> SchedulingStrategy:
    try:
        return STRATEGIES[name]()
    except KeyError:
        raise ValueError(f"Unknown scheduling strategy: {name}") from None
