"""Schedule interface."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from cadence.task.models import RunHistory


class TaskSchedule(ABC):
    """Computes when a task fires next.

    ``next_fire_time`` is called on registration and each time a firing is
    consumed. Returning None ends the task's firings. Any exception raised
    here is converted by the scheduler into a ScheduleError that is terminal
    for this task only.
    """

    schedule_type: str = "schedule"

    @abstractmethod
    def next_fire_time(self, history: RunHistory) -> datetime | None:
        pass

    @abstractmethod
    def to_config(self) -> dict[str, Any]:
        """Serializable description, the inverse of ``from_config``."""

    @classmethod
    @abstractmethod
    def from_config(cls, config: dict[str, Any]) -> "TaskSchedule":
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.to_config()!r})"
