"""One-shot schedules."""

from datetime import datetime
from typing import Any

from cadence.schedule.base import TaskSchedule
from cadence.task.models import RunHistory


class ImmediateSchedule(TaskSchedule):
    """Fires once, as soon as the task is registered."""

    schedule_type = "immediate"

    def next_fire_time(self, history: RunHistory) -> datetime | None:
        if history.last_fire is not None:
            return None
        return history.registered_at

    def to_config(self) -> dict[str, Any]:
        return {"type": self.schedule_type}

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "ImmediateSchedule":
        return cls()


class OnceSchedule(TaskSchedule):
    """Fires once at a fixed instant."""

    schedule_type = "once"

    def __init__(self, at: datetime) -> None:
        if at.tzinfo is None:
            raise ValueError("OnceSchedule requires a timezone-aware datetime")
        self.at = at

    def next_fire_time(self, history: RunHistory) -> datetime | None:
        if history.last_fire is not None:
            return None
        return self.at

    def to_config(self) -> dict[str, Any]:
        return {"type": self.schedule_type, "at": self.at.isoformat()}

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "OnceSchedule":
        return cls(datetime.fromisoformat(config["at"]))
