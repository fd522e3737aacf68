"""Cron-expression schedule backed by croniter."""

from datetime import UTC, datetime
from typing import Any

from croniter import croniter  # type: ignore[import-untyped]

from cadence.schedule.base import TaskSchedule
from cadence.task.models import RunHistory


class CronSchedule(TaskSchedule):
    """Fires at the instants matched by a cron expression (evaluated in UTC).

    Six-field expressions include seconds.
    """

    schedule_type = "cron"

    def __init__(self, expression: str) -> None:
        expression = expression.strip()
        if not croniter.is_valid(expression):
            raise ValueError(f"Invalid cron expression: {expression!r}")
        self.expression = expression

    def next_fire_time(self, history: RunHistory) -> datetime | None:
        base = history.last_fire or history.registered_at
        next_time = croniter(self.expression, base.astimezone(UTC)).get_next(datetime)
        if next_time.tzinfo is None:
            next_time = next_time.replace(tzinfo=UTC)
        return next_time

    def to_config(self) -> dict[str, Any]:
        return {"type": self.schedule_type, "expression": self.expression}

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "CronSchedule":
        return cls(config["expression"])
