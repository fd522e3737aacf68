"""Fixed-interval schedule."""

import random
from datetime import datetime, timedelta
from typing import Any

from cadence.clock import to_timedelta
from cadence.schedule.base import TaskSchedule
from cadence.task.models import RunHistory


class IntervalSchedule(TaskSchedule):
    """Fires every ``period``, anchored on fire times rather than completions.

    The first firing is ``start`` if given, otherwise one period after
    registration. Later firings are one period after the previous fire time,
    so slow runs do not make the cadence drift. ``jitter`` adds a random
    offset in ``[0, jitter]`` on top of that grid; the previous fire time is
    snapped back onto the grid first, so offsets never accumulate.
    """

    schedule_type = "interval"

    def __init__(
        self,
        period: float | timedelta,
        start: datetime | None = None,
        jitter: float | timedelta | None = None,
    ) -> None:
        self.period = to_timedelta(period)
        if self.period <= timedelta(0):
            raise ValueError("IntervalSchedule period must be positive")
        self.start = start
        self.jitter = to_timedelta(jitter) if jitter is not None else None
        if self.jitter is not None and not timedelta(0) <= self.jitter < self.period:
            raise ValueError("IntervalSchedule jitter must be within [0, period)")

    def _first(self, history: RunHistory) -> datetime:
        if self.start is not None:
            return self.start
        return history.registered_at + self.period

    def _anchor(self, history: RunHistory) -> datetime:
        if history.last_fire is None:
            return self._first(history)
        if not self.jitter:
            return history.last_fire + self.period
        first = self._first(history)
        if history.last_fire < first:
            return first
        return first + self.period * ((history.last_fire - first) // self.period + 1)

    def next_fire_time(self, history: RunHistory) -> datetime | None:
        fire_at = self._anchor(history)
        if self.jitter:
            fire_at += timedelta(seconds=random.uniform(0, self.jitter.total_seconds()))
        return fire_at

    def to_config(self) -> dict[str, Any]:
        return {
            "type": self.schedule_type,
            "period_seconds": self.period.total_seconds(),
            "start": self.start.isoformat() if self.start else None,
            "jitter_seconds": self.jitter.total_seconds() if self.jitter else None,
        }

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "IntervalSchedule":
        start = config.get("start")
        return cls(
            period=config["period_seconds"],
            start=datetime.fromisoformat(start) if start else None,
            jitter=config.get("jitter_seconds"),
        )
