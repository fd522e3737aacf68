"""Schedules: when a task fires."""

from typing import Any

from cadence.schedule.base import TaskSchedule
from cadence.schedule.cron import CronSchedule
from cadence.schedule.immediate import ImmediateSchedule, OnceSchedule
from cadence.schedule.interval import IntervalSchedule

SCHEDULES: dict[str, type[TaskSchedule]] = {
    schedule.schedule_type: schedule
    for schedule in (IntervalSchedule, ImmediateSchedule, OnceSchedule, CronSchedule)
}


def schedule_from_config(config: dict[str, Any]) -> TaskSchedule:
    """Rebuild a schedule from ``TaskSchedule.to_config`` output."""
    schedule_type = config.get("type")
    if schedule_type not in SCHEDULES:
        raise ValueError(f"Unknown schedule type: {schedule_type!r}")
    return SCHEDULES[schedule_type].from_config(config)


__all__ = [
    "TaskSchedule",
    "IntervalSchedule",
    "ImmediateSchedule",
    "OnceSchedule",
    "CronSchedule",
    "SCHEDULES",
    "schedule_from_config",
]
