"""Serializable task snapshots."""

from collections.abc import Mapping
from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from cadence.errors import SnapshotError
from cadence.persistence.codec import decode_frame, encode_frame
from cadence.schedule import schedule_from_config
from cadence.strategy import strategy_from_name
from cadence.task.models import RunHistory, TaskPriority, utc_now
from cadence.task.task import Task


class TaskSnapshot(BaseModel):
    """Everything needed to reconstruct a task, minus user code."""

    task_id: UUID = Field(description="Stable task identifier")
    name: str | None = Field(default=None, description="Task debug label")
    priority: TaskPriority = Field(description="Task priority")
    strategy: str = Field(description="Scheduling strategy name")
    schedule: dict[str, Any] = Field(description="Encoded schedule")
    frame: dict[str, Any] = Field(description="Encoded frame tree")
    max_runs: int | None = Field(default=None, ge=1, description="Firing limit")
    history: RunHistory = Field(default_factory=RunHistory, description="Run history at save time")
    next_fire: datetime | None = Field(default=None, description="Pending fire time, if any")
    saved_at: datetime = Field(default_factory=utc_now, description="When the snapshot was taken")


def snapshot_task(task: Task, next_fire: datetime | None = None) -> TaskSnapshot:
    """Capture a task's configuration and progress.

    Raises:
        SnapshotError: If the frame tree or schedule cannot be encoded
    """
    try:
        schedule = task.schedule.to_config()
    except NotImplementedError as exc:
        raise SnapshotError(f"Schedule {type(task.schedule).__name__} is not serializable") from exc
    return TaskSnapshot(
        task_id=task.id,
        name=task.name,
        priority=task.priority,
        strategy=task.strategy.name,
        schedule=schedule,
        frame=encode_frame(task.frame),
        max_runs=task.max_runs,
        history=task.history.model_copy(),
        next_fire=next_fire,
    )


def restore_task(snapshot: TaskSnapshot, registry: Mapping[str, Any]) -> Task:
    """Rebuild a task from a snapshot, re-binding user code from ``registry``.

    Raises:
        SnapshotError: If any part of the snapshot cannot be decoded
    """
    try:
        schedule = schedule_from_config(snapshot.schedule)
        strategy = strategy_from_name(snapshot.strategy)
    except (KeyError, ValueError) as exc:
        raise SnapshotError(f"Invalid snapshot for task {snapshot.task_id}: {exc}") from exc

    task = Task(
        decode_frame(snapshot.frame, registry),
        schedule,
        strategy=strategy,
        priority=snapshot.priority,
        name=snapshot.name,
        max_runs=snapshot.max_runs,
        task_id=snapshot.task_id,
    )
    task.history = snapshot.history.model_copy()
    return task
