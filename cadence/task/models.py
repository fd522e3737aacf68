"""Task data models: priority, lifecycle status, run history."""

from datetime import UTC, datetime
from enum import Enum, IntEnum

from pydantic import BaseModel, Field


def utc_now() -> datetime:
    """Return current UTC time."""
    return datetime.now(UTC)


class TaskPriority(IntEnum):
    """Closed ordinal priority scale.

    Orders same-instant store entries and weights dispatcher load. It is an
    ordering hint, not a fairness guarantee.
    """

    LOW = 0
    MEDIUM = 1
    HIGH = 2
    IMPORTANT = 3
    CRITICAL = 4


PRIORITY_WEIGHTS: dict[TaskPriority, int] = {
    TaskPriority.LOW: 1,
    TaskPriority.MEDIUM: 2,
    TaskPriority.HIGH: 4,
    TaskPriority.IMPORTANT: 8,
    TaskPriority.CRITICAL: 16,
}


class TaskStatus(str, Enum):
    """Task lifecycle states.

    COMPLETED, FAILED, TIMED_OUT and SKIPPED describe how the latest run
    ended; the task then moves on to PENDING or IDLE.
    """

    IDLE = "idle"
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    SKIPPED = "skipped"
    CANCELED = "canceled"


RUN_OUTCOMES: frozenset[TaskStatus] = frozenset({
    TaskStatus.COMPLETED,
    TaskStatus.FAILED,
    TaskStatus.TIMED_OUT,
    TaskStatus.SKIPPED,
    TaskStatus.CANCELED,
})


class RunHistory(BaseModel):
    """What a schedule sees when computing the next fire time."""

    registered_at: datetime = Field(default_factory=utc_now, description="When the task was scheduled")
    last_fire: datetime | None = Field(default=None, description="Fire time of the latest firing")
    last_completed: datetime | None = Field(
        default=None, description="When the latest run finished"
    )
    fires: int = Field(default=0, ge=0, description="Firings consumed by the scheduler")
    runs: int = Field(default=0, ge=0, description="Runs that finished")
    successes: int = Field(default=0, ge=0, description="Runs that completed successfully")
    failures: int = Field(default=0, ge=0, description="Runs that failed or timed out")
    last_outcome: TaskStatus | None = Field(default=None, description="Outcome of the latest run")

    def record_fire(self, fire_at: datetime, counted: bool = True) -> None:
        """Advance the schedule anchor. Skipped firings do not count toward max_runs."""
        if counted:
            self.fires += 1
        self.last_fire = fire_at

    def record_outcome(self, outcome: TaskStatus, finished_at: datetime) -> None:
        self.runs += 1
        self.last_completed = finished_at
        self.last_outcome = outcome
        if outcome == TaskStatus.COMPLETED:
            self.successes += 1
        elif outcome in (TaskStatus.FAILED, TaskStatus.TIMED_OUT):
            self.failures += 1
