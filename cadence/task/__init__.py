"""Task runtime primitives.

``Task`` itself lives in ``cadence.task.task`` and is re-exported from the
top-level package; it is not imported here because frames depend on the
context defined in this package.
"""

from cadence.task.cancellation import CancellationToken
from cadence.task.context import TaskContext
from cadence.task.models import (
    PRIORITY_WEIGHTS,
    RunHistory,
    TaskPriority,
    TaskStatus,
    utc_now,
)

__all__ = [
    "CancellationToken",
    "TaskContext",
    "RunHistory",
    "TaskPriority",
    "TaskStatus",
    "PRIORITY_WEIGHTS",
    "utc_now",
]
