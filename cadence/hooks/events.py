"""Hook event types.

Every event is a pydantic payload class whose ``event_key`` is its runtime
identity. Keys use the category.name format ("retry.attempt_start") so that
logs and metrics can group by category.

Hooks register for an exact event class, for an EventGroup, or for
ALL_EVENTS. Group membership is the explicit table in EVENT_GROUPS.
"""

from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any, ClassVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    """Return current UTC time."""
    return datetime.now(UTC)


class TaskHookEvent(BaseModel):
    """Base payload shared by all hook events."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    event_key: ClassVar[str] = "event"
    emittable: ClassVar[bool] = True

    task_id: UUID | None = Field(default=None, description="Task the event belongs to")
    task_name: str | None = Field(default=None, description="Task debug label")
    run_id: UUID | None = Field(default=None, description="Run that produced the event")
    timestamp: datetime = Field(default_factory=utc_now, description="Clock time at emission")

    @property
    def category(self) -> str:
        return self.event_key.split(".", 1)[0]


class NoInterest(TaskHookEvent):
    """Marker for state-only hooks. Never emitted."""

    event_key: ClassVar[str] = "none"
    emittable: ClassVar[bool] = False


class OnTaskStart(TaskHookEvent):
    event_key: ClassVar[str] = "task.start"


class OnTaskEnd(TaskHookEvent):
    event_key: ClassVar[str] = "task.end"

    status: str = Field(description="Run outcome (TaskStatus value)")
    error: Exception | None = Field(default=None, description="Failure, when the run failed")


class OnHookAttach(TaskHookEvent):
    event_key: ClassVar[str] = "hook.attach"

    hook: Any = Field(description="Hook that was attached")
    kind: str = Field(description="Event kind it was attached for")


class OnHookDetach(TaskHookEvent):
    event_key: ClassVar[str] = "hook.detach"

    hook: Any = Field(description="Hook that was detached")
    kind: str = Field(description="Event kind it was detached from")


class OnRetryAttemptStart(TaskHookEvent):
    event_key: ClassVar[str] = "retry.attempt_start"

    attempt: int = Field(ge=1, description="1-based attempt number")
    max_attempts: int = Field(ge=1, description="Configured attempt limit")


class OnRetryAttemptEnd(TaskHookEvent):
    event_key: ClassVar[str] = "retry.attempt_end"

    attempt: int = Field(ge=1, description="1-based attempt number")
    error: Exception | None = Field(default=None, description="Failure of this attempt")


class OnTimeout(TaskHookEvent):
    event_key: ClassVar[str] = "frame.timeout"

    timeout_seconds: float = Field(description="Duration that elapsed")


class OnFallback(TaskHookEvent):
    event_key: ClassVar[str] = "frame.fallback"

    error: Exception = Field(description="Primary frame's failure")


class OnFrameSelection(TaskHookEvent):
    event_key: ClassVar[str] = "frame.selection"

    index: int = Field(description="Index returned by the selector")


class OnTruthyValue(TaskHookEvent):
    event_key: ClassVar[str] = "condition.truthy"


class OnFalseyValue(TaskHookEvent):
    event_key: ClassVar[str] = "condition.falsey"


class OnDelayStart(TaskHookEvent):
    event_key: ClassVar[str] = "delay.start"

    delay_seconds: float = Field(description="Delay about to be waited")


class OnDelayEnd(TaskHookEvent):
    event_key: ClassVar[str] = "delay.end"

    delay_seconds: float = Field(description="Delay that was waited")


class OnChildStart(TaskHookEvent):
    event_key: ClassVar[str] = "child.start"

    index: int = Field(ge=0, description="Position of the child frame")


class OnChildEnd(TaskHookEvent):
    event_key: ClassVar[str] = "child.end"

    index: int = Field(ge=0, description="Position of the child frame")
    error: Exception | None = Field(default=None, description="Child failure, if any")


class OnDependencyValidation(TaskHookEvent):
    event_key: ClassVar[str] = "dependency.validation"

    dependency: str = Field(description="Name of the evaluated dependency expression")
    resolved: bool = Field(description="Whether it resolved")


class OnScheduleError(TaskHookEvent):
    event_key: ClassVar[str] = "schedule.error"

    error: Exception = Field(description="The ScheduleError that ended future firings")


class OnDispatchRejected(TaskHookEvent):
    event_key: ClassVar[str] = "dispatch.rejected"

    error: Exception = Field(description="The DispatchError raised by the dispatcher")
    retry_at: datetime = Field(description="When the firing will be offered again")


class EventGroup:
    """A named, fixed set of event classes."""

    def __init__(self, name: str, members: Iterable[type[TaskHookEvent]]) -> None:
        self.name = name
        self.members: frozenset[type[TaskHookEvent]] = frozenset(members)

    def __contains__(self, event_type: object) -> bool:
        return event_type in self.members

    def __repr__(self) -> str:
        return f"EventGroup({self.name!r})"


class _AllEvents(EventGroup):
    """Wildcard: matches every emittable event."""

    def __init__(self) -> None:
        super().__init__("*", ())

    def __contains__(self, event_type: object) -> bool:
        return isinstance(event_type, type) and issubclass(event_type, TaskHookEvent) and event_type.emittable


ALL_EVENTS: EventGroup = _AllEvents()

TASK_LIFECYCLE = EventGroup("task", [OnTaskStart, OnTaskEnd])
HOOK_LIFECYCLE = EventGroup("hook", [OnHookAttach, OnHookDetach])
RETRY_EVENTS = EventGroup("retry", [OnRetryAttemptStart, OnRetryAttemptEnd])
CONDITION_EVENTS = EventGroup("condition", [OnTruthyValue, OnFalseyValue])
DELAY_EVENTS = EventGroup("delay", [OnDelayStart, OnDelayEnd])
CHILD_EVENTS = EventGroup("child", [OnChildStart, OnChildEnd])
FRAME_EVENTS = EventGroup(
    "frame",
    [
        OnRetryAttemptStart,
        OnRetryAttemptEnd,
        OnTimeout,
        OnFallback,
        OnFrameSelection,
        OnTruthyValue,
        OnFalseyValue,
        OnDelayStart,
        OnDelayEnd,
        OnChildStart,
        OnChildEnd,
        OnDependencyValidation,
    ],
)

EVENT_GROUPS: dict[str, EventGroup] = {
    group.name: group
    for group in (
        TASK_LIFECYCLE,
        HOOK_LIFECYCLE,
        RETRY_EVENTS,
        CONDITION_EVENTS,
        DELAY_EVENTS,
        CHILD_EVENTS,
        FRAME_EVENTS,
    )
}

EVENT_TYPES: dict[str, type[TaskHookEvent]] = {
    event_type.event_key: event_type
    for event_type in (
        NoInterest,
        OnTaskStart,
        OnTaskEnd,
        OnHookAttach,
        OnHookDetach,
        OnRetryAttemptStart,
        OnRetryAttemptEnd,
        OnTimeout,
        OnFallback,
        OnFrameSelection,
        OnTruthyValue,
        OnFalseyValue,
        OnDelayStart,
        OnDelayEnd,
        OnChildStart,
        OnChildEnd,
        OnDependencyValidation,
        OnScheduleError,
        OnDispatchRejected,
    )
}


def groups_of(event_type: type[TaskHookEvent]) -> list[EventGroup]:
    """Return the named groups an event class belongs to."""
    return [group for group in EVENT_GROUPS.values() if event_type in group]


def kind_label(kind: "type[TaskHookEvent] | EventGroup") -> str:
    """Human-readable label for a registration kind."""
    if isinstance(kind, EventGroup):
        return kind.name
    return kind.event_key
