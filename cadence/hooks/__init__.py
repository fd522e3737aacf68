"""Hook system: event types, the per-task container, and built-in hooks."""

from cadence.hooks.base import FunctionHook, TaskHook, as_hook
from cadence.hooks.builtin import CircuitBreakerHook, ErrorHandlerHook
from cadence.hooks.container import HookKind, HookRegistration, TaskHookContainer
from cadence.hooks.events import (
    ALL_EVENTS,
    CHILD_EVENTS,
    CONDITION_EVENTS,
    DELAY_EVENTS,
    EVENT_GROUPS,
    EVENT_TYPES,
    FRAME_EVENTS,
    HOOK_LIFECYCLE,
    RETRY_EVENTS,
    TASK_LIFECYCLE,
    EventGroup,
    NoInterest,
    OnChildEnd,
    OnChildStart,
    OnDelayEnd,
    OnDelayStart,
    OnDependencyValidation,
    OnDispatchRejected,
    OnFallback,
    OnFalseyValue,
    OnFrameSelection,
    OnHookAttach,
    OnHookDetach,
    OnRetryAttemptEnd,
    OnRetryAttemptStart,
    OnScheduleError,
    OnTaskEnd,
    OnTaskStart,
    OnTimeout,
    OnTruthyValue,
    TaskHookEvent,
    groups_of,
)

__all__ = [
    # Interface
    "TaskHook",
    "FunctionHook",
    "as_hook",
    "TaskHookContainer",
    "HookRegistration",
    "HookKind",
    # Built-in hooks
    "CircuitBreakerHook",
    "ErrorHandlerHook",
    # Events
    "TaskHookEvent",
    "NoInterest",
    "OnTaskStart",
    "OnTaskEnd",
    "OnHookAttach",
    "OnHookDetach",
    "OnRetryAttemptStart",
    "OnRetryAttemptEnd",
    "OnTimeout",
    "OnFallback",
    "OnFrameSelection",
    "OnTruthyValue",
    "OnFalseyValue",
    "OnDelayStart",
    "OnDelayEnd",
    "OnChildStart",
    "OnChildEnd",
    "OnDependencyValidation",
    "OnScheduleError",
    "OnDispatchRejected",
    # Groups
    "EventGroup",
    "ALL_EVENTS",
    "TASK_LIFECYCLE",
    "HOOK_LIFECYCLE",
    "RETRY_EVENTS",
    "CONDITION_EVENTS",
    "DELAY_EVENTS",
    "CHILD_EVENTS",
    "FRAME_EVENTS",
    "EVENT_GROUPS",
    "EVENT_TYPES",
    "groups_of",
]
