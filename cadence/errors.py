"""Exception hierarchy for the scheduling engine.

All engine exceptions inherit from CadenceError, which carries a stable
error_code. Frame failures are FrameExecutionError subclasses so that
decorator frames can catch them uniformly while letting programming
errors surface unchanged.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Stable machine-readable error codes."""

    INTERNAL_ERROR = "INTERNAL_ERROR"
    SCHEDULE_FAILED = "SCHEDULE_FAILED"
    FRAME_FAILED = "FRAME_FAILED"
    FRAME_TIMEOUT = "FRAME_TIMEOUT"
    RETRY_EXHAUSTED = "RETRY_EXHAUSTED"
    DEPENDENCY_UNRESOLVED = "DEPENDENCY_UNRESOLVED"
    FRAME_CANCELLED = "FRAME_CANCELLED"
    USER_ERROR = "USER_ERROR"
    CONDITION_FAILED = "CONDITION_FAILED"
    FRAME_INDEX_OUT_OF_RANGE = "FRAME_INDEX_OUT_OF_RANGE"
    HOOK_FAILED = "HOOK_FAILED"
    DISPATCH_REJECTED = "DISPATCH_REJECTED"
    SNAPSHOT_INVALID = "SNAPSHOT_INVALID"


class CadenceError(Exception):
    """Base exception for all engine errors."""

    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ScheduleError(CadenceError):
    """Raised when a schedule cannot compute the next fire time.

    Terminal for the owning task's future firings, never for the process.
    """

    error_code = ErrorCode.SCHEDULE_FAILED


class FrameExecutionError(CadenceError):
    """Base for every failure produced while executing a frame tree."""

    error_code = ErrorCode.FRAME_FAILED


class FrameTimeoutError(FrameExecutionError):
    """Raised when a timeout frame's duration elapses before its inner frame."""

    error_code = ErrorCode.FRAME_TIMEOUT

    def __init__(self, message: str, timeout_seconds: float) -> None:
        super().__init__(message)
        self.timeout_seconds = timeout_seconds


class RetryExhaustedError(FrameExecutionError):
    """Raised when every retry attempt failed."""

    error_code = ErrorCode.RETRY_EXHAUSTED

    def __init__(self, last_cause: FrameExecutionError, attempts: int) -> None:
        super().__init__(f"Retries exhausted after {attempts} attempt(s): {last_cause}")
        self.last_cause = last_cause
        self.attempts = attempts


class DependencyUnresolvedError(FrameExecutionError):
    """Raised when dependencies are still unresolved at the deadline."""

    error_code = ErrorCode.DEPENDENCY_UNRESOLVED


class FrameCancelledError(FrameExecutionError):
    """Raised at a suspension point once cancellation was requested."""

    error_code = ErrorCode.FRAME_CANCELLED

    def __init__(self, message: str = "Execution cancelled", reason: str | None = None) -> None:
        super().__init__(message)
        self.reason = reason


class UserError(FrameExecutionError):
    """Wraps an exception raised by a user-supplied action."""

    error_code = ErrorCode.USER_ERROR

    def __init__(self, wrapped: BaseException) -> None:
        super().__init__(f"{type(wrapped).__name__}: {wrapped}")
        self.wrapped = wrapped


class ConditionFailedError(FrameExecutionError):
    """Raised when a conditional frame is configured to fail on a false predicate."""

    error_code = ErrorCode.CONDITION_FAILED


class FrameIndexError(FrameExecutionError):
    """Raised when a select frame's selector returns an out-of-range index."""

    error_code = ErrorCode.FRAME_INDEX_OUT_OF_RANGE

    def __init__(self, index: int, size: int) -> None:
        super().__init__(f"Selected frame index {index} is out of range for {size} frame(s)")
        self.index = index
        self.size = size


class HookError(CadenceError):
    """A hook raised while handling an event.

    Never propagated into frames; logged and contained by the container.
    """

    error_code = ErrorCode.HOOK_FAILED

    def __init__(self, hook: Any, event_key: str, cause: BaseException) -> None:
        super().__init__(f"Hook {hook!r} failed on {event_key}: {cause}")
        self.hook = hook
        self.event_key = event_key
        self.cause = cause


class DispatchError(CadenceError):
    """Raised when the dispatcher cannot accept work.

    Distinct from task failure: the scheduler treats it as backpressure.
    """

    error_code = ErrorCode.DISPATCH_REJECTED


class SnapshotError(CadenceError):
    """Raised when a persisted snapshot cannot be encoded or decoded."""

    error_code = ErrorCode.SNAPSHOT_INVALID
