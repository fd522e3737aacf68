"""Prometheus metrics, fed exclusively through MetricsHook.

Attach the hook for ALL_EVENTS (globally on the scheduler, or per task);
the engine itself never touches these collectors.
"""

from prometheus_client import Counter, Histogram

from cadence.hooks.base import TaskHook
from cadence.hooks.events import (
    OnDispatchRejected,
    OnFallback,
    OnRetryAttemptStart,
    OnScheduleError,
    OnTaskEnd,
    OnTaskStart,
    OnTimeout,
    TaskHookEvent,
)

EVENTS = Counter(
    "cadence_hook_events_total",
    "Hook events emitted, by event key",
    labelnames=["event"],
)

TASK_RUNS = Counter(
    "cadence_task_runs_total",
    "Finished task runs, by outcome",
    labelnames=["status"],
)

TASK_RUN_DURATION = Histogram(
    "cadence_task_run_duration_seconds",
    "Task run duration measured on the scheduler clock",
    labelnames=["status"],
    buckets=(0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0, 30.0, 60.0, 300.0),
)

RETRIES = Counter("cadence_retry_attempts_total", "Retry attempts after the first")
TIMEOUTS = Counter("cadence_timeouts_total", "Timeout frames that elapsed")
FALLBACKS = Counter("cadence_fallbacks_total", "Fallback frames that ran their secondary")
SCHEDULE_ERRORS = Counter("cadence_schedule_errors_total", "Schedules that failed terminally")
DISPATCH_REJECTIONS = Counter(
    "cadence_dispatch_rejections_total",
    "Firings the dispatcher rejected under backpressure",
)


class MetricsHook(TaskHook):
    """Translates hook events into Prometheus samples.

    Run durations are computed from OnTaskStart/OnTaskEnd timestamps keyed
    by run id, so they follow the scheduler clock (virtual clocks included).
    """

    def __init__(self) -> None:
        self._started: dict[object, float] = {}

    async def on_event(self, event: TaskHookEvent) -> None:
        EVENTS.labels(event=event.event_key).inc()

        if isinstance(event, OnTaskStart):
            self._started[event.run_id] = event.timestamp.timestamp()
        elif isinstance(event, OnTaskEnd):
            TASK_RUNS.labels(status=event.status).inc()
            started = self._started.pop(event.run_id, None)
            if started is not None:
                TASK_RUN_DURATION.labels(status=event.status).observe(
                    max(0.0, event.timestamp.timestamp() - started)
                )
        elif isinstance(event, OnRetryAttemptStart):
            RETRIES.inc()
        elif isinstance(event, OnTimeout):
            TIMEOUTS.inc()
        elif isinstance(event, OnFallback):
            FALLBACKS.inc()
        elif isinstance(event, OnScheduleError):
            SCHEDULE_ERRORS.inc()
        elif isinstance(event, OnDispatchRejected):
            DISPATCH_REJECTIONS.inc()
