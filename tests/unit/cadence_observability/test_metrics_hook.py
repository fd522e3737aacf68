"""Tests for the Prometheus metrics hook."""

from datetime import timedelta
from uuid import uuid4

from prometheus_client import REGISTRY

from cadence.clock import VirtualClock
from cadence.errors import FrameTimeoutError
from cadence.frames import FunctionFrame, RetriableFrame
from cadence.hooks import ALL_EVENTS
from cadence.hooks.events import OnTaskEnd, OnTaskStart, OnTimeout
from cadence.observability.metrics import MetricsHook
from cadence.schedule import ImmediateSchedule
from cadence.task.task import Task


def sample(name: str, labels: dict[str, str] | None = None) -> float:
    return REGISTRY.get_sample_value(name, labels or {}) or 0.0


class TestMetricsHook:
    """Tests for translating events into samples."""

    async def test_counts_runs_and_duration_on_event_clock(self, virtual_clock: VirtualClock) -> None:
        hook = MetricsHook()
        run_id = uuid4()
        task_id = uuid4()
        runs_before = sample("cadence_task_runs_total", {"status": "completed"})
        duration_before = sample("cadence_task_run_duration_seconds_sum", {"status": "completed"})

        start = virtual_clock.now()
        await hook.on_event(OnTaskStart(task_id=task_id, run_id=run_id, timestamp=start))
        await hook.on_event(
            OnTaskEnd(task_id=task_id, run_id=run_id, timestamp=start + timedelta(seconds=3), status="completed")
        )

        assert sample("cadence_task_runs_total", {"status": "completed"}) == runs_before + 1
        assert sample("cadence_task_run_duration_seconds_sum", {"status": "completed"}) == duration_before + 3

    async def test_counts_frame_events(self, virtual_clock: VirtualClock) -> None:
        hook = MetricsHook()
        before = sample("cadence_timeouts_total")
        events_before = sample("cadence_hook_events_total", {"event": "frame.timeout"})

        await hook.on_event(OnTimeout(task_id=uuid4(), timestamp=virtual_clock.now(), timeout_seconds=1.0))

        assert sample("cadence_timeouts_total") == before + 1
        assert sample("cadence_hook_events_total", {"event": "frame.timeout"}) == events_before + 1

    async def test_attached_to_task_counts_retries(self, virtual_clock: VirtualClock) -> None:
        """Retries surface through the hook when attached for ALL_EVENTS."""
        before = sample("cadence_retry_attempts_total")
        failures_before = sample("cadence_task_runs_total", {"status": "failed"})

        def broken(ctx) -> None:
            raise FrameTimeoutError("slow upstream", timeout_seconds=1.0)

        task = Task(RetriableFrame(FunctionFrame(broken), attempts=3), ImmediateSchedule())
        await task.attach_hook(MetricsHook(), ALL_EVENTS)

        await task.run(virtual_clock)

        assert sample("cadence_retry_attempts_total") == before + 2
        assert sample("cadence_task_runs_total", {"status": "failed"}) == failures_before + 1
