"""Tests for WorkerPoolDispatcher."""

import asyncio

import pytest

from cadence.clock import SystemClock
from cadence.errors import DispatchError
from cadence.frames import FunctionFrame
from cadence.schedule import ImmediateSchedule
from cadence.scheduler import TaskRun, WorkerPoolDispatcher
from cadence.task.models import TaskPriority, TaskStatus
from cadence.task.task import Task


def make_run(action, priority: TaskPriority = TaskPriority.MEDIUM, on_complete=None) -> TaskRun:
    task = Task(FunctionFrame(action), ImmediateSchedule(), priority=priority)
    clock = SystemClock()
    return TaskRun(task, clock, clock.now(), on_complete=on_complete)


@pytest.fixture
async def dispatcher():
    pool = WorkerPoolDispatcher(workers=1, queue_size=2)
    await pool.start()
    yield pool
    await pool.stop()


class TestWorkerPoolDispatcher:
    """Tests for queuing, balancing and rejection."""

    async def test_rejects_when_not_running(self) -> None:
        pool = WorkerPoolDispatcher()
        with pytest.raises(DispatchError, match="not running"):
            pool.dispatch(make_run(lambda c: None))

    async def test_executes_run_and_reports_completion(self, dispatcher: WorkerPoolDispatcher) -> None:
        completed = []

        async def on_complete(run, result) -> None:
            completed.append(result.status)

        run = make_run(lambda c: None, on_complete=on_complete)
        dispatcher.dispatch(run)

        result = await asyncio.wait_for(run.wait(), timeout=1)
        assert result.status == TaskStatus.COMPLETED
        assert completed == [TaskStatus.COMPLETED]
        assert dispatcher.loads == [0]

    async def test_full_queues_raise_dispatch_error(self, dispatcher: WorkerPoolDispatcher) -> None:
        """Backpressure is a DispatchError, not a task failure."""
        gate = asyncio.Event()

        async def blocked(c) -> None:
            await gate.wait()

        running = make_run(blocked)
        dispatcher.dispatch(running)
        await asyncio.sleep(0.01)

        dispatcher.dispatch(make_run(blocked))
        dispatcher.dispatch(make_run(blocked))
        rejected = make_run(blocked)
        with pytest.raises(DispatchError, match="full"):
            dispatcher.dispatch(rejected)

        assert rejected.result is None
        gate.set()
        await asyncio.wait_for(running.wait(), timeout=1)

    async def test_higher_priority_runs_first_within_worker(self) -> None:
        order: list[TaskPriority] = []
        pool = WorkerPoolDispatcher(workers=1, queue_size=10)
        await pool.start()
        try:
            runs = []
            for priority in (TaskPriority.LOW, TaskPriority.HIGH, TaskPriority.CRITICAL):
                run = make_run(lambda c, p=priority: order.append(p), priority=priority)
                pool.dispatch(run)
                runs.append(run)
            await asyncio.wait_for(asyncio.gather(*(run.wait() for run in runs)), timeout=1)
        finally:
            await pool.stop()

        assert order == [TaskPriority.CRITICAL, TaskPriority.HIGH, TaskPriority.LOW]

    async def test_balances_by_priority_weight(self) -> None:
        """Runs go to the worker with the lowest weighted load."""
        pool = WorkerPoolDispatcher(workers=2, queue_size=10)
        await pool.start()
        try:
            pool.dispatch(make_run(lambda c: None, priority=TaskPriority.CRITICAL))
            pool.dispatch(make_run(lambda c: None, priority=TaskPriority.LOW))
            pool.dispatch(make_run(lambda c: None, priority=TaskPriority.MEDIUM))

            assert pool.loads == [16, 3]
        finally:
            await pool.stop()

    async def test_stop_cancels_in_flight_runs(self) -> None:
        pool = WorkerPoolDispatcher(workers=1, queue_size=2)
        await pool.start()

        async def forever(c) -> None:
            await asyncio.sleep(60)

        run = make_run(forever)
        pool.dispatch(run)
        await asyncio.sleep(0.01)

        await pool.stop()

        assert run.token.is_cancelled
        assert not pool.running

    def test_invalid_pool_size(self) -> None:
        with pytest.raises(ValueError):
            WorkerPoolDispatcher(workers=0)
