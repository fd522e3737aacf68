"""Tickless scheduler loop.

The loop sleeps on the clock until the earliest pending firing is due and
is woken early whenever a mutation could change which firing is earliest.
Due firings are handed to the dispatcher without waiting for the run;
completion is handled on the dispatcher's worker.
"""

import asyncio
from datetime import datetime, timedelta
from uuid import UUID

from cadence.aio import race
from cadence.clock import SchedulerClock, SystemClock, to_timedelta
from cadence.errors import DispatchError, ScheduleError, SnapshotError
from cadence.hooks.container import TaskHookContainer
from cadence.hooks.events import OnDispatchRejected, OnScheduleError
from cadence.observability.logging import get_logger
from cadence.persistence.backend import PersistenceBackend
from cadence.persistence.snapshot import restore_task, snapshot_task
from cadence.scheduler.dispatcher import TaskDispatcher, WorkerPoolDispatcher
from cadence.scheduler.run import TaskRun
from cadence.scheduler.store import StoreEntry, TaskStore
from cadence.scheduler.stores.inmemory import InMemoryTaskStore
from cadence.strategy import StrategyDecision
from cadence.task.models import TaskStatus
from cadence.task.task import Task, TaskRunResult

logger = get_logger(__name__)


class Scheduler:
    """Owns registered tasks and drives them through their lifecycle.

    Lifecycle: IDLE -> PENDING -> RUNNING -> (outcome) -> PENDING | IDLE,
    with CANCELED reachable from any state. Outcomes are recorded in each
    task's history.
    """

    def __init__(
        self,
        clock: SchedulerClock | None = None,
        store: TaskStore | None = None,
        dispatcher: TaskDispatcher | None = None,
        persistence: PersistenceBackend | None = None,
        backpressure_delay: float | timedelta = 1.0,
    ) -> None:
        """Initialize scheduler.

        Args:
            clock: Time source (defaults to SystemClock)
            store: Pending-firing store (defaults to InMemoryTaskStore)
            dispatcher: Run executor (defaults to WorkerPoolDispatcher)
            persistence: Optional write-through snapshot backend
            backpressure_delay: Wait before re-offering a rejected firing
        """
        self.clock = clock or SystemClock()
        self.global_hooks = TaskHookContainer(owner="global")
        self._store = store or InMemoryTaskStore()
        self._dispatcher = dispatcher or WorkerPoolDispatcher()
        self._persistence = persistence
        self._backpressure_delay = to_timedelta(backpressure_delay)
        self._tasks: dict[UUID, Task] = {}
        self._active: dict[UUID, list[TaskRun]] = {}
        self._deferred: dict[UUID, datetime] = {}
        self._wake = asyncio.Event()
        self._running = False
        self._loop_task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._running

    @property
    def store(self) -> TaskStore:
        return self._store

    @property
    def dispatcher(self) -> TaskDispatcher:
        return self._dispatcher

    async def start(self) -> None:
        """Start the dispatcher and the scheduler loop."""
        if self._running:
            logger.warning("scheduler_already_running")
            return

        self._running = True
        await self._dispatcher.start()
        self._loop_task = asyncio.create_task(self._run_loop(), name="cadence-scheduler")
        logger.info("scheduler_started", clock=type(self.clock).__name__, tasks=len(self._tasks))

    async def stop(self) -> None:
        """Stop the loop and the dispatcher. In-flight runs are cancelled."""
        if not self._running:
            return

        self._running = False
        self._wake.set()
        if self._loop_task is not None:
            self._loop_task.cancel()
            try:
                await self._loop_task
            except asyncio.CancelledError:
                pass
            self._loop_task = None

        for runs in self._active.values():
            for run in runs:
                run.cancel("scheduler stopping")
        await self._dispatcher.stop()
        self._active.clear()
        self._deferred.clear()
        logger.info("scheduler_stopped")

    async def __aenter__(self) -> "Scheduler":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    async def schedule(self, task: Task) -> UUID:
        """Register a task and queue its first firing.

        A schedule that fails or yields no time leaves the task registered
        but IDLE.

        Raises:
            ValueError: If a task with the same id is already registered
        """
        if task.id in self._tasks:
            raise ValueError(f"Task {task.id} is already scheduled")

        task.hooks.merge_global(self.global_hooks)
        if task.history.last_fire is None:
            task.history.registered_at = self.clock.now()
        self._tasks[task.id] = task
        task.status = TaskStatus.IDLE

        fire_at = await self._schedule_next(task)

        logger.info(
            "task_scheduled",
            task_id=str(task.id),
            task_name=task.name,
            priority=task.priority.name,
            strategy=task.strategy.name,
            fire_at=fire_at.isoformat() if fire_at else None,
        )
        return task.id

    async def cancel(self, task_id: UUID) -> bool:
        """Remove a task, its pending firing, and signal its in-flight runs.

        Idempotent.

        Returns:
            True if the task was registered
        """
        task = self._tasks.pop(task_id, None)
        if task is None:
            return False

        await self._store.remove(task_id)
        self._wake.set()
        self._deferred.pop(task_id, None)
        for run in self._active.get(task_id, []):
            run.cancel("task cancelled")
        task.status = TaskStatus.CANCELED
        if self._persistence is not None:
            await self._persistence.delete(task_id)

        logger.info("task_cancelled", task_id=str(task_id), task_name=task.name)
        return True

    async def clear(self) -> None:
        """Cancel every registered task."""
        for task_id in list(self._tasks):
            await self.cancel(task_id)

    def exists(self, task_id: UUID) -> bool:
        return task_id in self._tasks

    def get_task(self, task_id: UUID) -> Task | None:
        return self._tasks.get(task_id)

    @property
    def tasks(self) -> list[Task]:
        return list(self._tasks.values())

    def active_runs(self, task_id: UUID) -> list[TaskRun]:
        return list(self._active.get(task_id, []))

    async def restore(self, registry: dict[str, object]) -> list[Task]:
        """Re-register every task stored in the persistence backend.

        Args:
            registry: Names of actions, predicates, selectors and
                dependencies mapped to live objects

        Returns:
            Tasks that were restored; undecodable snapshots are logged and skipped
        """
        if self._persistence is None:
            return []

        restored: list[Task] = []
        for snapshot in await self._persistence.load():
            if snapshot.task_id in self._tasks:
                continue
            try:
                task = restore_task(snapshot, registry)
            except SnapshotError as exc:
                logger.error("task_restore_failed", task_id=str(snapshot.task_id), error=str(exc))
                continue

            task.hooks.merge_global(self.global_hooks)
            self._tasks[task.id] = task
            if snapshot.next_fire is not None:
                await self._enqueue(task, snapshot.next_fire)
            else:
                await self._schedule_next(task)
            restored.append(task)

        logger.info("tasks_restored", count=len(restored))
        return restored

    async def _run_loop(self) -> None:
        while self._running:
            try:
                await self._tick()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.error("scheduler_loop_error", exc_info=True)
                await asyncio.sleep(0.05)

    async def _tick(self) -> None:
        self._wake.clear()
        entry = await self._store.peek()
        if entry is None:
            await self._wake.wait()
            return

        if entry.fire_at > self.clock.now():
            await race(self.clock.idle_to(entry.fire_at), self._wake.wait())
            return

        due = await self._store.pop_due(self.clock.now())
        if due is not None:
            await self._fire(due)

    async def _fire(self, entry: StoreEntry) -> None:
        task = self._tasks.get(entry.task_id)
        if task is None:
            return

        active = self._active.get(task.id, [])
        decision = task.strategy.decide(len(active))
        log = logger.bind(task_id=str(task.id), task_name=task.name, fire_at=entry.fire_at.isoformat())

        if decision == StrategyDecision.DEFER:
            # The schedule advances only once this firing has started.
            self._deferred[task.id] = entry.fire_at
            log.info("firing_deferred", active_runs=len(active))
            await self._persist(task, entry.fire_at)
            return

        if decision == StrategyDecision.SKIP:
            log.info("firing_skipped", active_runs=len(active))
        else:
            if decision == StrategyDecision.CANCEL_AND_RESTART:
                for run in active:
                    run.cancel("superseded by a newer firing")
                log.info("runs_superseded", cancelled_runs=len(active))
            try:
                self._start_run(task, entry.fire_at)
            except DispatchError as exc:
                await self._handle_backpressure(task, exc)
                return

        task.history.record_fire(entry.fire_at, counted=decision != StrategyDecision.SKIP)
        await self._schedule_next(task)

    async def _schedule_next(self, task: Task) -> datetime | None:
        fire_at = await self._next_fire_time(task)
        if task.id not in self._tasks:
            return None
        if fire_at is not None:
            await self._enqueue(task, fire_at)
        elif not self._active.get(task.id) and task.id not in self._deferred:
            await self._finish(task)
        else:
            await self._persist(task, None)
        return fire_at

    def _start_run(self, task: Task, fire_at: datetime) -> TaskRun:
        run = TaskRun(task, self.clock, fire_at, on_complete=self._on_run_complete)
        self._dispatcher.dispatch(run)
        self._active.setdefault(task.id, []).append(run)
        task.status = TaskStatus.RUNNING
        return run

    async def _handle_backpressure(self, task: Task, error: DispatchError) -> None:
        retry_at = self.clock.now() + self._backpressure_delay
        logger.warning(
            "dispatch_rejected",
            task_id=str(task.id),
            error_code=error.error_code.value,
            error=error.message,
            retry_at=retry_at.isoformat(),
        )
        await task.hooks.emit(
            OnDispatchRejected(
                task_id=task.id,
                task_name=task.name,
                timestamp=self.clock.now(),
                error=error,
                retry_at=retry_at,
            )
        )
        if task.id not in self._tasks:
            return
        await self._enqueue(task, retry_at)

    async def _on_run_complete(self, run: TaskRun, result: TaskRunResult | None) -> None:
        task = run.task
        runs = self._active.get(task.id)
        if runs is not None:
            if run in runs:
                runs.remove(run)
            if not runs:
                del self._active[task.id]

        if result is None or task.id not in self._tasks:
            return

        if self._active.get(task.id):
            return

        fire_at = self._deferred.pop(task.id, None)
        if fire_at is not None:
            try:
                self._start_run(task, fire_at)
            except DispatchError as exc:
                await self._handle_backpressure(task, exc)
                return
            logger.info("deferred_firing_started", task_id=str(task.id), task_name=task.name)
            task.history.record_fire(fire_at)
            await self._schedule_next(task)
            return

        entry = await self._store.get(task.id)
        if task.id not in self._tasks:
            return
        if entry is not None:
            task.status = TaskStatus.PENDING
            await self._persist(task, entry.fire_at)
        else:
            await self._finish(task)

    async def _next_fire_time(self, task: Task) -> datetime | None:
        if task.exhausted:
            return None
        try:
            return task.schedule.next_fire_time(task.history)
        except Exception as exc:
            error = exc if isinstance(exc, ScheduleError) else ScheduleError(f"{type(exc).__name__}: {exc}")
            if error is not exc:
                error.__cause__ = exc
            logger.error(
                "schedule_failed",
                task_id=str(task.id),
                task_name=task.name,
                error_code=error.error_code.value,
                error=error.message,
            )
            await task.hooks.emit(
                OnScheduleError(
                    task_id=task.id,
                    task_name=task.name,
                    timestamp=self.clock.now(),
                    error=error,
                )
            )
            return None

    async def _enqueue(self, task: Task, fire_at: datetime) -> None:
        if not self._active.get(task.id):
            task.status = TaskStatus.PENDING
        if await self._store.insert(task.id, fire_at, task.priority):
            self._wake.set()
        await self._persist(task, fire_at)

    async def _finish(self, task: Task) -> None:
        task.status = TaskStatus.IDLE
        if self._persistence is not None:
            await self._persistence.delete(task.id)
        logger.debug("task_idle", task_id=str(task.id), task_name=task.name, runs=task.history.runs)

    async def _persist(self, task: Task, next_fire: datetime | None) -> None:
        if self._persistence is None or task.id not in self._tasks:
            return
        try:
            snapshot = snapshot_task(task, next_fire)
        except SnapshotError as exc:
            logger.warning("task_not_persistable", task_id=str(task.id), error=exc.message)
            return
        await self._persistence.save(snapshot)
