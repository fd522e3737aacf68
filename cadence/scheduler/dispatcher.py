"""Dispatchers: hand runs to workers without blocking the scheduler loop."""

import asyncio
import itertools
from abc import ABC, abstractmethod

from cadence.errors import DispatchError
from cadence.observability.logging import get_logger
from cadence.scheduler.run import TaskRun
from cadence.task.models import PRIORITY_WEIGHTS

logger = get_logger(__name__)


class TaskDispatcher(ABC):
    """Accepts runs and executes them off the scheduler loop."""

    @abstractmethod
    async def start(self) -> None:
        pass

    @abstractmethod
    async def stop(self) -> None:
        pass

    @abstractmethod
    def dispatch(self, run: TaskRun) -> None:
        """Queue a run. Must not block.

        Raises:
            DispatchError: If no worker can accept the run
        """
        pass


class _Worker:
    def __init__(self, index: int, queue_size: int) -> None:
        self.index = index
        self.queue: asyncio.PriorityQueue[tuple[int, int, TaskRun]] = asyncio.PriorityQueue(
            maxsize=queue_size
        )
        self.load = 0
        self.current: TaskRun | None = None
        self.handle: asyncio.Task[None] | None = None


class WorkerPoolDispatcher(TaskDispatcher):
    """Fixed pool of asyncio workers, each with a bounded priority queue.

    A run goes to the worker with the lowest priority-weighted load among
    those whose queue has room. Within a worker, higher priorities run first.
    When every queue is full the dispatch is rejected with DispatchError.
    """

    def __init__(self, workers: int = 4, queue_size: int = 64) -> None:
        if workers < 1:
            raise ValueError("workers must be >= 1")
        if queue_size < 1:
            raise ValueError("queue_size must be >= 1")
        self._workers = [_Worker(index, queue_size) for index in range(workers)]
        self._sequence = itertools.count()
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    @property
    def loads(self) -> list[int]:
        return [worker.load for worker in self._workers]

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        for worker in self._workers:
            worker.handle = asyncio.create_task(self._work(worker), name=f"cadence-worker-{worker.index}")
        logger.info("dispatcher_started", workers=len(self._workers))

    async def stop(self) -> None:
        if not self._running:
            return
        self._running = False
        for worker in self._workers:
            if worker.current is not None:
                worker.current.cancel("dispatcher stopping")
            if worker.handle is not None:
                worker.handle.cancel()
        handles = [worker.handle for worker in self._workers if worker.handle is not None]
        await asyncio.gather(*handles, return_exceptions=True)
        dropped = 0
        for worker in self._workers:
            while not worker.queue.empty():
                worker.queue.get_nowait()
                dropped += 1
            worker.handle = None
            worker.load = 0
        logger.info("dispatcher_stopped", dropped_runs=dropped)

    def dispatch(self, run: TaskRun) -> None:
        if not self._running:
            raise DispatchError("Dispatcher is not running")

        available = [worker for worker in self._workers if not worker.queue.full()]
        if not available:
            raise DispatchError(f"All {len(self._workers)} worker queues are full")

        worker = min(available, key=lambda w: (w.load, w.index))
        priority = run.task.priority
        worker.queue.put_nowait((-int(priority), next(self._sequence), run))
        worker.load += PRIORITY_WEIGHTS[priority]
        logger.debug(
            "run_dispatched",
            task_id=str(run.task.id),
            run_id=str(run.id),
            worker=worker.index,
            load=worker.load,
        )

    async def _work(self, worker: _Worker) -> None:
        while True:
            _, _, run = await worker.queue.get()
            worker.current = run
            try:
                await run.execute()
            except Exception:
                logger.error(
                    "run_execution_failed",
                    task_id=str(run.task.id),
                    run_id=str(run.id),
                    worker=worker.index,
                    exc_info=True,
                )
            finally:
                worker.current = None
                worker.load -= PRIORITY_WEIGHTS[run.task.priority]
                worker.queue.task_done()
