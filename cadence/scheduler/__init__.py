"""Scheduling runtime: store, dispatcher and the scheduler loop.

Flow:
1. ``Scheduler.schedule`` computes the first fire time and inserts it into the TaskStore
2. The loop idles the clock until the earliest entry is due
3. The task's strategy resolves overlap with in-flight runs
4. The dispatcher runs the frame tree on a worker
5. The next fire time is queued, until the schedule is exhausted
"""

from cadence.scheduler.dispatcher import TaskDispatcher, WorkerPoolDispatcher
from cadence.scheduler.run import TaskRun
from cadence.scheduler.scheduler import Scheduler
from cadence.scheduler.store import StoreEntry, TaskStore
from cadence.scheduler.stores.inmemory import InMemoryTaskStore

__all__ = [
    "Scheduler",
    "TaskRun",
    "TaskDispatcher",
    "WorkerPoolDispatcher",
    "TaskStore",
    "StoreEntry",
    "InMemoryTaskStore",
]
