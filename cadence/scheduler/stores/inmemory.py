"""In-memory implementation of TaskStore."""

import asyncio
import heapq
import itertools
from datetime import datetime
from uuid import UUID

from cadence.scheduler.store import StoreEntry, TaskStore
from cadence.task.models import TaskPriority


class InMemoryTaskStore(TaskStore):
    """Binary-heap store with lazy deletion.

    Removed or replaced entries stay in the heap flagged as removed and are
    discarded when they reach the top.
    """

    def __init__(self) -> None:
        self._heap: list[StoreEntry] = []
        self._entries: dict[UUID, StoreEntry] = {}
        self._sequence = itertools.count()
        self._lock = asyncio.Lock()

    def _prune(self) -> None:
        while self._heap and self._heap[0].removed:
            heapq.heappop(self._heap)

    async def insert(self, task_id: UUID, fire_at: datetime, priority: TaskPriority) -> bool:
        async with self._lock:
            previous = self._entries.pop(task_id, None)
            if previous is not None:
                previous.removed = True
            entry = StoreEntry(
                fire_at=fire_at,
                rank=-int(priority),
                sequence=next(self._sequence),
                task_id=task_id,
                priority=priority,
            )
            heapq.heappush(self._heap, entry)
            self._entries[task_id] = entry
            self._prune()
            return self._heap[0] is entry

    async def remove(self, task_id: UUID) -> StoreEntry | None:
        async with self._lock:
            entry = self._entries.pop(task_id, None)
            if entry is not None:
                entry.removed = True
                self._prune()
            return entry

    async def peek(self) -> StoreEntry | None:
        async with self._lock:
            self._prune()
            return self._heap[0] if self._heap else None

    async def pop_due(self, now: datetime) -> StoreEntry | None:
        async with self._lock:
            self._prune()
            if not self._heap or self._heap[0].fire_at > now:
                return None
            entry = heapq.heappop(self._heap)
            del self._entries[entry.task_id]
            return entry

    async def get(self, task_id: UUID) -> StoreEntry | None:
        return self._entries.get(task_id)

    async def clear(self) -> None:
        async with self._lock:
            self._heap.clear()
            self._entries.clear()

    async def size(self) -> int:
        return len(self._entries)
