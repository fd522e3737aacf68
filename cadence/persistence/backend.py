"""Persistence backend interface and in-memory implementation."""

import asyncio
from abc import ABC, abstractmethod
from uuid import UUID

from cadence.persistence.snapshot import TaskSnapshot


class PersistenceBackend(ABC):
    """Durable storage for task snapshots.

    The scheduler writes through on every state change it makes and deletes
    snapshots of cancelled or finished tasks.
    """

    @abstractmethod
    async def save(self, snapshot: TaskSnapshot) -> None:
        """Create or replace the snapshot for ``snapshot.task_id``."""
        pass

    @abstractmethod
    async def load(self) -> list[TaskSnapshot]:
        """Return every stored snapshot."""
        pass

    @abstractmethod
    async def delete(self, task_id: UUID) -> None:
        """Remove a snapshot. Deleting a missing snapshot is not an error."""
        pass


class InMemoryPersistenceBackend(PersistenceBackend):
    """Keeps snapshots as JSON documents in a dict.

    Storing JSON rather than model instances makes saves go through the same
    serialization a durable backend would need.
    """

    def __init__(self) -> None:
        self._documents: dict[UUID, str] = {}
        self._lock = asyncio.Lock()

    async def save(self, snapshot: TaskSnapshot) -> None:
        async with self._lock:
            self._documents[snapshot.task_id] = snapshot.model_dump_json()

    async def load(self) -> list[TaskSnapshot]:
        async with self._lock:
            return [TaskSnapshot.model_validate_json(doc) for doc in self._documents.values()]

    async def delete(self, task_id: UUID) -> None:
        async with self._lock:
            self._documents.pop(task_id, None)

    def __len__(self) -> int:
        return len(self._documents)
