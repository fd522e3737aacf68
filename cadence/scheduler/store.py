"""TaskStore abstract interface for pending firings."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from cadence.task.models import TaskPriority


@dataclass(order=True)
class StoreEntry:
    """A pending firing.

    Entries order by fire time, then higher priority first, then insertion
    sequence.
    """

    fire_at: datetime
    rank: int
    sequence: int
    task_id: UUID = field(compare=False)
    priority: TaskPriority = field(compare=False)
    removed: bool = field(default=False, compare=False)


class TaskStore(ABC):
    """Ordered collection of pending firings, at most one per task.

    Mutations are atomic with respect to each other; ``pop_due`` combines
    peek and removal so two consumers can never take the same entry.
    """

    @abstractmethod
    async def insert(self, task_id: UUID, fire_at: datetime, priority: TaskPriority) -> bool:
        """Add or replace the pending firing for a task.

        Args:
            task_id: Task identifier
            fire_at: When the firing is due
            priority: Tie-breaker for equal fire times

        Returns:
            True if the new entry is now the earliest in the store
        """
        pass

    @abstractmethod
    async def remove(self, task_id: UUID) -> StoreEntry | None:
        """Remove a task's pending firing.

        Returns:
            The removed entry, or None if the task had none
        """
        pass

    @abstractmethod
    async def peek(self) -> StoreEntry | None:
        """Return the earliest entry without removing it."""
        pass

    @abstractmethod
    async def pop_due(self, now: datetime) -> StoreEntry | None:
        """Remove and return the earliest entry if it is due at ``now``."""
        pass

    @abstractmethod
    async def get(self, task_id: UUID) -> StoreEntry | None:
        """Return a task's pending entry, if any."""
        pass

    @abstractmethod
    async def clear(self) -> None:
        pass

    @abstractmethod
    async def size(self) -> int:
        pass

    async def contains(self, task_id: UUID) -> bool:
        return await self.get(task_id) is not None
