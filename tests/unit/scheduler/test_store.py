"""Tests for InMemoryTaskStore ordering and mutation."""

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from cadence.scheduler import InMemoryTaskStore
from cadence.task.models import TaskPriority

T0 = datetime(2024, 1, 1, tzinfo=UTC)


@pytest.fixture
def store() -> InMemoryTaskStore:
    return InMemoryTaskStore()


class TestInMemoryTaskStore:
    """Tests for the (time, priority, sequence) ordering."""

    async def test_orders_by_fire_time(self, store: InMemoryTaskStore) -> None:
        late, early = uuid4(), uuid4()
        await store.insert(late, T0 + timedelta(seconds=10), TaskPriority.CRITICAL)
        await store.insert(early, T0, TaskPriority.LOW)

        assert (await store.peek()).task_id == early

    async def test_same_instant_higher_priority_first(self, store: InMemoryTaskStore) -> None:
        low, critical, medium = uuid4(), uuid4(), uuid4()
        await store.insert(low, T0, TaskPriority.LOW)
        await store.insert(critical, T0, TaskPriority.CRITICAL)
        await store.insert(medium, T0, TaskPriority.MEDIUM)

        popped = [(await store.pop_due(T0)).task_id for _ in range(3)]
        assert popped == [critical, medium, low]

    async def test_same_instant_same_priority_keeps_insertion_order(self, store: InMemoryTaskStore) -> None:
        ids = [uuid4() for _ in range(4)]
        for task_id in ids:
            await store.insert(task_id, T0, TaskPriority.HIGH)

        assert [(await store.pop_due(T0)).task_id for _ in ids] == ids

    async def test_insert_reports_earliest(self, store: InMemoryTaskStore) -> None:
        assert await store.insert(uuid4(), T0 + timedelta(seconds=5), TaskPriority.MEDIUM)
        assert not await store.insert(uuid4(), T0 + timedelta(seconds=9), TaskPriority.MEDIUM)
        assert await store.insert(uuid4(), T0, TaskPriority.MEDIUM)

    async def test_insert_replaces_existing_entry(self, store: InMemoryTaskStore) -> None:
        """One pending firing per task."""
        task_id = uuid4()
        await store.insert(task_id, T0, TaskPriority.MEDIUM)
        await store.insert(task_id, T0 + timedelta(seconds=30), TaskPriority.MEDIUM)

        assert await store.size() == 1
        assert await store.pop_due(T0) is None
        assert (await store.get(task_id)).fire_at == T0 + timedelta(seconds=30)

    async def test_pop_due_respects_now(self, store: InMemoryTaskStore) -> None:
        task_id = uuid4()
        await store.insert(task_id, T0 + timedelta(seconds=1), TaskPriority.MEDIUM)

        assert await store.pop_due(T0) is None
        entry = await store.pop_due(T0 + timedelta(seconds=1))
        assert entry.task_id == task_id
        assert not await store.contains(task_id)

    async def test_remove(self, store: InMemoryTaskStore) -> None:
        first, second = uuid4(), uuid4()
        await store.insert(first, T0, TaskPriority.MEDIUM)
        await store.insert(second, T0 + timedelta(seconds=1), TaskPriority.MEDIUM)

        assert (await store.remove(first)).task_id == first
        assert await store.remove(first) is None
        assert (await store.peek()).task_id == second

    async def test_clear(self, store: InMemoryTaskStore) -> None:
        await store.insert(uuid4(), T0, TaskPriority.MEDIUM)
        await store.clear()

        assert await store.size() == 0
        assert await store.peek() is None
