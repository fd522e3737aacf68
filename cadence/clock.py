"""Clocks: the time source for scheduling decisions.

SystemClock follows wall time. VirtualClock only moves when advanced,
which makes timing-dependent behaviour testable deterministically.
"""

import asyncio
import heapq
import itertools
from abc import ABC, abstractmethod
from datetime import UTC, datetime, timedelta

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def to_timedelta(value: float | timedelta) -> timedelta:
    """Normalize a duration given in seconds or as a timedelta."""
    if isinstance(value, timedelta):
        return value
    return timedelta(seconds=value)


class SchedulerClock(ABC):
    """Time source used by the scheduler loop and by time-aware frames."""

    @abstractmethod
    def now(self) -> datetime:
        """Current instant (timezone-aware, UTC)."""

    @abstractmethod
    async def idle_to(self, to: datetime) -> None:
        """Suspend until the clock reaches ``to``.

        Returns immediately when ``to`` is not in the future. Callers that
        need to be woken early race this against another awaitable.
        """

    async def sleep(self, duration: float | timedelta) -> None:
        """Suspend for a duration measured on this clock."""
        await self.idle_to(self.now() + to_timedelta(duration))


class AdvanceableClock(SchedulerClock):
    """A clock whose time is moved explicitly."""

    @abstractmethod
    async def advance_to(self, to: datetime) -> None:
        """Jump to ``to`` and wake every waiter whose target has passed."""

    async def advance(self, delta: float | timedelta) -> None:
        await self.advance_to(self.now() + to_timedelta(delta))


class SystemClock(SchedulerClock):
    """Wall-clock time backed by the event loop's timers."""

    def now(self) -> datetime:
        return datetime.now(UTC)

    async def idle_to(self, to: datetime) -> None:
        # Re-check after waking: loop timers may fire slightly early.
        while True:
            remaining = (to - self.now()).total_seconds()
            if remaining <= 0:
                return
            await asyncio.sleep(remaining)


class VirtualClock(AdvanceableClock):
    """Simulated time for tests.

    Waiters are kept in a heap keyed by target instant so that advancing
    wakes them in time order.
    """

    def __init__(self, start: datetime | None = None) -> None:
        self._now = start or EPOCH
        self._waiters: list[tuple[datetime, int, asyncio.Future[None]]] = []
        self._seq = itertools.count()

    def now(self) -> datetime:
        return self._now

    async def idle_to(self, to: datetime) -> None:
        if to <= self._now:
            return
        future: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        heapq.heappush(self._waiters, (to, next(self._seq), future))
        try:
            await future
        finally:
            if not future.done():
                future.cancel()

    async def advance_to(self, to: datetime) -> None:
        if to < self._now:
            raise ValueError(f"Cannot move a virtual clock backwards ({to} < {self._now})")
        self._now = to
        while self._waiters and self._waiters[0][0] <= to:
            _, _, future = heapq.heappop(self._waiters)
            if not future.done():
                future.set_result(None)
        # Let woken waiters run before the caller continues.
        await asyncio.sleep(0)

    @property
    def pending_waiters(self) -> int:
        return sum(1 for _, _, future in self._waiters if not future.done())
