"""TaskStore implementations."""

from cadence.scheduler.stores.inmemory import InMemoryTaskStore

__all__ = ["InMemoryTaskStore"]
