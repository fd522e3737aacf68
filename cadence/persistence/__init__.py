"""Task persistence: snapshots, codec and backends."""

from cadence.persistence.backend import InMemoryPersistenceBackend, PersistenceBackend
from cadence.persistence.codec import decode_backoff, decode_frame, encode_backoff, encode_frame
from cadence.persistence.snapshot import TaskSnapshot, restore_task, snapshot_task

__all__ = [
    "PersistenceBackend",
    "InMemoryPersistenceBackend",
    "TaskSnapshot",
    "snapshot_task",
    "restore_task",
    "encode_frame",
    "decode_frame",
    "encode_backoff",
    "decode_backoff",
]
