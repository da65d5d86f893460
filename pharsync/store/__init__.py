"""Desired-state store boundary and backends."""

from pharsync.store.base import (
    ConflictError,
    DesiredStateStore,
    InvalidRecordError,
    NotFoundError,
    StoreError,
)
from pharsync.store.memory import InMemoryStore
from pharsync.store.sqlite import SQLiteStore

__all__ = [
    "DesiredStateStore",
    "StoreError",
    "NotFoundError",
    "ConflictError",
    "InvalidRecordError",
    "InMemoryStore",
    "SQLiteStore",
]
