"""
Storage Services Package

Provides the key-value storage interface, a local JSON file backend, an
in-memory backend and the snapshot store that sits on top of them.
"""

from hisebi.services.storage.interface import (
    AuditStorageInterface,
    KeyValueStorageInterface,
    StorageError,
    StorageReadError,
    StorageWriteError,
)
from hisebi.services.storage.local_file import JsonLinesAuditStorage, LocalFileStorage
from hisebi.services.storage.memory import InMemoryAuditStorage, InMemoryStorage
from hisebi.services.storage.snapshot import SnapshotStore

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "KeyValueStorageInterface",
    # Exceptions
    "StorageError",
    "StorageReadError",
    "StorageWriteError",
    # Implementations
    "InMemoryAuditStorage",
    "InMemoryStorage",
    "JsonLinesAuditStorage",
    "LocalFileStorage",
    "SnapshotStore",
]
