"""Services package."""

from hisebi.services.export import CSV_HEADERS, format_amount, transactions_to_csv
from hisebi.services.storage import (
    AuditStorageInterface,
    InMemoryAuditStorage,
    InMemoryStorage,
    JsonLinesAuditStorage,
    KeyValueStorageInterface,
    LocalFileStorage,
    SnapshotStore,
    StorageError,
    StorageReadError,
    StorageWriteError,
)

__all__ = [
    # Export
    "CSV_HEADERS",
    "format_amount",
    "transactions_to_csv",
    # Storage services
    "AuditStorageInterface",
    "InMemoryAuditStorage",
    "InMemoryStorage",
    "JsonLinesAuditStorage",
    "KeyValueStorageInterface",
    "LocalFileStorage",
    "SnapshotStore",
    "StorageError",
    "StorageReadError",
    "StorageWriteError",
]
