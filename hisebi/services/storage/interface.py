"""
Abstract Storage Interface

DESIGN DECISION: Storage is a plain key-value slot holding one opaque
text blob per key, the same contract a browser's localStorage offers.
This allows us to:
1. Keep the snapshot format independent of where it lives
2. Use in-memory storage for testing
3. Add another backend without touching the ledger logic
"""

from abc import ABC, abstractmethod
from typing import Optional

from hisebi.models.audit import AuditEvent


class KeyValueStorageInterface(ABC):
    """
    Abstract interface for snapshot storage.

    Values are written whole; a reader never sees a partial value.
    """

    @abstractmethod
    def read(self, key: str) -> Optional[str]:
        """
        Read the value stored under `key`.

        Returns:
            The stored text, or None if nothing is stored

        Raises:
            StorageReadError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def write(self, key: str, value: str) -> None:
        """
        Replace the value stored under `key`.

        Raises:
            StorageWriteError: If the write fails
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageReadError(StorageError):
    """The storage backend could not be read."""
    pass


class StorageWriteError(StorageError):
    """The storage backend could not be written."""
    pass
