"""In-memory storage, used by tests and by ephemeral sessions."""

from typing import Optional

from hisebi.models.audit import AuditEvent
from hisebi.services.storage.interface import (
    AuditStorageInterface,
    KeyValueStorageInterface,
)


class InMemoryStorage(KeyValueStorageInterface):
    """Key-value slots held in a dict."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._slots: dict[str, str] = dict(initial or {})

    def read(self, key: str) -> Optional[str]:
        return self._slots.get(key)

    def write(self, key: str, value: str) -> None:
        self._slots[key] = value


class InMemoryAuditStorage(AuditStorageInterface):
    """Audit events held in a list, oldest first."""

    def __init__(self):
        self.events: list[AuditEvent] = []

    def append_event(self, event: AuditEvent) -> bool:
        self.events.append(event)
        return True

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self.events))[:limit]
