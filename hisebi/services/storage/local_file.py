"""
Local File Storage Implementation

Snapshots live in one JSON file mapping each storage key to its blob,
so both application variants can share a data directory. Audit events
are appended to a JSON-lines file.

Writes go to a temporary file in the same directory which then replaces
the original, so the snapshot file always holds a complete value.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Optional

from pydantic import ValidationError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from hisebi.models.audit import AuditEvent
from hisebi.services.storage.interface import (
    AuditStorageInterface,
    KeyValueStorageInterface,
    StorageReadError,
    StorageWriteError,
)


class LocalFileStorage(KeyValueStorageInterface):
    """Key-value slots kept in a single JSON file."""

    def __init__(self, path: Path):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read_slots(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            text = self._path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageReadError(f"Cannot read {self._path}: {e}") from e
        if not text.strip():
            return {}
        try:
            slots = json.loads(text)
        except json.JSONDecodeError as e:
            raise StorageReadError(f"Storage file {self._path} is not valid JSON: {e}") from e
        if not isinstance(slots, dict):
            raise StorageReadError(f"Storage file {self._path} does not hold an object")
        return slots

    def read(self, key: str) -> Optional[str]:
        value = self._read_slots().get(key)
        if value is None:
            return None
        if not isinstance(value, str):
            # Older files may hold the snapshot inline instead of as text
            return json.dumps(value)
        return value

    def write(self, key: str, value: str) -> None:
        try:
            slots = self._read_slots()
        except StorageReadError:
            # An unreadable file is replaced rather than left blocking every save
            slots = {}
        slots[key] = value
        try:
            self._replace_file(json.dumps(slots, ensure_ascii=False, indent=2))
        except OSError as e:
            raise StorageWriteError(f"Cannot write {self._path}: {e}") from e

    @retry(
        retry=retry_if_exception_type(OSError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.1, max=1),
        reraise=True,
    )
    def _replace_file(self, content: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self._path.parent,
            prefix=f".{self._path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(content)
            os.replace(tmp_name, self._path)
        except OSError:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise


class JsonLinesAuditStorage(AuditStorageInterface):
    """Audit events appended one JSON object per line."""

    def __init__(self, path: Path):
        self._path = Path(path)

    def append_event(self, event: AuditEvent) -> bool:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(event.to_json_line() + "\n")
        return True

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        if not self._path.exists():
            return []

        events = []
        with self._path.open(encoding="utf-8") as handle:
            for line in handle:
                line = line.strip()
                if not line:
                    continue
                try:
                    events.append(AuditEvent.model_validate_json(line))
                except ValidationError:
                    continue

        events.reverse()
        return events[:limit]
