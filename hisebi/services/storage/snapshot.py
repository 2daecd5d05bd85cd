"""
Snapshot Store

Loads the ledger snapshot once at startup and writes it back whole after
every change.

Loading never fails. If the blob cannot be parsed at all, every field
takes its default. Otherwise each field is validated on its own, so a
damaged `debts` list does not cost the user their transactions. Every
fallback is logged.
"""

import json
from typing import TYPE_CHECKING, Any, Optional

from pydantic import TypeAdapter, ValidationError

from hisebi.models.audit import AuditEvent, AuditEventBuilder
from hisebi.models.ledger import (
    Debt,
    LedgerSnapshot,
    ShoppingItem,
    Transaction,
    UserProfile,
)
from hisebi.services.storage.interface import (
    KeyValueStorageInterface,
    StorageReadError,
    StorageWriteError,
)

if TYPE_CHECKING:
    from hisebi.audit.logger import AuditLogger


_TRANSACTIONS = TypeAdapter(tuple[Transaction, ...])
_DEBTS = TypeAdapter(tuple[Debt, ...])
_SHOPPING_ITEMS = TypeAdapter(tuple[ShoppingItem, ...])


class SnapshotStore:
    """Reads and writes one variant's snapshot slot."""

    def __init__(
        self,
        storage: KeyValueStorageInterface,
        storage_key: str,
        default_profile: Optional[UserProfile] = None,
        include_shopping: bool = True,
        audit_logger: Optional["AuditLogger"] = None,
    ):
        self._storage = storage
        self._key = storage_key
        self._default_profile = default_profile or UserProfile()
        self._include_shopping = include_shopping
        self._audit_logger = audit_logger

    @property
    def storage_key(self) -> str:
        return self._key

    def _log(self, event: AuditEvent) -> None:
        if self._audit_logger:
            self._audit_logger.log(event)

    def _fallback(self, field: str, error: Exception) -> None:
        self._log(AuditEventBuilder.snapshot_field_fallback(
            storage_key=self._key,
            field=field,
            error_message=str(error),
        ))

    def _load_field(self, raw: dict, field: str, adapter: TypeAdapter) -> tuple:
        value = raw.get(field)
        if not value:
            return ()
        try:
            return adapter.validate_python(value)
        except ValidationError as e:
            self._fallback(field, e)
            return ()

    def _load_profile(self, raw: dict) -> UserProfile:
        value = raw.get("profile")
        if not value:
            return self._default_profile
        try:
            return UserProfile.model_validate(value)
        except ValidationError as e:
            self._fallback("profile", e)
            return self._default_profile

    def empty(self) -> LedgerSnapshot:
        return LedgerSnapshot(profile=self._default_profile)

    def load(self) -> LedgerSnapshot:
        """Read the stored snapshot, falling back field by field."""
        try:
            blob = self._storage.read(self._key)
        except StorageReadError as e:
            self._fallback("snapshot", e)
            return self.empty()

        if blob is None:
            return self.empty()

        try:
            raw: Any = json.loads(blob)
        except json.JSONDecodeError as e:
            self._fallback("snapshot", e)
            return self.empty()

        if not isinstance(raw, dict):
            self._fallback("snapshot", TypeError(f"Expected an object, got {type(raw).__name__}"))
            return self.empty()

        snapshot = LedgerSnapshot(
            transactions=self._load_field(raw, "transactions", _TRANSACTIONS),
            debts=self._load_field(raw, "debts", _DEBTS),
            shopping_items=(
                self._load_field(raw, "shoppingItems", _SHOPPING_ITEMS)
                if self._include_shopping else ()
            ),
            profile=self._load_profile(raw),
        )

        self._log(AuditEventBuilder.snapshot_loaded(
            storage_key=self._key,
            transactions=len(snapshot.transactions),
            debts=len(snapshot.debts),
            shopping_items=len(snapshot.shopping_items),
        ))
        return snapshot

    def save(self, snapshot: LedgerSnapshot) -> None:
        """
        Write the whole snapshot.

        Raises:
            StorageWriteError: If the backend rejects the write
        """
        blob = json.dumps(
            snapshot.to_blob_dict(include_shopping=self._include_shopping),
            ensure_ascii=False,
        )
        try:
            self._storage.write(self._key, blob)
        except StorageWriteError as e:
            self._log(AuditEventBuilder.save_failed(self._key, str(e)))
            raise
        self._log(AuditEventBuilder.snapshot_saved(self._key))
