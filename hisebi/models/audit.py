"""
Audit Models for Hisebi

Every change to the ledger and every degraded path (fallback, rejected
form, failed save) is recorded as an audit event.

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Transactions
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_DELETED = "transaction_deleted"

    # Dhar
    DEBT_ADDED = "debt_added"
    DEBT_STATUS_TOGGLED = "debt_status_toggled"
    DEBT_DELETED = "debt_deleted"

    # Shopping list
    SHOPPING_ITEM_ADDED = "shopping_item_added"
    SHOPPING_ITEM_TOGGLED = "shopping_item_toggled"
    SHOPPING_ITEM_DELETED = "shopping_item_deleted"
    SHOPPING_COMPLETED_CLEARED = "shopping_completed_cleared"

    # Profile
    PROFILE_UPDATED = "profile_updated"

    # Form input
    ENTRY_REJECTED = "entry_rejected"

    # Persistence
    SNAPSHOT_LOADED = "snapshot_loaded"
    SNAPSHOT_FIELD_FALLBACK = "snapshot_field_fallback"
    SNAPSHOT_SAVED = "snapshot_saved"
    SAVE_FAILED = "save_failed"

    # Insights
    INSIGHT_REQUESTED = "insight_requested"
    INSIGHT_GENERATED = "insight_generated"
    INSIGHT_FALLBACK = "insight_fallback"

    # Export
    EXPORT_GENERATED = "export_generated"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every significant action creates one of these.
    """

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # What entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'debt', 'snapshot')"
    )
    entity_id: Optional[str] = None

    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one insight request)"
    )

    description: str = Field(
        ...,
        max_length=500,
    )
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_json_line(self) -> str:
        """One line of the JSON-lines audit file."""
        return json.dumps(self.to_log_dict(), ensure_ascii=False, default=str)


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_added(transaction)
        event = AuditEventBuilder.insight_fallback(reason, correlation_id)
    """

    @staticmethod
    def transaction_added(
        transaction_id: str,
        kind: str,
        amount: float,
        category: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"{kind.capitalize()} of {amount:g} added to {category}",
            details={"type": kind, "amount": amount, "category": category},
            is_user_action=True,
        )

    @staticmethod
    def transaction_deleted(transaction_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=transaction_id,
            description="Transaction deleted",
            is_user_action=True,
        )

    @staticmethod
    def debt_added(debt_id: str, person: str, amount: float) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DEBT_ADDED,
            entity_type="debt",
            entity_id=debt_id,
            description=f"Dhar of {amount:g} recorded with {person}",
            details={"person": person, "amount": amount},
            is_user_action=True,
        )

    @staticmethod
    def debt_status_toggled(debt_id: str, new_status: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DEBT_STATUS_TOGGLED,
            entity_type="debt",
            entity_id=debt_id,
            description=f"Dhar marked {new_status}",
            details={"status": new_status},
            is_user_action=True,
        )

    @staticmethod
    def debt_deleted(debt_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DEBT_DELETED,
            entity_type="debt",
            entity_id=debt_id,
            description="Dhar deleted",
            is_user_action=True,
        )

    @staticmethod
    def shopping_item_added(item_id: str, name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SHOPPING_ITEM_ADDED,
            entity_type="shopping_item",
            entity_id=item_id,
            description=f"Shopping item added: {name}",
            details={"name": name},
            is_user_action=True,
        )

    @staticmethod
    def shopping_item_toggled(item_id: str, completed: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SHOPPING_ITEM_TOGGLED,
            entity_type="shopping_item",
            entity_id=item_id,
            description="Shopping item checked off" if completed else "Shopping item reopened",
            details={"completed": completed},
            is_user_action=True,
        )

    @staticmethod
    def shopping_item_deleted(item_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SHOPPING_ITEM_DELETED,
            entity_type="shopping_item",
            entity_id=item_id,
            description="Shopping item deleted",
            is_user_action=True,
        )

    @staticmethod
    def shopping_completed_cleared(removed: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SHOPPING_COMPLETED_CLEARED,
            entity_type="shopping_item",
            description=f"Cleared {removed} completed shopping items",
            details={"removed_count": removed},
            is_user_action=True,
        )

    @staticmethod
    def profile_updated(name: str, monthly_budget: float) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROFILE_UPDATED,
            entity_type="profile",
            description="Profile updated",
            details={"name": name, "monthly_budget": monthly_budget},
            is_user_action=True,
        )

    @staticmethod
    def entry_rejected(entity_type: str, issues: list[dict]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTRY_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type=entity_type,
            description=f"{entity_type.replace('_', ' ').capitalize()} rejected with {len(issues)} issues",
            details={"issues": issues},
            is_user_action=True,
        )

    @staticmethod
    def snapshot_loaded(
        storage_key: str,
        transactions: int,
        debts: int,
        shopping_items: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_LOADED,
            entity_type="snapshot",
            entity_id=storage_key,
            description=f"Snapshot loaded from '{storage_key}'",
            details={
                "transactions": transactions,
                "debts": debts,
                "shopping_items": shopping_items,
            },
        )

    @staticmethod
    def snapshot_field_fallback(
        storage_key: str,
        field: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_FIELD_FALLBACK,
            severity=AuditSeverity.WARNING,
            entity_type="snapshot",
            entity_id=storage_key,
            description=f"Stored '{field}' could not be read, using default",
            details={"field": field},
            error_message=error_message,
        )

    @staticmethod
    def snapshot_saved(storage_key: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_SAVED,
            severity=AuditSeverity.DEBUG,
            entity_type="snapshot",
            entity_id=storage_key,
            description=f"Snapshot saved to '{storage_key}'",
        )

    @staticmethod
    def save_failed(storage_key: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="snapshot",
            entity_id=storage_key,
            description="Snapshot could not be saved",
            error_message=error_message,
        )

    @staticmethod
    def insight_requested(correlation_id: UUID, transaction_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INSIGHT_REQUESTED,
            entity_type="insight",
            correlation_id=correlation_id,
            description="AI insights requested",
            details={"transactions_sent": transaction_count},
            is_user_action=True,
        )

    @staticmethod
    def insight_generated(correlation_id: UUID, tip_count: int, has_alert: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INSIGHT_GENERATED,
            entity_type="insight",
            correlation_id=correlation_id,
            description=f"AI insights generated with {tip_count} tips",
            details={"tip_count": tip_count, "has_alert": has_alert},
        )

    @staticmethod
    def insight_fallback(correlation_id: UUID, reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INSIGHT_FALLBACK,
            severity=AuditSeverity.WARNING,
            entity_type="insight",
            correlation_id=correlation_id,
            description="AI insights unavailable, standard tips shown",
            error_message=reason,
        )

    @staticmethod
    def export_generated(row_count: int, filename: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPORT_GENERATED,
            entity_type="export",
            description=f"CSV export with {row_count} rows",
            details={"rows": row_count, "filename": filename},
            is_user_action=True,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            correlation_id=correlation_id,
            description=f"System error: {error_type}",
            details=details or {},
            error_message=error_message,
        )
