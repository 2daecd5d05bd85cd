"""
Data Models Package

This package contains all Pydantic models used in Hisebi.
All data flowing through the system must conform to these schemas.
"""

from hisebi.models.ledger import (
    AIInsight,
    Debt,
    DebtStatus,
    LedgerSnapshot,
    ShoppingItem,
    Transaction,
    TransactionType,
    UserProfile,
)
from hisebi.models.views import (
    ActivityEntry,
    ActivityKind,
    ActivitySource,
    BudgetStatus,
    CategorySlice,
    DashboardView,
    LedgerTotals,
    ShoppingTotals,
    TrendPoint,
)
from hisebi.models.forms import ValidationIssue, ValidationResult
from hisebi.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "AIInsight",
    "Debt",
    "DebtStatus",
    "LedgerSnapshot",
    "ShoppingItem",
    "Transaction",
    "TransactionType",
    "UserProfile",
    # Derived views
    "ActivityEntry",
    "ActivityKind",
    "ActivitySource",
    "BudgetStatus",
    "CategorySlice",
    "DashboardView",
    "LedgerTotals",
    "ShoppingTotals",
    "TrendPoint",
    # Form validation
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
