"""
Core Data Models for Hisebi

These models define the schemas for everything kept in the ledger snapshot.
They are designed to:
1. Enforce types at the boundary (form input, persisted blob)
2. Serialize to the same camelCase blob the browser app stored
3. Stay immutable once created; changes produce new copies

DESIGN DECISION: Records are frozen Pydantic v2 models. The only
"mutations" the domain allows (debt status, shopping completion) are
expressed as `model_copy(update=...)` by the caller.
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


DEFAULT_PROFILE_NAME = "Guest User"
DEFAULT_MONTHLY_BUDGET = 15000.0


def new_id() -> str:
    """Opaque unique identifier for a new record."""
    return str(uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Direction of a transaction."""
    INCOME = "income"
    EXPENSE = "expense"


class DebtStatus(str, Enum):
    """
    Dhar status.

    Debts are created PENDING and toggle between the two states.
    """
    PENDING = "pending"
    REPAID = "repaid"

    def toggled(self) -> "DebtStatus":
        return DebtStatus.REPAID if self is DebtStatus.PENDING else DebtStatus.PENDING


class _LedgerModel(BaseModel):
    """Shared configuration for persisted records."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        frozen=True,
    )


# =============================================================================
# LEDGER RECORDS
# =============================================================================

class Transaction(_LedgerModel):
    """
    A single income or expense entry.

    Created on form submission, deleted by id, never edited.
    """

    id: str = Field(
        default_factory=new_id,
        description="Unique transaction ID"
    )
    kind: TransactionType = Field(
        ...,
        alias="type",
        description="Income or expense"
    )
    amount: float = Field(
        ...,
        ge=0,
        description="Amount in BDT"
    )
    category: str = Field(
        ...,
        max_length=100,
        description="Category label (free text, usually from the catalogue)"
    )
    date: date
    note: str = Field(
        default="",
        max_length=500,
        description="Optional free-text note"
    )

    @property
    def is_income(self) -> bool:
        return self.kind == TransactionType.INCOME

    @property
    def is_expense(self) -> bool:
        return self.kind == TransactionType.EXPENSE


class Debt(_LedgerModel):
    """
    A Dhar entry: money owed to or by a named counterparty.

    Amount and person are fixed after creation; only status changes.
    """

    id: str = Field(
        default_factory=new_id,
        description="Unique debt ID"
    )
    person: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Counterparty name"
    )
    amount: float = Field(
        ...,
        ge=0,
        description="Amount in BDT"
    )
    date: date
    note: str = Field(
        default="",
        max_length=500,
    )
    status: DebtStatus = Field(
        default=DebtStatus.PENDING,
        description="Pending or repaid"
    )

    @property
    def is_pending(self) -> bool:
        return self.status == DebtStatus.PENDING


class ShoppingItem(_LedgerModel):
    """An entry on the household shopping list (Dor-Dam variant)."""

    id: str = Field(
        default_factory=new_id,
        description="Unique item ID"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="What to buy"
    )
    quantity: Optional[float] = Field(
        default=None,
        gt=0,
        description="How many (missing means 1)"
    )
    estimated_price: Optional[float] = Field(
        default=None,
        ge=0,
        description="Estimated price per unit (missing means 0)"
    )
    unit: Optional[str] = Field(
        default=None,
        max_length=20,
        description="Unit of measurement (e.g., kg, litre)"
    )
    completed: bool = False
    created_at: datetime = Field(
        default_factory=utc_now,
        description="Creation time, used only for ordering"
    )

    @field_validator("created_at")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        """Stored timestamps without an offset are read as UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @property
    def line_total(self) -> float:
        """Estimated price times quantity, treating gaps as 0 and 1."""
        price = self.estimated_price if self.estimated_price is not None else 0.0
        quantity = self.quantity if self.quantity is not None else 1.0
        return price * quantity


class UserProfile(_LedgerModel):
    """Profile settings. Overwritten wholesale on edit."""

    name: str = Field(
        default=DEFAULT_PROFILE_NAME,
        max_length=100,
    )
    monthly_budget: float = Field(
        default=DEFAULT_MONTHLY_BUDGET,
        ge=0,
        description="Monthly budget ceiling in BDT"
    )


class LedgerSnapshot(_LedgerModel):
    """
    The complete state of the ledger at one point in time.

    Collections are stored newest-created first.
    """

    transactions: tuple[Transaction, ...] = ()
    debts: tuple[Debt, ...] = ()
    shopping_items: tuple[ShoppingItem, ...] = ()
    profile: UserProfile = Field(default_factory=UserProfile)

    def to_blob_dict(self, include_shopping: bool = True) -> dict:
        """Serialize to the persisted blob shape."""
        exclude = None if include_shopping else {"shopping_items"}
        return self.model_dump(mode="json", by_alias=True, exclude=exclude)


# =============================================================================
# INSIGHT MODELS
# =============================================================================

class AIInsight(BaseModel):
    """Budgeting tips returned by the insight service."""

    tips: list[str] = Field(
        default_factory=list,
        description="Short advice strings (three in the happy path)"
    )
    alert: Optional[str] = Field(
        default=None,
        description="Urgent spending warning, if any"
    )
    is_fallback: bool = Field(
        default=False,
        description="True when the standard recommendations were used"
    )
