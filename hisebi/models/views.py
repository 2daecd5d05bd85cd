"""
Derived View Models

Read-only results of the aggregation layer. None of these are persisted;
they are recomputed from the ledger snapshot after every change.
"""

from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


DHAR_CATEGORY = "Dhar"
NO_DATA_LABEL = "No Data"
TODAY_LABEL = "Today"


class _ViewModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class ActivityKind(str, Enum):
    """Kinds that appear in the merged activity feed."""
    INCOME = "income"
    EXPENSE = "expense"
    DEBT = "debt"


class ActivitySource(str, Enum):
    TRANSACTION = "transaction"
    DEBT = "debt"


class LedgerTotals(_ViewModel):
    """Headline numbers for the dashboard."""

    total_income: float = 0.0
    total_expense: float = 0.0
    pending_debt: float = 0.0

    @property
    def balance(self) -> float:
        return self.total_income - self.total_expense


class ShoppingTotals(_ViewModel):
    """Shopping list sums and counts."""

    total: float = 0.0
    completed_total: float = 0.0
    item_count: int = Field(default=0, ge=0)
    completed_count: int = Field(default=0, ge=0)

    @property
    def completion_percentage(self) -> float:
        """Share of completed items in percent; 0 for an empty list."""
        if self.item_count == 0:
            return 0.0
        return self.completed_count / self.item_count * 100


class BudgetStatus(_ViewModel):
    """How total spending compares with the monthly budget."""

    budget: float
    spent: float

    @property
    def over_budget(self) -> bool:
        return self.spent > self.budget

    @property
    def overrun(self) -> float:
        return self.spent - self.budget if self.over_budget else 0.0


class ActivityEntry(_ViewModel):
    """A transaction or a debt, shaped for the recent activity feed."""

    id: str
    kind: ActivityKind = Field(alias="type")
    amount: float
    category: str
    date: date
    note: str = ""
    source: ActivitySource


class CategorySlice(_ViewModel):
    """One slice of the expense-by-category chart."""

    name: str
    value: float
    is_placeholder: bool = False
    color: Optional[str] = None


class TrendPoint(_ViewModel):
    """One bar of the recent transactions chart."""

    date: str = Field(description="Short label such as 'Jan 5'")
    amount: float
    kind: str = Field(alias="type")


class DashboardView(_ViewModel):
    """Every derived view the dashboard needs, computed in one pass."""

    totals: LedgerTotals
    budget: BudgetStatus
    recent_activity: tuple[ActivityEntry, ...] = ()
    category_breakdown: tuple[CategorySlice, ...] = ()
    trend: tuple[TrendPoint, ...] = ()
    shopping_totals: ShoppingTotals = Field(default_factory=ShoppingTotals)
