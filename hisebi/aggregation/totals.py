"""
Totals

Headline sums for the dashboard, the shopping list and the budget check.
All functions are pure: they read the collections they are given and
return new view objects.
"""

from typing import Iterable

from hisebi.models.ledger import Debt, ShoppingItem, Transaction, UserProfile
from hisebi.models.views import BudgetStatus, LedgerTotals, ShoppingTotals


def compute_totals(
    transactions: Iterable[Transaction],
    debts: Iterable[Debt],
) -> LedgerTotals:
    """
    Sum income, expense and pending Dhar.

    Repaid debts never contribute to `pending_debt`.
    """
    income = 0.0
    expense = 0.0
    for transaction in transactions:
        if transaction.is_income:
            income += transaction.amount
        elif transaction.is_expense:
            expense += transaction.amount

    pending = sum(debt.amount for debt in debts if debt.is_pending)

    return LedgerTotals(
        total_income=income,
        total_expense=expense,
        pending_debt=float(pending),
    )


def compute_shopping_totals(items: Iterable[ShoppingItem]) -> ShoppingTotals:
    """
    Sum estimated cost over the shopping list.

    A missing price counts as 0 and a missing quantity as 1.
    """
    total = 0.0
    completed_total = 0.0
    item_count = 0
    completed_count = 0

    for item in items:
        item_count += 1
        total += item.line_total
        if item.completed:
            completed_count += 1
            completed_total += item.line_total

    return ShoppingTotals(
        total=total,
        completed_total=completed_total,
        item_count=item_count,
        completed_count=completed_count,
    )


def budget_status(totals: LedgerTotals, profile: UserProfile) -> BudgetStatus:
    """Compare total spending with the profile's monthly budget."""
    return BudgetStatus(
        budget=profile.monthly_budget,
        spent=totals.total_expense,
    )
