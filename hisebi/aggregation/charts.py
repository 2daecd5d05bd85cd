"""
Chart Series

Turns the transaction list into the two series the dashboard draws:

1. CATEGORY GROUPER: expense totals per category (pie/donut chart)
2. TREND WINDOWER: the most recent transactions (bar chart)

Both series are never empty. When there is nothing to show they contain a
single placeholder point, so the chart always has something to render.
"""

from datetime import date
from typing import Sequence

from hisebi.aggregation.activity import recent_transactions
from hisebi.models.categories import PLACEHOLDER_COLOR, category_color
from hisebi.models.ledger import Transaction, TransactionType
from hisebi.models.views import NO_DATA_LABEL, TODAY_LABEL, CategorySlice, TrendPoint


DEFAULT_TREND_WINDOW = 7


def short_date_label(value: date) -> str:
    """Format a date as month abbreviation and day, e.g. 'Jan 5'."""
    return f"{value.strftime('%b')} {value.day}"


def group_expenses_by_category(
    transactions: Sequence[Transaction],
) -> tuple[CategorySlice, ...]:
    """
    Sum expenses per category label.

    Categories appear in the order they are first seen in the stored
    list. With no expenses at all, a single "No Data" placeholder of
    value 1 is returned.
    """
    totals: dict[str, float] = {}
    for transaction in transactions:
        if not transaction.is_expense:
            continue
        totals[transaction.category] = totals.get(transaction.category, 0.0) + transaction.amount

    if not totals:
        return (
            CategorySlice(
                name=NO_DATA_LABEL,
                value=1,
                is_placeholder=True,
                color=PLACEHOLDER_COLOR,
            ),
        )

    return tuple(
        CategorySlice(name=name, value=value, color=category_color(name))
        for name, value in totals.items()
    )


def trend_window(
    transactions: Sequence[Transaction],
    size: int = DEFAULT_TREND_WINDOW,
) -> tuple[TrendPoint, ...]:
    """
    The `size` most recent transactions by date, oldest first.

    Selection is by transaction date, not by storage position; ties go to
    the most recently created entry. Points are returned in chronological
    order for left-to-right plotting. An empty list yields one zero-amount
    expense point labelled "Today".
    """
    window = recent_transactions(transactions, size)
    if not window:
        return (
            TrendPoint(
                date=TODAY_LABEL,
                amount=0,
                kind=TransactionType.EXPENSE.value,
            ),
        )

    return tuple(
        TrendPoint(
            date=short_date_label(t.date),
            amount=t.amount,
            kind=t.kind.value,
        )
        for t in reversed(window)
    )
