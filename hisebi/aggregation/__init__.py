"""
Aggregation Package

Pure derivations over the ledger snapshot: totals, the activity feed,
chart series and shopping list ordering. Nothing here mutates its input.
"""

from hisebi.aggregation.activity import merge_activity, recent_transactions
from hisebi.aggregation.charts import (
    DEFAULT_TREND_WINDOW,
    group_expenses_by_category,
    short_date_label,
    trend_window,
)
from hisebi.aggregation.shopping import (
    clear_completed,
    sort_shopping_items,
    toggle_item,
)
from hisebi.aggregation.totals import (
    budget_status,
    compute_shopping_totals,
    compute_totals,
)

__all__ = [
    "DEFAULT_TREND_WINDOW",
    "budget_status",
    "clear_completed",
    "compute_shopping_totals",
    "compute_totals",
    "group_expenses_by_category",
    "merge_activity",
    "recent_transactions",
    "short_date_label",
    "sort_shopping_items",
    "toggle_item",
    "trend_window",
]
