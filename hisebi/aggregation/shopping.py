"""
Shopping List Ordering and Bulk Operations

The display order is derived on every read and never written back:
open items first, then checked-off items, newest first within each group.
"""

from typing import Sequence

from hisebi.models.ledger import ShoppingItem


def sort_shopping_items(items: Sequence[ShoppingItem]) -> tuple[ShoppingItem, ...]:
    """
    Order items for display.

    Incomplete before completed; within a group by `created_at`
    descending. Items with identical timestamps keep stored order.
    """
    by_recency = sorted(items, key=lambda item: item.created_at, reverse=True)
    return tuple(sorted(by_recency, key=lambda item: item.completed))


def clear_completed(items: Sequence[ShoppingItem]) -> list[ShoppingItem]:
    """Drop every completed item, keeping the rest in stored order."""
    return [item for item in items if not item.completed]


def toggle_item(items: Sequence[ShoppingItem], item_id: str) -> list[ShoppingItem]:
    """
    Flip the completed flag of the item with `item_id`.

    Every other item, and every other field, is left untouched. An unknown
    id returns an unchanged copy of the list.
    """
    return [
        item.model_copy(update={"completed": not item.completed})
        if item.id == item_id else item
        for item in items
    ]
