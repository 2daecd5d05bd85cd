"""
Category Catalogue

The fixed category sets offered by the entry forms, with display colours.
Transactions may still carry any free-text label; unknown labels get a
colour picked by a stable hash of the name.
"""

import hashlib
from typing import NamedTuple


class Category(NamedTuple):
    name: str
    color: str


EXPENSE_CATEGORIES: tuple[Category, ...] = (
    Category("Food", "#F87171"),
    Category("Rent/Housing", "#60A5FA"),
    Category("Transport", "#FBBF24"),
    Category("Utilities", "#34D399"),
    Category("Health", "#F472B6"),
    Category("Entertainment", "#A78BFA"),
    Category("Shopping", "#FB923C"),
    Category("Other", "#94A3B8"),
)

INCOME_CATEGORIES: tuple[Category, ...] = (
    Category("Salary", "#10B981"),
    Category("Freelance", "#3B82F6"),
    Category("Gifts", "#EC4899"),
    Category("Investment", "#8B5CF6"),
    Category("Other", "#6B7280"),
)

PLACEHOLDER_COLOR = "#1e293b"

_PALETTE = tuple(cat.color for cat in EXPENSE_CATEGORIES)
_EXPENSE_COLORS = {cat.name: cat.color for cat in EXPENSE_CATEGORIES}


def expense_category_names() -> list[str]:
    return [cat.name for cat in EXPENSE_CATEGORIES]


def income_category_names() -> list[str]:
    return [cat.name for cat in INCOME_CATEGORIES]


def is_known_category(name: str, income: bool = False) -> bool:
    names = income_category_names() if income else expense_category_names()
    return name in names


def category_color(name: str) -> str:
    """
    Colour for an expense category.

    Catalogue categories keep their own colour. Any other label maps to
    a palette entry through an md5 digest of the name, so the same label
    gets the same colour in every session.
    """
    if name in _EXPENSE_COLORS:
        return _EXPENSE_COLORS[name]
    digest = hashlib.md5(name.encode("utf-8")).hexdigest()
    return _PALETTE[int(digest, 16) % len(_PALETTE)]
