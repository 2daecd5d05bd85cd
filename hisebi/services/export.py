"""
CSV Export

Serializes transactions as `Date,Type,Category,Amount,Note`, one row per
transaction in display order. Amounts are written as bare numbers.
"""

import csv
import io
from decimal import Decimal
from typing import Iterable

from hisebi.models.ledger import Transaction


CSV_HEADERS = ["Date", "Type", "Category", "Amount", "Note"]


def format_amount(amount: float) -> str:
    """Render an amount in plain decimal notation without a trailing '.0'."""
    if float(amount).is_integer():
        return str(int(amount))
    return format(Decimal(repr(float(amount))), "f")


def transactions_to_csv(transactions: Iterable[Transaction]) -> str:
    """
    Build the CSV text for a list of transactions.

    Text fields are quoted only when they contain a delimiter, a quote
    or a line break.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for t in transactions:
        writer.writerow([
            t.date.isoformat(),
            t.kind.value,
            t.category,
            format_amount(t.amount),
            t.note,
        ])
    return buffer.getvalue()
