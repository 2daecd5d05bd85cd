"""
Activity Merger

Builds the "recent activity" feed: transactions and Dhar entries in one
list, newest date first.

Ordering rule for equal dates: Python's sort is stable and transactions
are concatenated before debts, so on a tie a transaction always comes
before a debt, and entries from the same collection keep their stored
(newest-created-first) order.
"""

from typing import Sequence

from hisebi.models.ledger import Debt, Transaction
from hisebi.models.views import (
    DHAR_CATEGORY,
    ActivityEntry,
    ActivityKind,
    ActivitySource,
)


def _from_transaction(transaction: Transaction) -> ActivityEntry:
    return ActivityEntry(
        id=transaction.id,
        kind=ActivityKind(transaction.kind.value),
        amount=transaction.amount,
        category=transaction.category,
        date=transaction.date,
        note=transaction.note,
        source=ActivitySource.TRANSACTION,
    )


def _from_debt(debt: Debt) -> ActivityEntry:
    # The counterparty takes the place of the note in the feed
    return ActivityEntry(
        id=debt.id,
        kind=ActivityKind.DEBT,
        amount=debt.amount,
        category=DHAR_CATEGORY,
        date=debt.date,
        note=debt.person,
        source=ActivitySource.DEBT,
    )


def merge_activity(
    transactions: Sequence[Transaction],
    debts: Sequence[Debt],
    limit: int,
) -> tuple[ActivityEntry, ...]:
    """
    Merge transactions and debts into one feed, newest date first.

    Args:
        transactions: Stored transactions (newest-created first)
        debts: Stored debts (newest-created first)
        limit: Maximum number of entries to return

    Returns:
        At most `limit` entries. Inputs are not modified.
    """
    if limit <= 0:
        return ()

    combined = [_from_transaction(t) for t in transactions]
    combined.extend(_from_debt(d) for d in debts)
    combined.sort(key=lambda entry: entry.date, reverse=True)

    return tuple(combined[:limit])


def recent_transactions(
    transactions: Sequence[Transaction],
    limit: int,
) -> tuple[Transaction, ...]:
    """
    The `limit` most recent transactions by date, newest first.

    Equal dates keep stored order, i.e. the most recently created wins.
    """
    if limit <= 0:
        return ()
    ordered = sorted(transactions, key=lambda t: t.date, reverse=True)
    return tuple(ordered[:limit])
