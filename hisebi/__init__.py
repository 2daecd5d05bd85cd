"""
Hisebi - Source Package

A personal finance tracker for income, expenses, informal debts ("Dhar")
and, in the Dor-Dam variant, a household shopping list.

DESIGN PRINCIPLES:
1. One ledger snapshot, one owner
2. Derived views are pure functions of the snapshot
3. Bad input is rejected before anything changes
4. Nothing fails loudly: every failure has a defined fallback
5. Every mutation is auditable
"""

__version__ = "1.0.0"
__author__ = "Hisebi Team"
