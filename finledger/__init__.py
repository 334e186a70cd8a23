"""
Personal Finance Ledger Engine - Source Package

Keeps a user's ledger consistent and derives every figure shown to the
user (balances, net worth, budget progress, reports) from it on demand.

DESIGN PRINCIPLES:
1. Derived figures are recomputed on every read, never stored
2. The only stored summary (card limit used) changes in one place
3. Ownership is verified before anything is written
4. The current user is always passed explicitly
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Finance Ledger Team"
