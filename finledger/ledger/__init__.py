"""Ledger invariant maintenance package."""

from finledger.ledger.limits import CreditCardLimitManager, LimitAdjustment

__all__ = ["CreditCardLimitManager", "LimitAdjustment"]
