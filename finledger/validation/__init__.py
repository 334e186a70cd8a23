"""Mutation validation package."""

from finledger.validation.validator import (
    OwnershipViolationError,
    ResolvedLinks,
    TransactionValidationError,
    TransactionValidator,
    require_owned,
)

__all__ = [
    "OwnershipViolationError",
    "ResolvedLinks",
    "TransactionValidationError",
    "TransactionValidator",
    "require_owned",
]
