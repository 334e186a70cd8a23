"""
Core Ledger Models

These models define the schemas for every entity the engine reads from
or writes to the ledger store.

Money is always Decimal and dates are calendar days without a time
component. Every entity carries the id of the user who owns it; there
is no ambient "current user" anywhere in the engine.

DESIGN DECISION: Only raw facts live on these models. A CreditCard's
limit_used is the single stored summary; account balances, net worth
and report figures are computed by the query layer.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Direction of money for a transaction, category or recurring item."""
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class AssetType(str, Enum):
    """Kinds of non-liquid assets that count towards net worth."""
    INVESTMENT = "INVESTMENT"
    VEHICLE = "VEHICLE"
    PROPERTY = "PROPERTY"
    OTHER = "OTHER"


class Frequency(str, Enum):
    """How often a recurring transaction is expected."""
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


# =============================================================================
# FUNDING SOURCES
# =============================================================================

class Account(BaseModel):
    """
    A bank account or wallet.

    The current balance is never stored here. It is derived from
    initial_balance and the account's transactions on every read.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    user_id: UUID
    name: str = Field(..., min_length=1, max_length=100)
    bank: Optional[str] = Field(default=None, max_length=100)
    type: str = Field(
        default="CHECKING",
        description="Account kind, e.g. CHECKING or SAVINGS"
    )
    initial_balance: Decimal = Field(
        default=Decimal("0"),
        description="Balance at the moment the account was registered"
    )


class CreditCard(BaseModel):
    """
    A credit card.

    CRITICAL: limit_used is stored, and only CreditCardLimitManager may
    change it. It must equal the sum of the EXPENSE transactions
    currently charged to the card.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    user_id: UUID
    name: str = Field(..., min_length=1, max_length=100)
    last_four_digits: Optional[str] = Field(
        default=None,
        pattern=r"^\d{4}$",
    )
    color: Optional[str] = Field(
        default=None,
        description="Hex colour used by the UI"
    )
    limit_total: Decimal = Field(default=Decimal("0"), ge=0)
    limit_used: Decimal = Field(default=Decimal("0"))
    closing_day: int = Field(default=1, ge=1, le=31)
    due_day: int = Field(default=10, ge=1, le=31)

    @property
    def limit_available(self) -> Decimal:
        """Remaining credit on the card."""
        return self.limit_total - self.limit_used


# =============================================================================
# CLASSIFICATION
# =============================================================================

class Category(BaseModel):
    """User-defined classification for transactions, budgets and recurring items."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    user_id: UUID
    name: str = Field(..., min_length=1, max_length=100)
    type: TransactionType = TransactionType.EXPENSE


# =============================================================================
# LEDGER ENTRIES
# =============================================================================

class Transaction(BaseModel):
    """
    A single ledger entry.

    The sign of the money movement comes from `type`; user-entered
    amounts are non-negative (enforced by TransactionValidator, not
    here, because imported rows may carry a negative amount).

    A transaction is funded by an account OR a credit card, never both.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    user_id: UUID
    description: str = Field(default="", max_length=255)
    amount: Decimal
    type: TransactionType
    date: date

    account_id: Optional[UUID] = None
    credit_card_id: Optional[UUID] = None
    category_id: Optional[UUID] = None

    external_id: Optional[str] = Field(
        default=None,
        max_length=100,
        description="Identifier in an external system, used for deduplication"
    )
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @model_validator(mode='after')
    def validate_funding_source(self) -> 'Transaction':
        """An entry cannot be charged to an account and a card at once."""
        if self.account_id is not None and self.credit_card_id is not None:
            raise ValueError(
                "Transaction cannot be linked to both an account and a credit card"
            )
        return self

    @property
    def is_card_expense(self) -> bool:
        """True when this entry counts towards a card's limit_used."""
        return (
            self.credit_card_id is not None
            and self.type == TransactionType.EXPENSE
        )


class TransactionChanges(BaseModel):
    """
    The editable state of a transaction, as submitted for create or update.

    Setting credit_card_id clears account_id and vice versa; when both
    are given the card wins, mirroring how the ledger resolves links.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    description: str = Field(default="", max_length=255)
    amount: Decimal
    type: TransactionType
    date: date
    account_id: Optional[UUID] = None
    credit_card_id: Optional[UUID] = None
    category_id: Optional[UUID] = None
    external_id: Optional[str] = Field(default=None, max_length=100)


# =============================================================================
# PLANNING
# =============================================================================

class Budget(BaseModel):
    """Spending limit for one category in one calendar month."""

    id: UUID = Field(default_factory=uuid4)
    user_id: UUID
    category_id: UUID
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=1900, le=9999)
    amount: Decimal = Field(..., ge=0, description="Spending limit")


class Asset(BaseModel):
    """
    A non-liquid asset (vehicle, property, investment).

    Counts towards net worth only; never towards balances or cash flow.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    user_id: UUID
    name: str = Field(..., min_length=1, max_length=100)
    value: Optional[Decimal] = None
    type: AssetType = AssetType.OTHER


class RecurringTransaction(BaseModel):
    """
    Template for a charge or income that repeats.

    This is not a ledger entry. RecurringFlow.materialize turns it into
    a real Transaction for a given month.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    user_id: UUID
    description: str = Field(default="", max_length=255)
    amount: Decimal = Field(..., ge=0)
    type: TransactionType = TransactionType.EXPENSE
    category_id: Optional[UUID] = None
    due_day: int = Field(..., ge=1, le=31, description="Day of month it falls due")
    frequency: Frequency = Frequency.MONTHLY


# =============================================================================
# VALIDATION
# =============================================================================

class ValidationIssue(BaseModel):
    """A single problem found in a submitted mutation."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'invalid_value', 'conflicting_links')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
