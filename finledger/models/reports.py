"""
Derived-Metric Models

Everything in this module is computed from the ledger at read time and
handed to the caller. None of it is ever written back to storage.

Amounts are Decimal. Percentages are floats already rounded half-up to
four decimal places.
"""

from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from finledger.models.ledger import Account, RecurringTransaction, TransactionType


class AccountBalance(BaseModel):
    """An account together with its derived current balance."""

    account: Account
    current_balance: Decimal


class BudgetProgress(BaseModel):
    """Spent-vs-limit for one budget."""

    budget_id: UUID
    category_id: UUID
    category_name: str
    limit: Decimal
    spent: Decimal
    percentage: float = Field(ge=0.0)


class NetWorthSnapshot(BaseModel):
    """Point-in-time net worth and its change since the start of the month."""

    accounts_total: Decimal
    assets_total: Decimal
    net_worth: Decimal
    percentage_change: float


class CashFlowEntry(BaseModel):
    """Income and expense for a single calendar day."""

    date: date
    income: Decimal
    expense: Decimal
    net: Decimal


class CategoryReportLine(BaseModel):
    """One category's share of a month's expenses."""

    category: str
    total: Decimal
    percentage: float


class TopCategory(BaseModel):
    """Category total used by the dashboard ranking."""

    category: str
    total: Decimal


class ChartPoint(BaseModel):
    """A labelled value in a chart series."""

    label: str
    value: Decimal


class TransactionSummary(BaseModel):
    """
    A transaction flattened for display.

    source_name is the card name (prefixed), the account name, or "N/A"
    when the entry is not linked to any funding source.
    """

    id: UUID
    description: str
    amount: Decimal
    date: date
    type: TransactionType
    source_name: str
    category_id: Optional[UUID] = None
    category_name: Optional[str] = None


class DashboardSnapshot(BaseModel):
    """Everything the dashboard shows, computed in one pass."""

    daily_expenses: list[ChartPoint] = Field(default_factory=list)
    total_spent_current_month: Decimal
    total_spent_previous_month: Decimal
    spending_change_percentage: float
    monthly_income: Decimal
    monthly_expense: Decimal
    monthly_result: Decimal
    net_worth: NetWorthSnapshot
    top_categories: list[TopCategory] = Field(default_factory=list)
    recent_transactions: list[TransactionSummary] = Field(default_factory=list)
    upcoming_recurring: list[RecurringTransaction] = Field(default_factory=list)
