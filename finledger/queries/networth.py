"""
Net Worth

Net worth = derived account balances + asset values.

The month-over-month change compares against a start-of-month figure
that is reverse-derived from the current month's net income:

    start_of_month = net_worth - (income_this_month - expense_this_month)

This assumes every entry of the current month is already reflected in
the live balances. It is an approximation, not a historical snapshot.
"""

from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

import structlog

from finledger.config import LedgerSettings, get_settings
from finledger.models.ledger import TransactionType
from finledger.models.reports import NetWorthSnapshot
from finledger.percentages import percentage_change
from finledger.periods import current_month_bounds
from finledger.queries.balances import BalanceCalculator
from finledger.services.storage import LedgerStoreInterface


logger = structlog.get_logger(__name__)


class NetWorthCalculator:
    """Aggregates balances and assets into a point-in-time net worth."""

    def __init__(
        self,
        store: LedgerStoreInterface,
        settings: Optional[LedgerSettings] = None,
    ):
        self._store = store
        self._settings = settings or get_settings().ledger
        self._balances = BalanceCalculator(store)

    async def monthly_totals(self, user_id: UUID, today: date) -> tuple[Decimal, Decimal]:
        """(income, expense) of the calendar month containing today."""
        start, end = current_month_bounds(today)
        transactions = await self._store.list_transactions(
            user_id, date_from=start, date_to=end
        )
        income = sum(
            (t.amount for t in transactions if t.type == TransactionType.INCOME),
            Decimal("0"),
        )
        expense = sum(
            (t.amount for t in transactions if t.type == TransactionType.EXPENSE),
            Decimal("0"),
        )
        return income, expense

    async def snapshot(
        self,
        user_id: UUID,
        monthly_income: Decimal,
        monthly_expense: Decimal,
    ) -> NetWorthSnapshot:
        """Net worth given this month's already-computed income and expense."""
        accounts_total = await self._balances.total_of(user_id)
        assets_total = sum(
            (a.value for a in await self._store.list_assets(user_id) if a.value is not None),
            Decimal("0"),
        )
        net_worth = accounts_total + assets_total
        start_of_month = net_worth - (monthly_income - monthly_expense)

        logger.debug(
            "net_worth_computed",
            user_id=str(user_id),
            net_worth=str(net_worth),
            start_of_month=str(start_of_month),
        )
        return NetWorthSnapshot(
            accounts_total=accounts_total,
            assets_total=assets_total,
            net_worth=net_worth,
            percentage_change=percentage_change(
                net_worth, start_of_month, self._settings.percentage_places
            ),
        )

    async def net_worth(self, user_id: UUID, today: Optional[date] = None) -> NetWorthSnapshot:
        today = today or date.today()
        income, expense = await self.monthly_totals(user_id, today)
        return await self.snapshot(user_id, income, expense)
