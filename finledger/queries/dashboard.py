"""
Dashboard Aggregation

Composes the derived metrics into the single snapshot the dashboard
renders:

1. Spending pace: daily expense for the last N days, zero-filled
2. This month's spending against last month's
3. This month's income, expense and result
4. Net worth and its change since the start of the month
5. Top categories of the previous full month
6. Recent transactions
7. Recurring items falling due soon

IMPORTANT: The upcoming-recurring filter compares day-of-month numbers
only. Near the end of a month the window does not wrap, so an item due
on the 3rd is not listed while today is the 28th.
"""

from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional
from uuid import UUID

import structlog

from finledger.config import LedgerSettings, get_settings
from finledger.models.ledger import RecurringTransaction, Transaction, TransactionType
from finledger.models.reports import ChartPoint, DashboardSnapshot, TopCategory, TransactionSummary
from finledger.percentages import percentage_change
from finledger.periods import current_month_bounds, iter_days, month_bounds, previous_month
from finledger.queries.networth import NetWorthCalculator
from finledger.queries.transactions import TransactionSummarizer, newest_first
from finledger.services.storage import LedgerStoreInterface


logger = structlog.get_logger(__name__)


def _expense_total(transactions: list[Transaction]) -> Decimal:
    return sum(
        (t.amount for t in transactions if t.type == TransactionType.EXPENSE),
        Decimal("0"),
    )


class DashboardAggregator:
    """Builds the dashboard snapshot for one user."""

    def __init__(
        self,
        store: LedgerStoreInterface,
        settings: Optional[LedgerSettings] = None,
    ):
        self._store = store
        self._settings = settings or get_settings().ledger
        self._net_worth = NetWorthCalculator(store, self._settings)
        self._summarizer = TransactionSummarizer(store)

    async def _daily_expenses(self, user_id: UUID, today: date) -> list[ChartPoint]:
        start = today - timedelta(days=self._settings.spending_pace_days - 1)
        expenses = await self._store.list_transactions(
            user_id,
            date_from=start,
            date_to=today,
            transaction_type=TransactionType.EXPENSE,
        )
        by_day: dict[date, Decimal] = defaultdict(Decimal)
        for txn in expenses:
            by_day[txn.date] += txn.amount

        return [
            ChartPoint(label=day.strftime(self._settings.day_label_format), value=by_day[day])
            for day in iter_days(start, today)
        ]

    async def _top_categories(self, user_id: UUID, today: date) -> list[TopCategory]:
        """
        Largest categories of the previous calendar month.

        Any entry typed EXPENSE or carrying a negative amount counts, by
        absolute value, so imported rows with inconsistent typing still
        show up.
        """
        month, year = previous_month(today)
        start, end = month_bounds(month, year)
        transactions = await self._store.list_transactions(user_id, date_from=start, date_to=end)
        names = {c.id: c.name for c in await self._store.list_categories(user_id)}

        totals: dict[str, Decimal] = defaultdict(Decimal)
        for txn in transactions:
            if txn.type != TransactionType.EXPENSE and txn.amount >= 0:
                continue
            name = names.get(txn.category_id) if txn.category_id else None
            totals[name or self._settings.uncategorized_label] += abs(txn.amount)

        ordered = sorted(totals.items(), key=lambda item: (-item[1], item[0]))
        return [
            TopCategory(category=name, total=total)
            for name, total in ordered[: self._settings.top_categories_limit]
        ]

    async def _recent_transactions(self, user_id: UUID, today: date) -> list[TransactionSummary]:
        since = today - timedelta(days=self._settings.recent_transactions_days)
        transactions = await self._store.list_transactions(
            user_id, date_from=since, date_to=today
        )
        recent = newest_first(transactions)[: self._settings.recent_transactions_limit]
        return await self._summarizer.summarize(user_id, recent)

    async def _upcoming_recurring(self, user_id: UUID, today: date) -> list[RecurringTransaction]:
        window_end = (today + timedelta(days=self._settings.upcoming_window_days)).day
        upcoming = [
            r for r in await self._store.list_recurring(user_id)
            if today.day <= r.due_day <= window_end
        ]
        return sorted(upcoming, key=lambda r: r.due_day)

    async def snapshot(self, user_id: UUID, today: Optional[date] = None) -> DashboardSnapshot:
        """Compute every dashboard figure as of `today` (defaults to the real date)."""
        today = today or date.today()

        current_start, current_end = current_month_bounds(today)
        current_month = await self._store.list_transactions(
            user_id, date_from=current_start, date_to=current_end
        )
        last_start, last_end = month_bounds(*previous_month(today))
        last_month = await self._store.list_transactions(
            user_id, date_from=last_start, date_to=last_end
        )

        spent_current = _expense_total(current_month)
        spent_previous = _expense_total(last_month)
        income_current = sum(
            (t.amount for t in current_month if t.type == TransactionType.INCOME),
            Decimal("0"),
        )

        snapshot = DashboardSnapshot(
            daily_expenses=await self._daily_expenses(user_id, today),
            total_spent_current_month=spent_current,
            total_spent_previous_month=spent_previous,
            spending_change_percentage=percentage_change(
                spent_current, spent_previous, self._settings.percentage_places
            ),
            monthly_income=income_current,
            monthly_expense=spent_current,
            monthly_result=income_current - spent_current,
            net_worth=await self._net_worth.snapshot(user_id, income_current, spent_current),
            top_categories=await self._top_categories(user_id, today),
            recent_transactions=await self._recent_transactions(user_id, today),
            upcoming_recurring=await self._upcoming_recurring(user_id, today),
        )

        logger.debug(
            "dashboard_snapshot_computed",
            user_id=str(user_id),
            today=today.isoformat(),
            transactions_this_month=len(current_month),
        )
        return snapshot
