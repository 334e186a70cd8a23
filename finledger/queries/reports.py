"""
Report Generation

DESIGN DECISION: Reports are bucketed deterministically.
- Cash flow has exactly one entry per calendar day of the requested
  range, zero-filled, ascending.
- Category breakdowns are sorted by total descending, then by name, so
  equal totals always come out in the same order.

Nothing here is cached; every call re-reads the ledger.
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

import structlog

from finledger.config import LedgerSettings, get_settings
from finledger.models.ledger import TransactionType
from finledger.models.reports import CashFlowEntry, CategoryReportLine, TransactionSummary
from finledger.percentages import percentage_of
from finledger.periods import InvalidRangeError, current_month_bounds, iter_days, month_bounds
from finledger.queries.transactions import TransactionSummarizer, newest_first
from finledger.services.storage import LedgerStoreInterface


logger = structlog.get_logger(__name__)


class ReportGenerator:
    """Produces cash-flow series and category breakdowns."""

    def __init__(
        self,
        store: LedgerStoreInterface,
        settings: Optional[LedgerSettings] = None,
    ):
        self._store = store
        self._settings = settings or get_settings().ledger
        self._summarizer = TransactionSummarizer(store)

    async def cash_flow(
        self,
        user_id: UUID,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> list[CashFlowEntry]:
        """
        Daily income, expense and net over [start, end].

        Both bounds default to the current calendar month.

        Raises:
            InvalidRangeError: If end is before start
        """
        month_start, month_end = current_month_bounds(date.today())
        start = start or month_start
        end = end or month_end
        if end < start:
            raise InvalidRangeError(f"End date {end} is before start date {start}")

        income: dict[date, Decimal] = defaultdict(Decimal)
        expense: dict[date, Decimal] = defaultdict(Decimal)
        for txn in await self._store.list_transactions(user_id, date_from=start, date_to=end):
            if txn.type == TransactionType.INCOME:
                income[txn.date] += txn.amount
            else:
                expense[txn.date] += txn.amount

        entries = [
            CashFlowEntry(
                date=day,
                income=income[day],
                expense=expense[day],
                net=income[day] - expense[day],
            )
            for day in iter_days(start, end)
        ]

        logger.debug(
            "cash_flow_computed",
            user_id=str(user_id),
            start=start.isoformat(),
            end=end.isoformat(),
            days=len(entries),
        )
        return entries

    async def category_breakdown(
        self,
        user_id: UUID,
        month: int,
        year: int,
    ) -> list[CategoryReportLine]:
        """
        Each category's share of the month's expenses.

        Expenses without a category are grouped under the uncategorized
        label. Returns an empty list when the month has no expenses.

        Raises:
            InvalidRangeError: If month is outside 1..12
        """
        start, end = month_bounds(month, year)
        expenses = await self._store.list_transactions(
            user_id,
            date_from=start,
            date_to=end,
            transaction_type=TransactionType.EXPENSE,
        )
        names = {c.id: c.name for c in await self._store.list_categories(user_id)}

        totals: dict[str, Decimal] = defaultdict(Decimal)
        for txn in expenses:
            name = names.get(txn.category_id) if txn.category_id else None
            totals[name or self._settings.uncategorized_label] += txn.amount

        grand_total = sum(totals.values(), Decimal("0"))
        if grand_total == 0:
            return []

        ordered = sorted(totals.items(), key=lambda item: (-item[1], item[0]))
        return [
            CategoryReportLine(
                category=name,
                total=total,
                percentage=percentage_of(
                    total, grand_total, self._settings.percentage_places
                ),
            )
            for name, total in ordered
        ]

    async def transactions_for_month(
        self,
        user_id: UUID,
        month: int,
        year: int,
        category_id: Optional[UUID] = None,
    ) -> list[TransactionSummary]:
        """The month's transactions, newest first, optionally for one category."""
        start, end = month_bounds(month, year)
        transactions = await self._store.list_transactions(
            user_id,
            date_from=start,
            date_to=end,
            category_id=category_id,
        )
        return await self._summarizer.summarize(user_id, newest_first(transactions))
