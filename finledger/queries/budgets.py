"""
Budget Progress

Spent-vs-limit for every budget of a month. Spending is summed from the
ledger on each call; nothing about progress is stored on the budget.
"""

from decimal import Decimal
from typing import Optional
from uuid import UUID

import structlog

from finledger.config import LedgerSettings, get_settings
from finledger.models.ledger import TransactionType
from finledger.models.reports import BudgetProgress
from finledger.percentages import percentage_of
from finledger.periods import month_bounds
from finledger.services.storage import LedgerStoreInterface


logger = structlog.get_logger(__name__)


class BudgetTracker:
    """Computes budget consumption for a (user, month, year)."""

    def __init__(
        self,
        store: LedgerStoreInterface,
        settings: Optional[LedgerSettings] = None,
    ):
        self._store = store
        self._settings = settings or get_settings().ledger

    async def budget_progress(
        self,
        user_id: UUID,
        month: int,
        year: int,
    ) -> list[BudgetProgress]:
        """
        Progress of each budget set for the month.

        A budget with a zero limit reports 0 percent.

        Raises:
            InvalidRangeError: If month is outside 1..12
        """
        start, end = month_bounds(month, year)
        budgets = await self._store.list_budgets(user_id, month, year)
        if not budgets:
            return []

        expenses = await self._store.list_transactions(
            user_id,
            date_from=start,
            date_to=end,
            transaction_type=TransactionType.EXPENSE,
        )
        categories = {c.id: c.name for c in await self._store.list_categories(user_id)}

        results = []
        for budget in budgets:
            spent = sum(
                (t.amount for t in expenses if t.category_id == budget.category_id),
                Decimal("0"),
            )
            results.append(BudgetProgress(
                budget_id=budget.id,
                category_id=budget.category_id,
                category_name=categories.get(
                    budget.category_id, self._settings.uncategorized_label
                ),
                limit=budget.amount,
                spent=spent,
                percentage=percentage_of(
                    spent, budget.amount, self._settings.percentage_places
                ),
            ))

        logger.debug(
            "budget_progress_computed",
            user_id=str(user_id),
            month=month,
            year=year,
            budgets=len(results),
        )
        return results
