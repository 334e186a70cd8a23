"""Tests for budget progress and the budget upsert flow."""

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from finledger.models.audit import AuditEventType
from finledger.models.ledger import TransactionType
from finledger.orchestrator import BudgetFlow
from finledger.periods import InvalidRangeError
from finledger.queries import BudgetTracker
from finledger.services.storage import NotFoundError
from finledger.validation import OwnershipViolationError


class TestBudgetProgress:
    """Tests for BudgetTracker.budget_progress."""

    @pytest.mark.asyncio
    async def test_scenario(self, ledger, store, audit_logger):
        """Test 320.50 spent of an 800.00 budget is 40.0625 percent."""
        food = await ledger.category("Alimentação")
        await BudgetFlow(store, audit_logger).upsert(
            ledger.user_id, food.id, 3, 2024, Decimal("800.00")
        )
        await ledger.raw_transaction("300.00", date(2024, 3, 2), category_id=food.id)
        await ledger.raw_transaction("20.50", date(2024, 3, 31), category_id=food.id)

        [line] = await BudgetTracker(store).budget_progress(ledger.user_id, 3, 2024)

        assert line.category_name == "Alimentação"
        assert line.limit == Decimal("800.00")
        assert line.spent == Decimal("320.50")
        assert line.percentage == 40.0625

    @pytest.mark.asyncio
    async def test_only_month_expenses_of_category_count(self, ledger, store, audit_logger):
        """Test other months, other categories and income are ignored."""
        food = await ledger.category("Alimentação")
        fun = await ledger.category("Lazer")
        await BudgetFlow(store, audit_logger).upsert(
            ledger.user_id, food.id, 3, 2024, Decimal("100")
        )
        await ledger.raw_transaction("10", date(2024, 3, 15), category_id=food.id)
        await ledger.raw_transaction("99", date(2024, 2, 29), category_id=food.id)
        await ledger.raw_transaction("99", date(2024, 4, 1), category_id=food.id)
        await ledger.raw_transaction("99", date(2024, 3, 15), category_id=fun.id)
        await ledger.raw_transaction("99", date(2024, 3, 15), TransactionType.INCOME, category_id=food.id)

        [line] = await BudgetTracker(store).budget_progress(ledger.user_id, 3, 2024)
        assert line.spent == Decimal("10")
        assert line.percentage == 10.0

    @pytest.mark.asyncio
    async def test_zero_limit_is_zero_percent(self, ledger, store, audit_logger):
        """Test a zero limit reports exactly 0 instead of dividing."""
        food = await ledger.category()
        await BudgetFlow(store, audit_logger).upsert(
            ledger.user_id, food.id, 3, 2024, Decimal("0")
        )
        await ledger.raw_transaction("50", date(2024, 3, 1), category_id=food.id)

        [line] = await BudgetTracker(store).budget_progress(ledger.user_id, 3, 2024)
        assert line.spent == Decimal("50")
        assert line.percentage == 0.0

    @pytest.mark.asyncio
    async def test_no_budgets(self, ledger, store):
        """Test a month without budgets gives an empty list."""
        assert await BudgetTracker(store).budget_progress(ledger.user_id, 3, 2024) == []

    @pytest.mark.asyncio
    async def test_invalid_month(self, ledger, store):
        """Test month 13 raises InvalidRangeError."""
        with pytest.raises(InvalidRangeError):
            await BudgetTracker(store).budget_progress(ledger.user_id, 13, 2024)


class TestBudgetFlow:
    """Tests for the budget upsert and delete flow."""

    @pytest.mark.asyncio
    async def test_upsert_updates_in_place(self, ledger, store, audit_logger):
        """Test a second budget for the same key updates the first."""
        food = await ledger.category()
        flow = BudgetFlow(store, audit_logger)

        first = await flow.upsert(ledger.user_id, food.id, 3, 2024, Decimal("800"))
        second = await flow.upsert(ledger.user_id, food.id, 3, 2024, Decimal("950"))

        budgets = await store.list_budgets(ledger.user_id, 3, 2024)
        assert len(budgets) == 1
        assert second.id == first.id
        assert budgets[0].amount == Decimal("950")

    @pytest.mark.asyncio
    async def test_different_month_is_a_new_budget(self, ledger, store, audit_logger):
        """Test the key includes month and year."""
        food = await ledger.category()
        flow = BudgetFlow(store, audit_logger)

        march = await flow.upsert(ledger.user_id, food.id, 3, 2024, Decimal("800"))
        april = await flow.upsert(ledger.user_id, food.id, 4, 2024, Decimal("800"))
        assert march.id != april.id

    @pytest.mark.asyncio
    async def test_negative_limit_rejected(self, ledger, store, audit_logger):
        """Test a negative limit raises InvalidRangeError."""
        food = await ledger.category()
        with pytest.raises(InvalidRangeError):
            await BudgetFlow(store, audit_logger).upsert(
                ledger.user_id, food.id, 3, 2024, Decimal("-1")
            )
        assert await store.list_budgets(ledger.user_id, 3, 2024) == []

    @pytest.mark.asyncio
    async def test_foreign_category_rejected(self, ledger, store, audit_logger, audit_storage, other_user_id):
        """Test a category of another user is refused and audited."""
        theirs = await ledger.category(user_id=other_user_id)
        with pytest.raises(OwnershipViolationError):
            await BudgetFlow(store, audit_logger).upsert(
                ledger.user_id, theirs.id, 3, 2024, Decimal("100")
            )

        events = await audit_storage.get_recent_events()
        assert events[0].event_type == AuditEventType.OWNERSHIP_VIOLATION
        assert events[0].entity_id == theirs.id

    @pytest.mark.asyncio
    async def test_unknown_category_rejected(self, ledger, store, audit_logger):
        """Test an unknown category raises NotFoundError."""
        with pytest.raises(NotFoundError):
            await BudgetFlow(store, audit_logger).upsert(
                ledger.user_id, uuid4(), 3, 2024, Decimal("100")
            )

    @pytest.mark.asyncio
    async def test_delete(self, ledger, store, audit_logger, other_user_id):
        """Test only the owner can delete a budget."""
        food = await ledger.category()
        flow = BudgetFlow(store, audit_logger)
        budget = await flow.upsert(ledger.user_id, food.id, 3, 2024, Decimal("800"))

        with pytest.raises(OwnershipViolationError):
            await flow.delete(other_user_id, budget.id)

        await flow.delete(ledger.user_id, budget.id)
        assert await store.get_budget(budget.id) is None
