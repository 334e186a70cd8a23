"""Tests for the in-memory store, its unit of work and the audit logger."""

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from finledger.audit import AuditLogger, create_correlation_id
from finledger.models.audit import AuditEventBuilder
from finledger.models.ledger import Budget, RecurringTransaction, TransactionType
from finledger.services.storage import (
    AuditStorageInterface,
    ConflictError,
    DuplicateError,
    NotFoundError,
)


class BrokenAuditStorage(AuditStorageInterface):
    """Audit storage whose writes always fail."""

    async def append_event(self, event):
        raise ConnectionError("audit backend down")

    async def get_events_by_correlation_id(self, correlation_id):
        return []

    async def get_events_by_entity(self, entity_type, entity_id):
        return []

    async def get_recent_events(self, limit=100):
        return []


class TestRowIsolation:
    """Rows are copied in and out of the store."""

    @pytest.mark.asyncio
    async def test_returned_rows_are_copies(self, ledger, store):
        """Test editing a returned row does not change storage."""
        card = await ledger.card()
        card.limit_used = Decimal("999")

        assert (await store.get_credit_card(card.id)).limit_used == Decimal("0")

    @pytest.mark.asyncio
    async def test_unknown_ids_return_none(self, store):
        """Test getters return None for unknown ids."""
        assert await store.get_transaction(uuid4()) is None
        assert await store.get_account(uuid4()) is None


class TestUnitOfWork:
    """Tests for InMemoryLedgerStore.atomic."""

    @pytest.mark.asyncio
    async def test_rollback_on_error(self, ledger, store):
        """Test every write of a failed block is discarded."""
        card = await ledger.card()

        with pytest.raises(RuntimeError):
            async with store.atomic():
                card.limit_used = Decimal("100")
                await store.save_credit_card(card)
                await ledger.raw_transaction("100", date(2024, 3, 1), credit_card_id=card.id)
                raise RuntimeError("boom")

        assert (await store.get_credit_card(card.id)).limit_used == Decimal("0")
        assert await store.list_transactions(ledger.user_id) == []

    @pytest.mark.asyncio
    async def test_commit_on_success(self, ledger, store):
        """Test writes of a successful block are kept."""
        async with store.atomic():
            await ledger.raw_transaction("100", date(2024, 3, 1))

        assert len(await store.list_transactions(ledger.user_id)) == 1

    @pytest.mark.asyncio
    async def test_nested_blocks_join(self, ledger, store):
        """Test a nested block joins the outer one instead of deadlocking."""
        with pytest.raises(RuntimeError):
            async with store.atomic():
                async with store.atomic():
                    await ledger.raw_transaction("100", date(2024, 3, 1))
                raise RuntimeError("outer fails")

        assert await store.list_transactions(ledger.user_id) == []


class TestQueries:
    """Tests for store lookups."""

    @pytest.mark.asyncio
    async def test_list_transactions_filters(self, ledger, store, other_user_id):
        """Test owner, date, category and type filters."""
        food = await ledger.category()
        await ledger.raw_transaction("1", date(2024, 3, 1), category_id=food.id)
        await ledger.raw_transaction("2", date(2024, 3, 15), TransactionType.INCOME)
        await ledger.raw_transaction("3", date(2024, 4, 1))

        assert len(await store.list_transactions(ledger.user_id)) == 3
        assert len(await store.list_transactions(other_user_id)) == 0

        march = await store.list_transactions(
            ledger.user_id, date_from=date(2024, 3, 1), date_to=date(2024, 3, 31)
        )
        assert sorted(t.amount for t in march) == [Decimal("1"), Decimal("2")]

        by_category = await store.list_transactions(ledger.user_id, category_id=food.id)
        assert [t.amount for t in by_category] == [Decimal("1")]

        income = await store.list_transactions(
            ledger.user_id, transaction_type=TransactionType.INCOME
        )
        assert [t.amount for t in income] == [Decimal("2")]

    @pytest.mark.asyncio
    async def test_transaction_exists(self, ledger, store):
        """Test lookup by external id is scoped by user."""
        txn = await ledger.raw_transaction("1", date(2024, 3, 1))
        await store.save_transaction(txn.model_copy(update={"external_id": "bank-9"}))

        assert await store.transaction_exists(ledger.user_id, "bank-9") is True
        assert await store.transaction_exists(uuid4(), "bank-9") is False


class TestDeletes:
    """Tests for cascades and referential conflicts."""

    @pytest.mark.asyncio
    async def test_account_delete_cascades(self, ledger, store):
        """Test deleting an account removes its transactions only."""
        account = await ledger.account()
        await ledger.raw_transaction("1", date(2024, 3, 1), account_id=account.id)
        await ledger.raw_transaction("2", date(2024, 3, 1), account_id=account.id)
        await ledger.raw_transaction("3", date(2024, 3, 1))

        assert await store.delete_account(account.id) == 2
        assert [t.amount for t in await store.list_transactions(ledger.user_id)] == [Decimal("3")]

    @pytest.mark.asyncio
    async def test_category_in_use_conflicts(self, ledger, store):
        """Test a referenced category cannot be deleted."""
        food = await ledger.category()
        await store.save_recurring(RecurringTransaction(
            user_id=ledger.user_id, amount=Decimal("1"), due_day=1, category_id=food.id
        ))

        with pytest.raises(ConflictError):
            await store.delete_category(food.id)

    @pytest.mark.asyncio
    async def test_unused_category_deleted(self, ledger, store):
        """Test an unreferenced category is removed."""
        food = await ledger.category()
        assert await store.delete_category(food.id) is True

    @pytest.mark.asyncio
    async def test_card_in_use_conflicts(self, ledger, store):
        """Test a card with charges cannot be deleted."""
        card = await ledger.card()
        await ledger.raw_transaction("1", date(2024, 3, 1), credit_card_id=card.id)

        with pytest.raises(ConflictError):
            await store.delete_credit_card(card.id)

    @pytest.mark.asyncio
    async def test_budget_key_is_unique(self, ledger, store):
        """Test a second budget row for the same key is refused."""
        food = await ledger.category()
        key = dict(user_id=ledger.user_id, category_id=food.id, month=3, year=2024)
        await store.save_budget(Budget(amount=Decimal("800"), **key))

        with pytest.raises(DuplicateError):
            await store.save_budget(Budget(amount=Decimal("900"), **key))


class TestNotFoundError:
    """Tests for the NotFoundError message."""

    def test_message(self):
        """Test the entity type is humanized in the message."""
        entity_id = uuid4()
        error = NotFoundError("credit_card", entity_id)
        assert str(error) == f"Credit card not found: {entity_id}"
        assert error.entity_type == "credit_card"


class TestAuditLogger:
    """Tests for AuditLogger persistence."""

    @pytest.mark.asyncio
    async def test_events_are_persisted(self, audit_logger, audit_storage):
        """Test logged events reach storage, newest first on read."""
        correlation_id = create_correlation_id()
        await audit_logger.log_transaction_deleted(uuid4(), uuid4(), correlation_id)
        await audit_logger.log_budget_deleted(uuid4(), uuid4(), correlation_id)

        recent = await audit_storage.get_recent_events()
        assert [e.event_type.value for e in recent] == ["budget_deleted", "transaction_deleted"]
        assert len(await audit_storage.get_events_by_correlation_id(correlation_id)) == 2

    @pytest.mark.asyncio
    async def test_storage_failure_is_absorbed(self):
        """Test a failing audit backend returns False instead of raising."""
        logger = AuditLogger(BrokenAuditStorage())
        event = AuditEventBuilder.transaction_deleted(uuid4(), uuid4())
        assert await logger.log(event) is False

    @pytest.mark.asyncio
    async def test_local_only_logger(self):
        """Test a logger without storage reports success."""
        event = AuditEventBuilder.transaction_deleted(uuid4(), uuid4())
        assert await AuditLogger().log(event) is True
