"""Shared fixtures: an in-memory ledger, an audit log and entity builders."""

from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

import pytest

from finledger.audit import AuditLogger
from finledger.config import LedgerSettings
from finledger.models.ledger import (
    Account,
    Category,
    CreditCard,
    Transaction,
    TransactionChanges,
    TransactionType,
)
from finledger.orchestrator import TransactionFlow
from finledger.services.storage import InMemoryAuditStorage, InMemoryLedgerStore


class LedgerBuilder:
    """Creates entities straight in the store for one default user."""

    def __init__(self, store: InMemoryLedgerStore, user_id: UUID):
        self.store = store
        self.user_id = user_id

    async def account(
        self,
        name: str = "Conta Principal",
        initial_balance: str = "0",
        user_id: Optional[UUID] = None,
    ) -> Account:
        return await self.store.save_account(Account(
            user_id=user_id or self.user_id,
            name=name,
            bank="Nubank",
            initial_balance=Decimal(initial_balance),
        ))

    async def card(
        self,
        name: str = "Nubank Ultravioleta",
        limit_total: str = "15000",
        user_id: Optional[UUID] = None,
    ) -> CreditCard:
        return await self.store.save_credit_card(CreditCard(
            user_id=user_id or self.user_id,
            name=name,
            limit_total=Decimal(limit_total),
        ))

    async def category(
        self,
        name: str = "Alimentação",
        kind: TransactionType = TransactionType.EXPENSE,
        user_id: Optional[UUID] = None,
    ) -> Category:
        return await self.store.save_category(Category(
            user_id=user_id or self.user_id,
            name=name,
            type=kind,
        ))

    async def raw_transaction(
        self,
        amount: str,
        on: date,
        kind: TransactionType = TransactionType.EXPENSE,
        **links,
    ) -> Transaction:
        """Store a row as an importer would, bypassing flows and validation."""
        return await self.store.save_transaction(Transaction(
            user_id=self.user_id,
            description="imported",
            amount=Decimal(amount),
            type=kind,
            date=on,
            **links,
        ))

    @staticmethod
    def changes(
        amount: str,
        on: date,
        kind: TransactionType = TransactionType.EXPENSE,
        description: str = "Compra",
        **links,
    ) -> TransactionChanges:
        return TransactionChanges(
            description=description,
            amount=Decimal(amount),
            type=kind,
            date=on,
            **links,
        )


@pytest.fixture
def store():
    return InMemoryLedgerStore()


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def audit_logger(audit_storage):
    return AuditLogger(audit_storage)


@pytest.fixture
def user_id():
    return uuid4()


@pytest.fixture
def other_user_id():
    return uuid4()


@pytest.fixture
def ledger(store, user_id):
    return LedgerBuilder(store, user_id)


@pytest.fixture
def settings():
    return LedgerSettings()


@pytest.fixture
def transaction_flow(store, audit_logger):
    return TransactionFlow(store, audit_logger=audit_logger)
