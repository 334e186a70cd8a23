"""
In-Memory Storage Implementation

A complete ledger store kept in process memory. It backs the tests and
the demo front end, and documents the behaviour a relational store must
provide:

- rows are copied on the way in and out, so nothing changes in storage
  until it is explicitly saved;
- `atomic()` serializes units of work and rolls every table back when
  the block raises;
- deleting an account cascades to its transactions, deleting a category
  or card that is still referenced is refused.
"""

import asyncio
from contextlib import asynccontextmanager
from contextvars import ContextVar
from datetime import date
from typing import AsyncIterator, Optional, TypeVar
from uuid import UUID

from pydantic import BaseModel

from finledger.models.audit import AuditEvent
from finledger.models.ledger import (
    Account,
    Asset,
    Budget,
    Category,
    CreditCard,
    RecurringTransaction,
    Transaction,
    TransactionType,
)
from finledger.services.storage.interface import (
    AuditStorageInterface,
    ConflictError,
    DuplicateError,
    LedgerStoreInterface,
)


ModelT = TypeVar("ModelT", bound=BaseModel)

# Ids of the stores whose unit of work the current task is inside.
_open_units: ContextVar[frozenset[int]] = ContextVar("open_units", default=frozenset())

TABLES = (
    "transactions",
    "accounts",
    "credit_cards",
    "categories",
    "budgets",
    "assets",
    "recurring",
)


def _copy(model: ModelT) -> ModelT:
    return model.model_copy(deep=True)


class InMemoryLedgerStore(LedgerStoreInterface):
    """
    Dictionary-backed implementation of the ledger store.

    Each table maps an entity id to the stored row.
    """

    def __init__(self):
        self._tables: dict[str, dict[UUID, BaseModel]] = {name: {} for name in TABLES}
        self._lock = asyncio.Lock()

    # -------------------------------------------------------------------------
    # Unit of work
    # -------------------------------------------------------------------------

    @asynccontextmanager
    async def atomic(self) -> AsyncIterator[None]:
        open_units = _open_units.get()
        if id(self) in open_units:
            # Nested block joins the enclosing unit of work
            yield
            return

        async with self._lock:
            snapshot = {name: dict(rows) for name, rows in self._tables.items()}
            token = _open_units.set(open_units | {id(self)})
            try:
                yield
            except BaseException:
                self._tables = snapshot
                raise
            finally:
                _open_units.reset(token)

    # -------------------------------------------------------------------------
    # Generic helpers
    # -------------------------------------------------------------------------

    def _get(self, table: str, entity_id: UUID) -> Optional[BaseModel]:
        row = self._tables[table].get(entity_id)
        return _copy(row) if row is not None else None

    def _put(self, table: str, entity: ModelT) -> ModelT:
        self._tables[table][entity.id] = _copy(entity)
        return _copy(entity)

    def _remove(self, table: str, entity_id: UUID) -> bool:
        return self._tables[table].pop(entity_id, None) is not None

    def _rows(self, table: str) -> list:
        return [_copy(row) for row in self._tables[table].values()]

    def _owned(self, table: str, user_id: UUID) -> list:
        return [
            _copy(row)
            for row in self._tables[table].values()
            if row.user_id == user_id
        ]

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    async def get_transaction(self, transaction_id: UUID) -> Optional[Transaction]:
        return self._get("transactions", transaction_id)

    async def save_transaction(self, transaction: Transaction) -> Transaction:
        return self._put("transactions", transaction)

    async def delete_transaction(self, transaction_id: UUID) -> bool:
        return self._remove("transactions", transaction_id)

    async def list_transactions(
        self,
        user_id: UUID,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        category_id: Optional[UUID] = None,
        transaction_type: Optional[TransactionType] = None,
    ) -> list[Transaction]:
        results = []
        for txn in self._tables["transactions"].values():
            if txn.user_id != user_id:
                continue
            if date_from and txn.date < date_from:
                continue
            if date_to and txn.date > date_to:
                continue
            if category_id and txn.category_id != category_id:
                continue
            if transaction_type and txn.type != transaction_type:
                continue
            results.append(_copy(txn))
        return results

    async def transactions_for_account(self, account_id: UUID) -> list[Transaction]:
        return [
            txn for txn in self._rows("transactions")
            if txn.account_id == account_id
        ]

    async def transactions_for_card(self, card_id: UUID) -> list[Transaction]:
        return [
            txn for txn in self._rows("transactions")
            if txn.credit_card_id == card_id
        ]

    async def transaction_exists(self, user_id: UUID, external_id: str) -> bool:
        return any(
            txn.user_id == user_id and txn.external_id == external_id
            for txn in self._tables["transactions"].values()
        )

    # -------------------------------------------------------------------------
    # Accounts
    # -------------------------------------------------------------------------

    async def get_account(self, account_id: UUID) -> Optional[Account]:
        return self._get("accounts", account_id)

    async def list_accounts(self, user_id: UUID) -> list[Account]:
        return self._owned("accounts", user_id)

    async def save_account(self, account: Account) -> Account:
        return self._put("accounts", account)

    async def delete_account(self, account_id: UUID) -> int:
        linked = [
            txn_id
            for txn_id, txn in self._tables["transactions"].items()
            if txn.account_id == account_id
        ]
        for txn_id in linked:
            del self._tables["transactions"][txn_id]
        self._remove("accounts", account_id)
        return len(linked)

    # -------------------------------------------------------------------------
    # Credit cards
    # -------------------------------------------------------------------------

    async def get_credit_card(self, card_id: UUID) -> Optional[CreditCard]:
        return self._get("credit_cards", card_id)

    async def list_credit_cards(self, user_id: UUID) -> list[CreditCard]:
        return self._owned("credit_cards", user_id)

    async def save_credit_card(self, card: CreditCard) -> CreditCard:
        return self._put("credit_cards", card)

    async def delete_credit_card(self, card_id: UUID) -> bool:
        if any(
            txn.credit_card_id == card_id
            for txn in self._tables["transactions"].values()
        ):
            raise ConflictError(f"Cannot delete credit card {card_id} with linked transactions")
        return self._remove("credit_cards", card_id)

    # -------------------------------------------------------------------------
    # Categories
    # -------------------------------------------------------------------------

    async def get_category(self, category_id: UUID) -> Optional[Category]:
        return self._get("categories", category_id)

    async def list_categories(self, user_id: UUID) -> list[Category]:
        return self._owned("categories", user_id)

    async def save_category(self, category: Category) -> Category:
        return self._put("categories", category)

    async def delete_category(self, category_id: UUID) -> bool:
        for table in ("transactions", "budgets", "recurring"):
            if any(
                row.category_id == category_id
                for row in self._tables[table].values()
            ):
                raise ConflictError(
                    f"Cannot delete category {category_id} with linked {table}"
                )
        return self._remove("categories", category_id)

    # -------------------------------------------------------------------------
    # Budgets
    # -------------------------------------------------------------------------

    async def get_budget(self, budget_id: UUID) -> Optional[Budget]:
        return self._get("budgets", budget_id)

    async def find_budget(
        self,
        user_id: UUID,
        category_id: UUID,
        month: int,
        year: int,
    ) -> Optional[Budget]:
        for budget in self._tables["budgets"].values():
            if (
                budget.user_id == user_id
                and budget.category_id == category_id
                and budget.month == month
                and budget.year == year
            ):
                return _copy(budget)
        return None

    async def list_budgets(self, user_id: UUID, month: int, year: int) -> list[Budget]:
        return [
            budget for budget in self._owned("budgets", user_id)
            if budget.month == month and budget.year == year
        ]

    async def save_budget(self, budget: Budget) -> Budget:
        existing = await self.find_budget(
            budget.user_id, budget.category_id, budget.month, budget.year
        )
        if existing is not None and existing.id != budget.id:
            raise DuplicateError(
                f"Budget for category {budget.category_id} "
                f"in {budget.month:02d}/{budget.year} already exists"
            )
        return self._put("budgets", budget)

    async def delete_budget(self, budget_id: UUID) -> bool:
        return self._remove("budgets", budget_id)

    # -------------------------------------------------------------------------
    # Assets
    # -------------------------------------------------------------------------

    async def get_asset(self, asset_id: UUID) -> Optional[Asset]:
        return self._get("assets", asset_id)

    async def list_assets(self, user_id: UUID) -> list[Asset]:
        return self._owned("assets", user_id)

    async def save_asset(self, asset: Asset) -> Asset:
        return self._put("assets", asset)

    async def delete_asset(self, asset_id: UUID) -> bool:
        return self._remove("assets", asset_id)

    # -------------------------------------------------------------------------
    # Recurring transactions
    # -------------------------------------------------------------------------

    async def get_recurring(self, recurring_id: UUID) -> Optional[RecurringTransaction]:
        return self._get("recurring", recurring_id)

    async def list_recurring(self, user_id: UUID) -> list[RecurringTransaction]:
        return self._owned("recurring", user_id)

    async def save_recurring(self, recurring: RecurringTransaction) -> RecurringTransaction:
        return self._put("recurring", recurring)

    async def delete_recurring(self, recurring_id: UUID) -> bool:
        return self._remove("recurring", recurring_id)


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only audit log kept in a list."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        return [e for e in self._events if e.correlation_id == correlation_id]

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        return [
            e for e in self._events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]
