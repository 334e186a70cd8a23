"""
Abstract Storage Interface

The engine talks to its ledger store only through this interface. A
concrete store (relational database, in-memory test double) provides:
1. Lookups scoped by owning user, by date range and by linked entity
2. Save/delete for every entity type
3. A unit of work (`atomic`) wrapping each mutation

The interface is intentionally narrow - we're not building a full ORM.
Just the operations the ledger engine needs.

IMPORTANT: The read-modify-write on a card's limit_used is only safe
under concurrent writers if `atomic()` serializes units of work that
touch the same card. The engine does no locking of its own.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from datetime import date
from typing import Optional
from uuid import UUID

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
from finledger.models.audit import AuditEvent


class LedgerStoreInterface(ABC):
    """
    Abstract interface for ledger storage operations.

    Getters return None for unknown ids; ownership is checked by the
    caller, never by the store.
    """

    # -------------------------------------------------------------------------
    # Unit of work
    # -------------------------------------------------------------------------

    @abstractmethod
    def atomic(self) -> AbstractAsyncContextManager[None]:
        """
        Open a unit of work.

        Every write made inside the block is committed together when the
        block exits normally and discarded when it raises.

        Usage:
            async with store.atomic():
                await store.save_credit_card(card)
                await store.save_transaction(txn)
        """
        pass

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    @abstractmethod
    async def get_transaction(self, transaction_id: UUID) -> Optional[Transaction]:
        """Retrieve a transaction by its ID."""
        pass

    @abstractmethod
    async def save_transaction(self, transaction: Transaction) -> Transaction:
        """
        Insert or replace a transaction.

        Returns:
            The stored transaction
        """
        pass

    @abstractmethod
    async def delete_transaction(self, transaction_id: UUID) -> bool:
        """
        Delete a transaction by ID.

        Returns:
            True if a transaction was removed
        """
        pass

    @abstractmethod
    async def list_transactions(
        self,
        user_id: UUID,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        category_id: Optional[UUID] = None,
        transaction_type: Optional[TransactionType] = None,
    ) -> list[Transaction]:
        """
        List a user's transactions with optional filters.

        Args:
            user_id: Owner of the transactions
            date_from: Only transactions on or after this date
            date_to: Only transactions on or before this date
            category_id: Only transactions in this category
            transaction_type: Only INCOME or only EXPENSE

        Returns:
            Matching transactions, in insertion order
        """
        pass

    @abstractmethod
    async def transactions_for_account(self, account_id: UUID) -> list[Transaction]:
        """All transactions funded by an account, over its whole lifetime."""
        pass

    @abstractmethod
    async def transactions_for_card(self, card_id: UUID) -> list[Transaction]:
        """All transactions charged to a credit card."""
        pass

    @abstractmethod
    async def transaction_exists(self, user_id: UUID, external_id: str) -> bool:
        """
        Check if a transaction imported from an external system is already stored.

        Args:
            user_id: Owner of the ledger
            external_id: Identifier assigned by the external system

        Returns:
            True if a matching transaction exists
        """
        pass

    # -------------------------------------------------------------------------
    # Accounts
    # -------------------------------------------------------------------------

    @abstractmethod
    async def get_account(self, account_id: UUID) -> Optional[Account]:
        pass

    @abstractmethod
    async def list_accounts(self, user_id: UUID) -> list[Account]:
        pass

    @abstractmethod
    async def save_account(self, account: Account) -> Account:
        pass

    @abstractmethod
    async def delete_account(self, account_id: UUID) -> int:
        """
        Delete an account and every transaction funded by it.

        Returns:
            Number of transactions removed with the account
        """
        pass

    # -------------------------------------------------------------------------
    # Credit cards
    # -------------------------------------------------------------------------

    @abstractmethod
    async def get_credit_card(self, card_id: UUID) -> Optional[CreditCard]:
        pass

    @abstractmethod
    async def list_credit_cards(self, user_id: UUID) -> list[CreditCard]:
        pass

    @abstractmethod
    async def save_credit_card(self, card: CreditCard) -> CreditCard:
        pass

    @abstractmethod
    async def delete_credit_card(self, card_id: UUID) -> bool:
        pass

    # -------------------------------------------------------------------------
    # Categories
    # -------------------------------------------------------------------------

    @abstractmethod
    async def get_category(self, category_id: UUID) -> Optional[Category]:
        pass

    @abstractmethod
    async def list_categories(self, user_id: UUID) -> list[Category]:
        pass

    @abstractmethod
    async def save_category(self, category: Category) -> Category:
        pass

    @abstractmethod
    async def delete_category(self, category_id: UUID) -> bool:
        """
        Delete a category.

        Raises:
            ConflictError: If transactions are still linked to it
        """
        pass

    # -------------------------------------------------------------------------
    # Budgets
    # -------------------------------------------------------------------------

    @abstractmethod
    async def get_budget(self, budget_id: UUID) -> Optional[Budget]:
        pass

    @abstractmethod
    async def find_budget(
        self,
        user_id: UUID,
        category_id: UUID,
        month: int,
        year: int,
    ) -> Optional[Budget]:
        """Find the budget for a (user, category, month, year) key, if any."""
        pass

    @abstractmethod
    async def list_budgets(self, user_id: UUID, month: int, year: int) -> list[Budget]:
        pass

    @abstractmethod
    async def save_budget(self, budget: Budget) -> Budget:
        """
        Insert or replace a budget.

        Raises:
            DuplicateError: If another budget already uses the same key
        """
        pass

    @abstractmethod
    async def delete_budget(self, budget_id: UUID) -> bool:
        pass

    # -------------------------------------------------------------------------
    # Assets
    # -------------------------------------------------------------------------

    @abstractmethod
    async def get_asset(self, asset_id: UUID) -> Optional[Asset]:
        pass

    @abstractmethod
    async def list_assets(self, user_id: UUID) -> list[Asset]:
        pass

    @abstractmethod
    async def save_asset(self, asset: Asset) -> Asset:
        pass

    @abstractmethod
    async def delete_asset(self, asset_id: UUID) -> bool:
        pass

    # -------------------------------------------------------------------------
    # Recurring transactions
    # -------------------------------------------------------------------------

    @abstractmethod
    async def get_recurring(self, recurring_id: UUID) -> Optional[RecurringTransaction]:
        pass

    @abstractmethod
    async def list_recurring(self, user_id: UUID) -> list[RecurringTransaction]:
        pass

    @abstractmethod
    async def save_recurring(self, recurring: RecurringTransaction) -> RecurringTransaction:
        pass

    @abstractmethod
    async def delete_recurring(self, recurring_id: UUID) -> bool:
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """All events of one user action, in chronological order."""
        pass

    @abstractmethod
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        """All events for a specific entity, in chronological order."""
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """The most recent audit events, newest first."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""

    def __init__(self, entity_type: str, entity_id: UUID):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type.replace('_', ' ').capitalize()} not found: {entity_id}")


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConflictError(StorageError):
    """The entity is still referenced and cannot be removed."""
    pass
