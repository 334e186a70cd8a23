"""
Mutation Flows for the Ledger Engine

This module ties together validation, the card limit manager, storage
and the audit trail, and defines the end-to-end flows for:
1. Transactions (create / update / delete)
2. Budgets (upsert / delete)
3. Recurring items (materialize into a real transaction)
4. Accounts (create / delete / list with balances)

DESIGN DECISION: The flows enforce the ordering guarantees:
- Every referenced entity is resolved and owned before any write
- The card limit update and the row write share one unit of work
- Every step is audited; failures are audited and then re-raised

The acting user is always an explicit argument. Nothing here looks up
a "current user".
"""

from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

import structlog

from finledger.audit import AuditLogger, create_correlation_id
from finledger.config import LedgerSettings, get_settings
from finledger.ledger import CreditCardLimitManager, LimitAdjustment
from finledger.models.ledger import (
    Account,
    Budget,
    Transaction,
    TransactionChanges,
    TransactionType,
)
from finledger.models.reports import AccountBalance
from finledger.periods import InvalidRangeError, clamp_day, month_bounds
from finledger.queries import (
    BalanceCalculator,
    BudgetTracker,
    DashboardAggregator,
    NetWorthCalculator,
    ReportGenerator,
)
from finledger.queries.transactions import CARD_SOURCE_PREFIX, NO_SOURCE
from finledger.services.storage import (
    AuditStorageInterface,
    InMemoryAuditStorage,
    InMemoryLedgerStore,
    LedgerStoreInterface,
    NotFoundError,
)
from finledger.validation import (
    OwnershipViolationError,
    ResolvedLinks,
    TransactionValidationError,
    TransactionValidator,
    require_owned,
)


logger = structlog.get_logger(__name__)


async def _audit_failure(
    audit_logger: AuditLogger,
    error: Exception,
    user_id: UUID,
    correlation_id: UUID,
) -> None:
    """Record why a mutation was refused. The caller re-raises."""
    if isinstance(error, OwnershipViolationError):
        await audit_logger.log_ownership_violation(
            user_id=user_id,
            entity_type=error.entity_type,
            entity_id=error.entity_id,
            correlation_id=correlation_id,
        )
    elif isinstance(error, TransactionValidationError):
        await audit_logger.log_validation_failed(
            user_id=user_id,
            issues=[issue.model_dump() for issue in error.issues],
            correlation_id=correlation_id,
        )
    elif isinstance(error, NotFoundError):
        await audit_logger.log_error(
            error_type="not_found",
            error_message=str(error),
            details={
                "entity_type": error.entity_type,
                "entity_id": str(error.entity_id),
            },
            correlation_id=correlation_id,
        )
    else:
        await audit_logger.log_error(
            error_type=type(error).__name__,
            error_message=str(error),
            details={"user_id": str(user_id)},
            correlation_id=correlation_id,
        )


class TransactionFlow:
    """
    Orchestrates every change to a transaction.

    Flow:
    1. Validate → schema, then existence and ownership of every link
    2. Limit → reverse the stored state, apply the new state
    3. Save → persist the row
    4. Audit → record what changed

    Steps 1-3 run inside one store unit of work. A refused or failed
    mutation leaves both the row and every card limit untouched.
    """

    def __init__(
        self,
        store: LedgerStoreInterface,
        validator: Optional[TransactionValidator] = None,
        limit_manager: Optional[CreditCardLimitManager] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._audit_logger = audit_logger or AuditLogger()
        self._validator = validator or TransactionValidator(store)
        self._limits = limit_manager or CreditCardLimitManager(store, self._audit_logger)

    async def create(
        self,
        user_id: UUID,
        changes: TransactionChanges,
        correlation_id: Optional[UUID] = None,
    ) -> Optional[Transaction]:
        """
        Record a new transaction.

        Returns:
            The stored transaction, or None when an entry with the same
            external_id already exists (the import is skipped)

        Raises:
            TransactionValidationError: The submitted state is malformed
            NotFoundError: A referenced entity does not exist
            OwnershipViolationError: A referenced entity belongs to another user
        """
        correlation_id = correlation_id or create_correlation_id()

        if changes.external_id and await self._store.transaction_exists(
            user_id, changes.external_id
        ):
            await self._audit_logger.log_duplicate_skipped(
                user_id=user_id,
                external_id=changes.external_id,
                correlation_id=correlation_id,
            )
            return None

        adjustments: list[LimitAdjustment] = []
        try:
            async with self._store.atomic():
                changes, links = await self._validator.validate(user_id, changes)
                transaction = Transaction(user_id=user_id, **changes.model_dump())
                await self._limits.apply_transaction_effect(
                    transaction,
                    previous=None,
                    correlation_id=correlation_id,
                    adjustments=adjustments,
                )
                transaction = await self._store.save_transaction(transaction)
        except Exception as e:
            await _audit_failure(self._audit_logger, e, user_id, correlation_id)
            raise

        await self._limits.audit_adjustments(adjustments, correlation_id)
        await self._audit_logger.log_transaction_created(
            transaction_id=transaction.id,
            user_id=user_id,
            amount=transaction.amount,
            transaction_type=transaction.type.value,
            correlation_id=correlation_id,
        )
        if transaction.type == TransactionType.EXPENSE:
            await self._audit_logger.log_expense_recorded(
                transaction_id=transaction.id,
                user_id=user_id,
                amount=transaction.amount,
                source=self._source_name(links),
                correlation_id=correlation_id,
            )
        return transaction

    async def update(
        self,
        user_id: UUID,
        transaction_id: UUID,
        changes: TransactionChanges,
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        """
        Replace the editable state of a stored transaction.

        The card limit is reversed for the stored state and reapplied for
        the new one, which may be on a different card.

        Raises:
            TransactionValidationError: The submitted state is malformed
            NotFoundError: The transaction or a referenced entity does not exist
            OwnershipViolationError: The transaction or a referenced entity
                belongs to another user
        """
        correlation_id = correlation_id or create_correlation_id()

        adjustments: list[LimitAdjustment] = []
        try:
            async with self._store.atomic():
                previous = await require_owned(
                    self._store.get_transaction, "transaction", transaction_id, user_id
                )
                changes, _ = await self._validator.validate(user_id, changes)

                updates = changes.model_dump()
                if updates["external_id"] is None:
                    updates["external_id"] = previous.external_id
                transaction = previous.model_copy(update=updates)

                await self._limits.apply_transaction_effect(
                    transaction,
                    previous=previous,
                    correlation_id=correlation_id,
                    adjustments=adjustments,
                )
                transaction = await self._store.save_transaction(transaction)
        except Exception as e:
            await _audit_failure(self._audit_logger, e, user_id, correlation_id)
            raise

        await self._limits.audit_adjustments(adjustments, correlation_id)
        diff = {
            field: {"from": str(getattr(previous, field)), "to": str(value)}
            for field, value in updates.items()
            if getattr(previous, field) != value
        }
        await self._audit_logger.log_transaction_updated(
            transaction_id=transaction.id,
            user_id=user_id,
            changes=diff,
            correlation_id=correlation_id,
        )
        return transaction

    async def delete(
        self,
        user_id: UUID,
        transaction_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        """
        Remove a transaction and its contribution to any card limit.

        Returns:
            The transaction as it was before removal
        """
        correlation_id = correlation_id or create_correlation_id()

        adjustments: list[LimitAdjustment] = []
        try:
            async with self._store.atomic():
                previous = await require_owned(
                    self._store.get_transaction, "transaction", transaction_id, user_id
                )
                await self._limits.reverse_transaction_effect(
                    previous, correlation_id=correlation_id, adjustments=adjustments
                )
                await self._store.delete_transaction(transaction_id)
        except Exception as e:
            await _audit_failure(self._audit_logger, e, user_id, correlation_id)
            raise

        await self._limits.audit_adjustments(adjustments, correlation_id)

        await self._audit_logger.log_transaction_deleted(
            transaction_id=transaction_id,
            user_id=user_id,
            correlation_id=correlation_id,
        )
        return previous

    @staticmethod
    def _source_name(links: ResolvedLinks) -> str:
        if links.credit_card is not None:
            return CARD_SOURCE_PREFIX + links.credit_card.name
        if links.account is not None:
            return links.account.name
        return NO_SOURCE


class BudgetFlow:
    """
    Orchestrates budget changes.

    A budget is unique per (user, category, month, year). Saving a second
    budget for the same key updates the existing limit in place.
    """

    def __init__(
        self,
        store: LedgerStoreInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._audit_logger = audit_logger or AuditLogger()

    async def upsert(
        self,
        user_id: UUID,
        category_id: UUID,
        month: int,
        year: int,
        amount: Decimal,
        correlation_id: Optional[UUID] = None,
    ) -> Budget:
        """
        Create the budget for a key, or update its limit.

        Raises:
            InvalidRangeError: Month outside 1..12 or a negative limit
            NotFoundError: The category does not exist
            OwnershipViolationError: The category belongs to another user
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            month_bounds(month, year)
            if amount < 0:
                raise InvalidRangeError(f"Budget limit must not be negative, got {amount}")

            async with self._store.atomic():
                await require_owned(
                    self._store.get_category, "category", category_id, user_id
                )
                budget = await self._store.find_budget(user_id, category_id, month, year)
                created = budget is None
                if created:
                    budget = Budget(
                        user_id=user_id,
                        category_id=category_id,
                        month=month,
                        year=year,
                        amount=amount,
                    )
                else:
                    budget.amount = amount
                budget = await self._store.save_budget(budget)
        except Exception as e:
            await _audit_failure(self._audit_logger, e, user_id, correlation_id)
            raise

        await self._audit_logger.log_budget_saved(
            budget_id=budget.id,
            user_id=user_id,
            amount=budget.amount,
            month=month,
            year=year,
            created=created,
            correlation_id=correlation_id,
        )
        return budget

    async def delete(
        self,
        user_id: UUID,
        budget_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> Budget:
        correlation_id = correlation_id or create_correlation_id()

        try:
            async with self._store.atomic():
                budget = await require_owned(
                    self._store.get_budget, "budget", budget_id, user_id
                )
                await self._store.delete_budget(budget_id)
        except Exception as e:
            await _audit_failure(self._audit_logger, e, user_id, correlation_id)
            raise

        await self._audit_logger.log_budget_deleted(
            budget_id=budget_id,
            user_id=user_id,
            correlation_id=correlation_id,
        )
        return budget


class RecurringFlow:
    """
    Turns recurring templates into real transactions.

    The transaction is dated on the template's due day, pulled back to
    the last day of shorter months (day 31 in April becomes April 30).
    It goes through TransactionFlow, so card limits and audit follow the
    same path as a hand-entered transaction.
    """

    def __init__(
        self,
        store: LedgerStoreInterface,
        transaction_flow: Optional[TransactionFlow] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._audit_logger = audit_logger or AuditLogger()
        self._transactions = transaction_flow or TransactionFlow(
            store, audit_logger=self._audit_logger
        )

    async def materialize(
        self,
        user_id: UUID,
        recurring_id: UUID,
        month: Optional[int] = None,
        year: Optional[int] = None,
        account_id: Optional[UUID] = None,
        credit_card_id: Optional[UUID] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        """
        Create the transaction for one occurrence of a recurring item.

        Month and year default to the current month. The new entry has
        no funding source unless an account or card is given.
        """
        correlation_id = correlation_id or create_correlation_id()
        today = date.today()
        month = month if month is not None else today.month
        year = year if year is not None else today.year

        try:
            month_bounds(month, year)
            recurring = await require_owned(
                self._store.get_recurring, "recurring", recurring_id, user_id
            )
        except Exception as e:
            await _audit_failure(self._audit_logger, e, user_id, correlation_id)
            raise

        on_date = clamp_day(year, month, recurring.due_day)
        transaction = await self._transactions.create(
            user_id,
            TransactionChanges(
                description=recurring.description,
                amount=recurring.amount,
                type=recurring.type,
                date=on_date,
                category_id=recurring.category_id,
                account_id=account_id,
                credit_card_id=credit_card_id,
            ),
            correlation_id=correlation_id,
        )

        await self._audit_logger.log_recurring_materialized(
            recurring_id=recurring.id,
            transaction_id=transaction.id,
            user_id=user_id,
            on_date=on_date.isoformat(),
            correlation_id=correlation_id,
        )
        return transaction


class AccountFlow:
    """Orchestrates account creation, deletion and the balances listing."""

    def __init__(
        self,
        store: LedgerStoreInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._audit_logger = audit_logger or AuditLogger()
        self._balances = BalanceCalculator(store)

    async def create(
        self,
        user_id: UUID,
        name: str,
        bank: Optional[str] = None,
        initial_balance: Decimal = Decimal("0"),
        account_type: str = "CHECKING",
        correlation_id: Optional[UUID] = None,
    ) -> Account:
        correlation_id = correlation_id or create_correlation_id()

        account = await self._store.save_account(Account(
            user_id=user_id,
            name=name,
            bank=bank,
            type=account_type,
            initial_balance=initial_balance,
        ))

        await self._audit_logger.log_account_created(
            account_id=account.id,
            user_id=user_id,
            name=account.name,
            correlation_id=correlation_id,
        )
        return account

    async def delete(
        self,
        user_id: UUID,
        account_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> int:
        """
        Delete an account together with its transactions.

        Returns:
            Number of transactions removed with the account
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            async with self._store.atomic():
                await require_owned(self._store.get_account, "account", account_id, user_id)
                removed = await self._store.delete_account(account_id)
        except Exception as e:
            await _audit_failure(self._audit_logger, e, user_id, correlation_id)
            raise

        await self._audit_logger.log_account_deleted(
            account_id=account_id,
            user_id=user_id,
            removed_transactions=removed,
            correlation_id=correlation_id,
        )
        return removed

    async def list_with_balances(self, user_id: UUID) -> list[AccountBalance]:
        return await self._balances.balances_of(user_id)


class LedgerComponents:
    """Every flow and query of the engine, wired to one store."""

    def __init__(
        self,
        store: LedgerStoreInterface,
        audit_logger: AuditLogger,
        settings: LedgerSettings,
    ):
        self.store = store
        self.audit_logger = audit_logger

        self.transactions = TransactionFlow(store, audit_logger=audit_logger)
        self.budgets = BudgetFlow(store, audit_logger=audit_logger)
        self.recurring = RecurringFlow(
            store, transaction_flow=self.transactions, audit_logger=audit_logger
        )
        self.accounts = AccountFlow(store, audit_logger=audit_logger)
        self.limits = CreditCardLimitManager(store, audit_logger)

        self.balances = BalanceCalculator(store)
        self.budget_tracker = BudgetTracker(store, settings)
        self.net_worth = NetWorthCalculator(store, settings)
        self.reports = ReportGenerator(store, settings)
        self.dashboard = DashboardAggregator(store, settings)


def create_app_components(
    store: Optional[LedgerStoreInterface] = None,
    audit_storage: Optional[AuditStorageInterface] = None,
) -> LedgerComponents:
    """
    Factory function to create all application components.

    Args:
        store: Ledger store to use. Defaults to a fresh in-memory store.
        audit_storage: Where audit events are persisted. Defaults to an
                       in-memory audit log.

    Returns:
        The wired components
    """
    store = store or InMemoryLedgerStore()
    audit_storage = audit_storage or InMemoryAuditStorage()
    audit_logger = AuditLogger(audit_storage)

    logger.info(
        "app_components_created",
        store=type(store).__name__,
        audit_storage=type(audit_storage).__name__,
    )
    return LedgerComponents(store, audit_logger, get_settings().ledger)
