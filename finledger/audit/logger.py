"""
Audit Logger

Every ledger mutation is logged. This provides:
1. Traceability of every change to a card's limit_used
2. A record of refused mutations (ownership, validation)
3. Correlation of all events that belong to one user action

The audit logger:
- Is async so it can share the store's event loop
- Never raises because persisting an event failed
- Supports correlation IDs to trace related events
"""

import logging
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID, uuid4

import structlog

from finledger.models.audit import AuditEvent, AuditEventBuilder
from finledger.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route structured log lines to stderr at the given level."""
    logging.basicConfig(format="%(message)s", level=getattr(logging, level.upper()))


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage, when one is attached
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger(__name__)

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_transaction_created(
        self,
        transaction_id: UUID,
        user_id: UUID,
        amount: Decimal,
        transaction_type: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_created(
            transaction_id=transaction_id,
            user_id=user_id,
            amount=amount,
            transaction_type=transaction_type,
            correlation_id=correlation_id,
        ))

    async def log_transaction_updated(
        self,
        transaction_id: UUID,
        user_id: UUID,
        changes: dict[str, Any],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_updated(
            transaction_id=transaction_id,
            user_id=user_id,
            changes=changes,
            correlation_id=correlation_id,
        ))

    async def log_transaction_deleted(
        self,
        transaction_id: UUID,
        user_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_deleted(
            transaction_id=transaction_id,
            user_id=user_id,
            correlation_id=correlation_id,
        ))

    async def log_duplicate_skipped(
        self,
        user_id: UUID,
        external_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.duplicate_skipped(
            user_id=user_id,
            external_id=external_id,
            correlation_id=correlation_id,
        ))

    async def log_expense_recorded(
        self,
        transaction_id: UUID,
        user_id: UUID,
        amount: Decimal,
        source: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.expense_recorded(
            transaction_id=transaction_id,
            user_id=user_id,
            amount=amount,
            source=source,
            correlation_id=correlation_id,
        ))

    async def log_card_limit_adjusted(
        self,
        card_id: UUID,
        user_id: UUID,
        delta: Decimal,
        limit_used: Decimal,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.card_limit_adjusted(
            card_id=card_id,
            user_id=user_id,
            delta=delta,
            limit_used=limit_used,
            correlation_id=correlation_id,
        ))

    async def log_card_limit_reconciled(
        self,
        card_id: UUID,
        user_id: UUID,
        previous: Decimal,
        recomputed: Decimal,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.card_limit_reconciled(
            card_id=card_id,
            user_id=user_id,
            previous=previous,
            recomputed=recomputed,
            correlation_id=correlation_id,
        ))

    async def log_ownership_violation(
        self,
        user_id: UUID,
        entity_type: str,
        entity_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.ownership_violation(
            user_id=user_id,
            entity_type=entity_type,
            entity_id=entity_id,
            correlation_id=correlation_id,
        ))

    async def log_validation_failed(
        self,
        user_id: UUID,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.validation_failed(
            user_id=user_id,
            issues=issues,
            correlation_id=correlation_id,
        ))

    async def log_budget_saved(
        self,
        budget_id: UUID,
        user_id: UUID,
        amount: Decimal,
        month: int,
        year: int,
        created: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.budget_saved(
            budget_id=budget_id,
            user_id=user_id,
            amount=amount,
            month=month,
            year=year,
            created=created,
            correlation_id=correlation_id,
        ))

    async def log_budget_deleted(
        self,
        budget_id: UUID,
        user_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.budget_deleted(
            budget_id=budget_id,
            user_id=user_id,
            correlation_id=correlation_id,
        ))

    async def log_recurring_materialized(
        self,
        recurring_id: UUID,
        transaction_id: UUID,
        user_id: UUID,
        on_date: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.recurring_materialized(
            recurring_id=recurring_id,
            transaction_id=transaction_id,
            user_id=user_id,
            on_date=on_date,
            correlation_id=correlation_id,
        ))

    async def log_account_created(
        self,
        account_id: UUID,
        user_id: UUID,
        name: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.account_created(
            account_id=account_id,
            user_id=user_id,
            name=name,
            correlation_id=correlation_id,
        ))

    async def log_account_deleted(
        self,
        account_id: UUID,
        user_id: UUID,
        removed_transactions: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.account_deleted(
            account_id=account_id,
            user_id=user_id,
            removed_transactions=removed_transactions,
            correlation_id=correlation_id,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., editing a transaction).
    Pass it through all subsequent operations.
    """
    return uuid4()
