"""
Audit Models for the Ledger Engine

Every mutation of the ledger is recorded as an audit event:
1. Which entity changed and how
2. Which user action it belonged to (correlation id)
3. Why a mutation was refused

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Transactions
    TRANSACTION_CREATED = "transaction_created"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"
    DUPLICATE_SKIPPED = "duplicate_skipped"
    EXPENSE_RECORDED = "expense_recorded"

    # Credit card invariant
    CARD_LIMIT_ADJUSTED = "card_limit_adjusted"
    CARD_LIMIT_RECONCILED = "card_limit_reconciled"

    # Rejections
    OWNERSHIP_VIOLATION = "ownership_violation"
    VALIDATION_FAILED = "validation_failed"

    # Planning
    BUDGET_SAVED = "budget_saved"
    BUDGET_DELETED = "budget_deleted"
    RECURRING_MATERIALIZED = "recurring_materialized"

    # Accounts
    ACCOUNT_CREATED = "account_created"
    ACCOUNT_DELETED = "account_deleted"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every ledger mutation creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Who and what
    user_id: Optional[UUID] = Field(
        default=None,
        description="Owner of the ledger the event belongs to"
    )
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'credit_card', 'budget')"
    )
    entity_id: Optional[UUID] = None

    correlation_id: Optional[UUID] = Field(
        default=None,
        description="Shared by all events of one user action"
    )

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)

    error_code: Optional[str] = None
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "user_id": str(self.user_id) if self.user_id else None,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_created(txn, correlation_id)
        event = AuditEventBuilder.card_limit_adjusted(card, delta, correlation_id)
    """

    @staticmethod
    def transaction_created(
        transaction_id: UUID,
        user_id: UUID,
        amount: Decimal,
        transaction_type: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_CREATED,
            user_id=user_id,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Transaction created: {transaction_type} {amount}",
            details={
                "amount": str(amount),
                "type": transaction_type,
            },
        )

    @staticmethod
    def transaction_updated(
        transaction_id: UUID,
        user_id: UUID,
        changes: dict[str, Any],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_UPDATED,
            user_id=user_id,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Transaction updated ({len(changes)} fields changed)",
            details={"changes": changes},
        )

    @staticmethod
    def transaction_deleted(
        transaction_id: UUID,
        user_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            user_id=user_id,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description="Transaction deleted",
        )

    @staticmethod
    def duplicate_skipped(
        user_id: UUID,
        external_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DUPLICATE_SKIPPED,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            entity_type="transaction",
            correlation_id=correlation_id,
            description=f"Transaction with external id {external_id} already exists",
            details={"external_id": external_id},
        )

    @staticmethod
    def expense_recorded(
        transaction_id: UUID,
        user_id: UUID,
        amount: Decimal,
        source: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_RECORDED,
            user_id=user_id,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"New expense of {amount} recorded {source}",
            details={"amount": str(amount), "source": source},
        )

    @staticmethod
    def card_limit_adjusted(
        card_id: UUID,
        user_id: UUID,
        delta: Decimal,
        limit_used: Decimal,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CARD_LIMIT_ADJUSTED,
            user_id=user_id,
            entity_type="credit_card",
            entity_id=card_id,
            correlation_id=correlation_id,
            description=f"Card limit used changed by {delta} to {limit_used}",
            details={
                "delta": str(delta),
                "limit_used": str(limit_used),
            },
        )

    @staticmethod
    def card_limit_reconciled(
        card_id: UUID,
        user_id: UUID,
        previous: Decimal,
        recomputed: Decimal,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        drifted = previous != recomputed
        return AuditEvent(
            event_type=AuditEventType.CARD_LIMIT_RECONCILED,
            severity=AuditSeverity.WARNING if drifted else AuditSeverity.INFO,
            user_id=user_id,
            entity_type="credit_card",
            entity_id=card_id,
            correlation_id=correlation_id,
            description=(
                f"Card limit used corrected from {previous} to {recomputed}"
                if drifted
                else "Card limit used matches its transactions"
            ),
            details={
                "previous": str(previous),
                "recomputed": str(recomputed),
            },
        )

    @staticmethod
    def ownership_violation(
        user_id: UUID,
        entity_type: str,
        entity_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OWNERSHIP_VIOLATION,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            entity_type=entity_type,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"Refused access to {entity_type} owned by another user",
            error_code="ownership_violation",
        )

    @staticmethod
    def validation_failed(
        user_id: UUID,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            entity_type="transaction",
            correlation_id=correlation_id,
            description=f"Transaction rejected with {len(issues)} issues",
            details={"issues": issues},
        )

    @staticmethod
    def budget_saved(
        budget_id: UUID,
        user_id: UUID,
        amount: Decimal,
        month: int,
        year: int,
        created: bool,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_SAVED,
            user_id=user_id,
            entity_type="budget",
            entity_id=budget_id,
            correlation_id=correlation_id,
            description=(
                f"Budget {'created' if created else 'updated'} "
                f"for {month:02d}/{year}: {amount}"
            ),
            details={
                "amount": str(amount),
                "month": month,
                "year": year,
                "created": created,
            },
        )

    @staticmethod
    def budget_deleted(
        budget_id: UUID,
        user_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_DELETED,
            user_id=user_id,
            entity_type="budget",
            entity_id=budget_id,
            correlation_id=correlation_id,
            description="Budget deleted",
        )

    @staticmethod
    def recurring_materialized(
        recurring_id: UUID,
        transaction_id: UUID,
        user_id: UUID,
        on_date: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECURRING_MATERIALIZED,
            user_id=user_id,
            entity_type="recurring_transaction",
            entity_id=recurring_id,
            correlation_id=correlation_id,
            description=f"Recurring item posted to the ledger on {on_date}",
            details={
                "transaction_id": str(transaction_id),
                "date": on_date,
            },
        )

    @staticmethod
    def account_created(
        account_id: UUID,
        user_id: UUID,
        name: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_CREATED,
            user_id=user_id,
            entity_type="account",
            entity_id=account_id,
            correlation_id=correlation_id,
            description=f"Account created: {name}",
        )

    @staticmethod
    def account_deleted(
        account_id: UUID,
        user_id: UUID,
        removed_transactions: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_DELETED,
            user_id=user_id,
            entity_type="account",
            entity_id=account_id,
            correlation_id=correlation_id,
            description=f"Account deleted with {removed_transactions} transactions",
            details={"removed_transactions": removed_transactions},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
