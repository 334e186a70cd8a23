"""
Two-Stage Mutation Validation

DESIGN DECISION: A transaction mutation is validated in two distinct stages
before anything is written:

STAGE 1 - SCHEMA VALIDATION:
- Amount sign
- Description presence
- Needs no storage access

STAGE 2 - LINK VALIDATION:
- Every referenced account, card and category must exist
- Every referenced entity must belong to the acting user
- Needs storage access

IMPORTANT: Both stages finish before the credit card limit is touched.
A refused mutation leaves the ledger exactly as it was.
"""

from typing import Awaitable, Callable, Optional, TypeVar
from uuid import UUID

from pydantic import BaseModel

from finledger.models.ledger import (
    Account,
    Category,
    CreditCard,
    TransactionChanges,
    ValidationIssue,
)
from finledger.services.storage import LedgerStoreInterface, NotFoundError


OwnedT = TypeVar("OwnedT", bound=BaseModel)


class TransactionValidationError(ValueError):
    """A submitted mutation failed schema validation."""

    def __init__(self, issues: list[ValidationIssue]):
        self.issues = issues
        summary = "; ".join(issue.message for issue in issues)
        super().__init__(f"Transaction validation failed: {summary}")


class OwnershipViolationError(Exception):
    """A mutation referenced an entity that belongs to another user."""

    def __init__(self, entity_type: str, entity_id: UUID):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            f"{entity_type.replace('_', ' ').capitalize()} {entity_id} "
            "does not belong to the current user"
        )


async def require_owned(
    fetch: Callable[[UUID], Awaitable[Optional[OwnedT]]],
    entity_type: str,
    entity_id: UUID,
    user_id: UUID,
) -> OwnedT:
    """
    Load an entity and check it belongs to user_id.

    Raises:
        NotFoundError: If the id does not exist
        OwnershipViolationError: If another user owns it
    """
    entity = await fetch(entity_id)
    if entity is None:
        raise NotFoundError(entity_type, entity_id)
    if entity.user_id != user_id:
        raise OwnershipViolationError(entity_type, entity_id)
    return entity


class ResolvedLinks(BaseModel):
    """The entities a validated mutation points at."""

    account: Optional[Account] = None
    credit_card: Optional[CreditCard] = None
    category: Optional[Category] = None


class TransactionValidator:
    """
    Validates a transaction mutation through a two-stage pipeline.

    Stage 1: Schema validation (can run without storage)
    Stage 2: Link validation (resolves and owns every reference)
    """

    def __init__(self, store: LedgerStoreInterface):
        self._store = store

    def _validate_schema(self, changes: TransactionChanges) -> list[ValidationIssue]:
        """
        Stage 1: Schema validation.

        Returns the list of issues; an empty list means the mutation is
        structurally valid.
        """
        issues = []

        if changes.amount < 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must not be negative; use the type for the direction",
            ))

        if not changes.description:
            issues.append(ValidationIssue(
                field="description",
                issue_type="missing",
                message="Description is empty",
                severity="warning",
            ))

        return issues

    async def _resolve_links(
        self,
        user_id: UUID,
        changes: TransactionChanges,
    ) -> ResolvedLinks:
        """Stage 2: load and own every referenced entity."""
        links = ResolvedLinks()

        if changes.credit_card_id is not None:
            links.credit_card = await require_owned(
                self._store.get_credit_card, "credit_card", changes.credit_card_id, user_id
            )
        elif changes.account_id is not None:
            links.account = await require_owned(
                self._store.get_account, "account", changes.account_id, user_id
            )

        if changes.category_id is not None:
            links.category = await require_owned(
                self._store.get_category, "category", changes.category_id, user_id
            )

        return links

    async def validate(
        self,
        user_id: UUID,
        changes: TransactionChanges,
    ) -> tuple[TransactionChanges, ResolvedLinks]:
        """
        Run the full pipeline.

        Returns the normalized changes (a card link clears the account
        link) and the resolved entities.

        Raises:
            TransactionValidationError: Stage 1 found an error
            NotFoundError: A referenced id does not exist
            OwnershipViolationError: A referenced entity belongs to another user
        """
        issues = self._validate_schema(changes)
        errors = [issue for issue in issues if issue.severity == "error"]
        if errors:
            raise TransactionValidationError(errors)

        if changes.credit_card_id is not None and changes.account_id is not None:
            changes = changes.model_copy(update={"account_id": None})

        links = await self._resolve_links(user_id, changes)
        return changes, links
