"""
Credit Card Limit Maintenance

CRITICAL: CreditCard.limit_used is the only summary the ledger stores.
It must always equal the sum of the EXPENSE transactions currently
charged to the card. This module is the only code allowed to change it.

The figure is kept current incrementally:
- create: add the new amount
- update: reverse the old state, then apply the new state
- delete: reverse the old state

Reversal and reapplication may hit two different cards when an edit
moves a charge from one card to another. Both steps run inside a single
store unit of work, and every card involved is ownership-checked before
the first write.

An adjustment is only audited once the unit of work that made it has
committed. A caller that wraps the manager in its own unit passes an
`adjustments` list, and calls `audit_adjustments` after its block exits.
"""

from collections import OrderedDict
from decimal import Decimal
from typing import Optional
from uuid import UUID

import structlog
from pydantic import BaseModel

from finledger.audit import AuditLogger
from finledger.models.ledger import CreditCard, Transaction, TransactionType
from finledger.services.storage import LedgerStoreInterface, NotFoundError
from finledger.validation import require_owned


logger = structlog.get_logger(__name__)


class LimitAdjustment(BaseModel):
    """One change to a card's limit_used, with the card after the change."""

    card: CreditCard
    delta: Decimal


def _final_cards(adjustments: list[LimitAdjustment]) -> list[CreditCard]:
    cards: OrderedDict[UUID, CreditCard] = OrderedDict()
    for adjustment in adjustments:
        cards[adjustment.card.id] = adjustment.card
    return list(cards.values())


class CreditCardLimitManager:
    """
    Keeps every card's limit_used in step with its charges.

    Callers hand over the stored state of a transaction (`previous`) and
    its new state (`transaction`); the manager works out which cards
    move and by how much.
    """

    def __init__(
        self,
        store: LedgerStoreInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._audit = audit_logger or AuditLogger()

    async def _owned_card(self, transaction: Transaction) -> CreditCard:
        return await require_owned(
            self._store.get_credit_card,
            "credit_card",
            transaction.credit_card_id,
            transaction.user_id,
        )

    async def _adjust(self, card_id: UUID, delta: Decimal) -> LimitAdjustment:
        # Reload inside the unit of work so a previous step on the same
        # card is not overwritten.
        card = await self._store.get_credit_card(card_id)
        if card is None:
            raise NotFoundError("credit_card", card_id)

        card.limit_used = card.limit_used + delta
        card = await self._store.save_credit_card(card)

        logger.debug(
            "card_limit_adjusted",
            card_id=str(card.id),
            delta=str(delta),
            limit_used=str(card.limit_used),
        )
        return LimitAdjustment(card=card, delta=delta)

    async def audit_adjustments(
        self,
        adjustments: list[LimitAdjustment],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Write one card_limit_adjusted event per committed adjustment."""
        for adjustment in adjustments:
            await self._audit.log_card_limit_adjusted(
                card_id=adjustment.card.id,
                user_id=adjustment.card.user_id,
                delta=adjustment.delta,
                limit_used=adjustment.card.limit_used,
                correlation_id=correlation_id,
            )

    async def apply_transaction_effect(
        self,
        transaction: Transaction,
        previous: Optional[Transaction] = None,
        correlation_id: Optional[UUID] = None,
        adjustments: Optional[list[LimitAdjustment]] = None,
    ) -> list[CreditCard]:
        """
        Bring card limits in line with a created or edited transaction.

        Args:
            transaction: The new state of the transaction
            previous: The stored state before an edit, None on create
            correlation_id: Correlation id of the user action
            adjustments: Collects the adjustments instead of auditing them;
                for callers running inside their own unit of work

        Returns:
            Every card whose limit_used changed, in final state

        Raises:
            NotFoundError: A referenced card does not exist
            OwnershipViolationError: A referenced card belongs to another user
        """
        # Check every card first; nothing is written if one is refused
        if previous is not None and previous.is_card_expense:
            await self._owned_card(previous)
        if transaction.is_card_expense:
            await self._owned_card(transaction)

        made: list[LimitAdjustment] = []

        async with self._store.atomic():
            if previous is not None and previous.is_card_expense:
                made.append(await self._adjust(previous.credit_card_id, -previous.amount))
            if transaction.is_card_expense:
                made.append(await self._adjust(transaction.credit_card_id, transaction.amount))

        if adjustments is None:
            await self.audit_adjustments(made, correlation_id)
        else:
            adjustments.extend(made)
        return _final_cards(made)

    async def reverse_transaction_effect(
        self,
        transaction: Transaction,
        correlation_id: Optional[UUID] = None,
        adjustments: Optional[list[LimitAdjustment]] = None,
    ) -> Optional[CreditCard]:
        """
        Remove a transaction's contribution before it is deleted.

        Returns:
            The updated card, or None when the transaction was not a card
            expense
        """
        if not transaction.is_card_expense:
            return None

        await self._owned_card(transaction)

        async with self._store.atomic():
            adjustment = await self._adjust(transaction.credit_card_id, -transaction.amount)

        if adjustments is None:
            await self.audit_adjustments([adjustment], correlation_id)
        else:
            adjustments.append(adjustment)
        return adjustment.card

    async def recompute_limit_used(self, card_id: UUID) -> Decimal:
        """Sum of the EXPENSE transactions charged to a card right now."""
        transactions = await self._store.transactions_for_card(card_id)
        return sum(
            (t.amount for t in transactions if t.type == TransactionType.EXPENSE),
            Decimal("0"),
        )

    async def reconcile(
        self,
        card_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> CreditCard:
        """
        Overwrite a card's stored limit_used with the recomputed sum.

        Drift is reported as a warning audit event; a card already in
        step is left untouched.
        """
        async with self._store.atomic():
            card = await self._store.get_credit_card(card_id)
            if card is None:
                raise NotFoundError("credit_card", card_id)

            recomputed = await self.recompute_limit_used(card_id)
            previous = card.limit_used

            if recomputed != previous:
                card.limit_used = recomputed
                card = await self._store.save_credit_card(card)

        await self._audit.log_card_limit_reconciled(
            card_id=card.id,
            user_id=card.user_id,
            previous=previous,
            recomputed=recomputed,
            correlation_id=correlation_id,
        )
        return card
