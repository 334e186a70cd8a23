"""Flattening transactions for display."""

from uuid import UUID

from finledger.models.ledger import Transaction
from finledger.models.reports import TransactionSummary
from finledger.services.storage import LedgerStoreInterface


CARD_SOURCE_PREFIX = "Card: "
NO_SOURCE = "N/A"


class TransactionSummarizer:
    """Resolves card, account and category names for a batch of transactions."""

    def __init__(self, store: LedgerStoreInterface):
        self._store = store

    async def summarize(
        self,
        user_id: UUID,
        transactions: list[Transaction],
    ) -> list[TransactionSummary]:
        """Summaries in the order the transactions were given."""
        cards = {c.id: c.name for c in await self._store.list_credit_cards(user_id)}
        accounts = {a.id: a.name for a in await self._store.list_accounts(user_id)}
        categories = {c.id: c.name for c in await self._store.list_categories(user_id)}

        summaries = []
        for txn in transactions:
            if txn.credit_card_id is not None and txn.credit_card_id in cards:
                source = CARD_SOURCE_PREFIX + cards[txn.credit_card_id]
            elif txn.account_id is not None and txn.account_id in accounts:
                source = accounts[txn.account_id]
            else:
                source = NO_SOURCE

            summaries.append(TransactionSummary(
                id=txn.id,
                description=txn.description,
                amount=txn.amount,
                date=txn.date,
                type=txn.type,
                source_name=source,
                category_id=txn.category_id,
                category_name=categories.get(txn.category_id) if txn.category_id else None,
            ))
        return summaries


def newest_first(transactions: list[Transaction]) -> list[Transaction]:
    """Sort by date descending, latest recorded first within a day."""
    return sorted(transactions, key=lambda t: (t.date, t.created_at), reverse=True)
