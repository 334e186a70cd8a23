"""
Account Balances

DESIGN DECISION: An account's balance is never stored. It is derived
from the initial balance and the account's full transaction history on
every read, so it cannot drift from the ledger.
"""

from decimal import Decimal
from typing import Iterable
from uuid import UUID

from finledger.models.ledger import Account, Transaction, TransactionType
from finledger.models.reports import AccountBalance
from finledger.services.storage import LedgerStoreInterface, NotFoundError


def compute_balance(account: Account, transactions: Iterable[Transaction]) -> Decimal:
    """
    initial_balance + total income - total expense.

    The order of transactions does not matter; an empty history gives
    back the initial balance.
    """
    income = Decimal("0")
    expense = Decimal("0")
    for txn in transactions:
        if txn.type == TransactionType.INCOME:
            income += txn.amount
        else:
            expense += txn.amount

    initial = account.initial_balance if account.initial_balance is not None else Decimal("0")
    return initial + income - expense


class BalanceCalculator:
    """Derives current balances for stored accounts."""

    def __init__(self, store: LedgerStoreInterface):
        self._store = store

    async def balance_of(self, account_id: UUID) -> Decimal:
        account = await self._store.get_account(account_id)
        if account is None:
            raise NotFoundError("account", account_id)
        transactions = await self._store.transactions_for_account(account_id)
        return compute_balance(account, transactions)

    async def balances_of(self, user_id: UUID) -> list[AccountBalance]:
        """Every account of the user with its derived balance."""
        results = []
        for account in await self._store.list_accounts(user_id):
            transactions = await self._store.transactions_for_account(account.id)
            results.append(AccountBalance(
                account=account,
                current_balance=compute_balance(account, transactions),
            ))
        return results

    async def total_of(self, user_id: UUID) -> Decimal:
        balances = await self.balances_of(user_id)
        return sum((b.current_balance for b in balances), Decimal("0"))
