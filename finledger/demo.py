"""
Demonstration Ledger

Populates a store with a realistic demo user: one checking account, six
categories, two assets, a credit card with three charges, a monthly
subscription, a food budget and two months of everyday spending.

Every transaction goes through TransactionFlow, so the card's
limit_used is built by the limit manager and never set by hand.
"""

import random
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional
from uuid import UUID

import structlog
from pydantic import BaseModel

from finledger.audit import AuditLogger
from finledger.models.ledger import (
    Account,
    Asset,
    AssetType,
    Category,
    CreditCard,
    Frequency,
    RecurringTransaction,
    TransactionChanges,
    TransactionType,
)
from finledger.orchestrator import AccountFlow, BudgetFlow, TransactionFlow
from finledger.services.storage import LedgerStoreInterface


logger = structlog.get_logger(__name__)

CATEGORIES = (
    ("Salário", TransactionType.INCOME),
    ("Alimentação", TransactionType.EXPENSE),
    ("Lazer", TransactionType.EXPENSE),
    ("Transporte", TransactionType.EXPENSE),
    ("Moradia", TransactionType.EXPENSE),
    ("Serviços", TransactionType.EXPENSE),
)

SALARY = Decimal("4500.00")


class DemoLedger(BaseModel):
    """Handles to the entities created for the demo user."""

    user_id: UUID
    account: Account
    credit_card: CreditCard
    categories: dict[str, Category]


async def seed_demo_ledger(
    store: LedgerStoreInterface,
    user_id: UUID,
    today: Optional[date] = None,
    audit_logger: Optional[AuditLogger] = None,
    seed: int = 42,
) -> DemoLedger:
    """
    Create the demo user's ledger in `store`.

    Args:
        store: Target store, normally empty
        user_id: Id the demo entities are owned by
        today: Reference date for every relative date (defaults to today)
        audit_logger: Audit logger shared with the flows
        seed: Seed for the randomized everyday spending

    Returns:
        The account, card and categories that were created
    """
    today = today or date.today()
    audit_logger = audit_logger or AuditLogger()
    rng = random.Random(seed)

    transactions = TransactionFlow(store, audit_logger=audit_logger)
    budgets = BudgetFlow(store, audit_logger=audit_logger)
    accounts = AccountFlow(store, audit_logger=audit_logger)

    account = await accounts.create(
        user_id,
        name="Conta Principal",
        bank="Nubank",
        initial_balance=Decimal("1500.00"),
    )

    categories = {}
    for name, kind in CATEGORIES:
        categories[name] = await store.save_category(
            Category(user_id=user_id, name=name, type=kind)
        )

    await store.save_asset(Asset(
        user_id=user_id,
        name="Honda Civic 2020",
        value=Decimal("85000.00"),
        type=AssetType.VEHICLE,
    ))
    await store.save_asset(Asset(
        user_id=user_id,
        name="Reserva de Emergência",
        value=Decimal("15000.00"),
        type=AssetType.INVESTMENT,
    ))

    card = await store.save_credit_card(CreditCard(
        user_id=user_id,
        name="Nubank Ultravioleta",
        color="#820ad1",
        last_four_digits="8829",
        limit_total=Decimal("15000.00"),
        closing_day=1,
        due_day=10,
    ))

    async def spend(description, amount, category, on_date, **source):
        await transactions.create(user_id, TransactionChanges(
            description=description,
            amount=Decimal(amount),
            type=TransactionType.EXPENSE,
            date=on_date,
            category_id=categories[category].id,
            **source,
        ))

    async def earn(on_date):
        await transactions.create(user_id, TransactionChanges(
            description="Salário",
            amount=SALARY,
            type=TransactionType.INCOME,
            date=on_date,
            category_id=categories["Salário"].id,
            account_id=account.id,
        ))

    # Card charges
    await spend("Apple Store", "49.90", "Serviços", today - timedelta(days=1), credit_card_id=card.id)
    await spend("Jantar Outback", "320.50", "Lazer", today - timedelta(days=2), credit_card_id=card.id)
    await spend("Uber Viagem", "45.20", "Transporte", today, credit_card_id=card.id)

    await store.save_recurring(RecurringTransaction(
        user_id=user_id,
        description="Spotify Premium",
        amount=Decimal("21.90"),
        type=TransactionType.EXPENSE,
        category_id=categories["Lazer"].id,
        due_day=15,
        frequency=Frequency.MONTHLY,
    ))

    await budgets.upsert(
        user_id,
        category_id=categories["Alimentação"].id,
        month=today.month,
        year=today.year,
        amount=Decimal("800.00"),
    )

    # Last month, around the 15th
    mid_last_month = (today.replace(day=1) - timedelta(days=1)).replace(day=15)
    for i in range(15):
        on_date = mid_last_month + timedelta(days=rng.randint(-5, 4))
        await spend("Mercado", 50 + rng.randint(0, 199), "Alimentação", on_date, account_id=account.id)
        if i % 3 == 0:
            await spend("Cinema/Jantar", 30 + rng.randint(0, 99), "Lazer", on_date, account_id=account.id)
        if i % 5 == 0:
            await spend("Uber", 15 + rng.randint(0, 29), "Transporte", on_date, account_id=account.id)
    await earn(mid_last_month.replace(day=5))

    # This month
    await earn(today.replace(day=5))
    for i in range(20):
        on_date = today - timedelta(days=i)
        if rng.random() > 0.3:
            await spend("Padaria/Almoço", 20 + rng.randint(0, 49), "Alimentação", on_date, account_id=account.id)
        if i == 2:
            await spend("Abastecimento", "250.00", "Transporte", on_date, account_id=account.id)
        if i == 10:
            await spend("Aluguel", "1200.00", "Moradia", on_date, account_id=account.id)
        if i == 15:
            await spend("Assinaturas", "89.90", "Lazer", on_date, account_id=account.id)

    card = await store.get_credit_card(card.id)
    logger.info(
        "demo_ledger_seeded",
        user_id=str(user_id),
        card_limit_used=str(card.limit_used),
    )
    return DemoLedger(
        user_id=user_id,
        account=account,
        credit_card=card,
        categories=categories,
    )
