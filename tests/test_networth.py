"""Tests for net worth and its month-over-month change."""

import pytest
from datetime import date
from decimal import Decimal

from finledger.models.ledger import Asset, AssetType, TransactionType
from finledger.queries import NetWorthCalculator


TODAY = date(2024, 3, 20)


class TestNetWorth:
    """Tests for NetWorthCalculator."""

    @pytest.mark.asyncio
    async def test_accounts_and_assets(self, ledger, store):
        """Test balances and asset values add up, skipping missing values."""
        account = await ledger.account(initial_balance="1500.00")
        await ledger.raw_transaction("4500.00", date(2024, 3, 5), TransactionType.INCOME, account_id=account.id)
        await ledger.raw_transaction("1200.00", date(2024, 3, 10), account_id=account.id)
        await store.save_asset(Asset(user_id=ledger.user_id, name="Civic", value=Decimal("85000"), type=AssetType.VEHICLE))
        await store.save_asset(Asset(user_id=ledger.user_id, name="Reserva", value=Decimal("15000"), type=AssetType.INVESTMENT))
        await store.save_asset(Asset(user_id=ledger.user_id, name="Sem valor"))

        snapshot = await NetWorthCalculator(store).net_worth(ledger.user_id, TODAY)

        assert snapshot.accounts_total == Decimal("4800.00")
        assert snapshot.assets_total == Decimal("100000")
        assert snapshot.net_worth == Decimal("104800.00")
        # start of month = 104800 - (4500 - 1200) = 101500
        assert snapshot.percentage_change == 3.2512

    @pytest.mark.asyncio
    async def test_zero_start_of_month_is_100(self, ledger, store):
        """Test start 0 and current 500 yields 100."""
        account = await ledger.account(initial_balance="0")
        await ledger.raw_transaction("500", date(2024, 3, 1), TransactionType.INCOME, account_id=account.id)

        snapshot = await NetWorthCalculator(store).net_worth(ledger.user_id, TODAY)
        assert snapshot.net_worth == Decimal("500")
        assert snapshot.percentage_change == 100.0

    @pytest.mark.asyncio
    async def test_empty_ledger(self, ledger, store):
        """Test no accounts and no assets gives all zeros."""
        snapshot = await NetWorthCalculator(store).net_worth(ledger.user_id, TODAY)
        assert snapshot.net_worth == Decimal("0")
        assert snapshot.percentage_change == 0.0

    @pytest.mark.asyncio
    async def test_previous_months_do_not_move_start(self, ledger, store):
        """Test only the current month's net income is reversed."""
        account = await ledger.account(initial_balance="1000")
        await ledger.raw_transaction("1000", date(2024, 2, 10), TransactionType.INCOME, account_id=account.id)

        snapshot = await NetWorthCalculator(store).net_worth(ledger.user_id, TODAY)
        assert snapshot.net_worth == Decimal("2000")
        assert snapshot.percentage_change == 0.0

    @pytest.mark.asyncio
    async def test_snapshot_with_given_totals(self, ledger, store):
        """Test snapshot uses the monthly figures handed in."""
        await ledger.account(initial_balance="1100")

        snapshot = await NetWorthCalculator(store).snapshot(
            ledger.user_id, Decimal("200"), Decimal("100")
        )
        # start = 1100 - 100 = 1000
        assert snapshot.percentage_change == 10.0
