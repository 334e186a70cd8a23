"""Derived-metric queries package."""

from finledger.queries.balances import BalanceCalculator, compute_balance
from finledger.queries.budgets import BudgetTracker
from finledger.queries.dashboard import DashboardAggregator
from finledger.queries.networth import NetWorthCalculator
from finledger.queries.reports import ReportGenerator
from finledger.queries.transactions import TransactionSummarizer, newest_first

__all__ = [
    "BalanceCalculator",
    "BudgetTracker",
    "DashboardAggregator",
    "NetWorthCalculator",
    "ReportGenerator",
    "TransactionSummarizer",
    "compute_balance",
    "newest_first",
]
