"""
Data Models Package

This package contains all Pydantic models used by the ledger engine:
ledger entities, derived report figures and audit events.
"""

from finledger.models.ledger import (
    Account,
    Asset,
    AssetType,
    Budget,
    Category,
    CreditCard,
    Frequency,
    RecurringTransaction,
    Transaction,
    TransactionChanges,
    TransactionType,
    ValidationIssue,
)
from finledger.models.reports import (
    AccountBalance,
    BudgetProgress,
    CashFlowEntry,
    CategoryReportLine,
    ChartPoint,
    DashboardSnapshot,
    NetWorthSnapshot,
    TopCategory,
    TransactionSummary,
)
from finledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "Account",
    "Asset",
    "AssetType",
    "Budget",
    "Category",
    "CreditCard",
    "Frequency",
    "RecurringTransaction",
    "Transaction",
    "TransactionChanges",
    "TransactionType",
    "ValidationIssue",
    # Derived figures
    "AccountBalance",
    "BudgetProgress",
    "CashFlowEntry",
    "CategoryReportLine",
    "ChartPoint",
    "DashboardSnapshot",
    "NetWorthSnapshot",
    "TopCategory",
    "TransactionSummary",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
