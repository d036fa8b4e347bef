"""
Data Models Package

This package contains the Pydantic models used in Finance Brain.
Every record decoded from the store becomes one of these models.
"""

from finance_brain.models.finance import (
    LIABILITY_ACCOUNT_TYPES,
    LIQUID_ACCOUNT_TYPES,
    Account,
    AccountType,
    AssetAllocation,
    FinanceSummary,
    Holding,
    InvestmentAccount,
    InvestmentAccountType,
    InvestmentPerformance,
    RecordType,
    Transaction,
    TransactionType,
)

__all__ = [
    # Enums
    "AccountType",
    "InvestmentAccountType",
    "RecordType",
    "TransactionType",
    "LIABILITY_ACCOUNT_TYPES",
    "LIQUID_ACCOUNT_TYPES",
    # Entities
    "Account",
    "Holding",
    "InvestmentAccount",
    "Transaction",
    # Summaries
    "AssetAllocation",
    "FinanceSummary",
    "InvestmentPerformance",
]
