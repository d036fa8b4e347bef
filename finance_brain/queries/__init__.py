"""Aggregation package."""

from finance_brain.queries.aggregator import (
    ALLOCATION_BUCKETS,
    FinanceAggregator,
    amount_since,
    asset_allocation,
    available_credit,
    categorize_symbol,
    credit_card_debt,
    investment_performance,
    liquid_cash,
    loan_accounts,
    loan_debt,
    net_worth,
    spending_by_category,
    sum_balances,
    total_investments,
)

__all__ = [
    "ALLOCATION_BUCKETS",
    "FinanceAggregator",
    "amount_since",
    "asset_allocation",
    "available_credit",
    "categorize_symbol",
    "credit_card_debt",
    "investment_performance",
    "liquid_cash",
    "loan_accounts",
    "loan_debt",
    "net_worth",
    "spending_by_category",
    "sum_balances",
    "total_investments",
]
