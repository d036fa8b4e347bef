"""
Aggregation Engine

DESIGN DECISION: Aggregation runs on raw property maps, not on decoded
entities. Records are loose: a field may be missing, a number may be a
string with a currency symbol. Every reducer here follows one policy:

- A missing or unparseable number contributes 0. It never aborts a sum.
- Categorization is an exact match on type literals. No case folding,
  no partial matches. Anything unrecognized is left out of that sum.
- Date windows compare the stored YYYY-MM-DD string to a cutoff string
  with >=. This is correct only because dates are always stored in that
  fixed form.

The reducers are pure functions. FinanceAggregator scans the store and
applies them.

CONSISTENCY: Sub-aggregates of the summary are scanned concurrently and
without a snapshot. If a write races with a summary, different parts of
the summary may see different store states. This is accepted: summaries
are recomputed fresh on every request.

The trailing window is anchored on the UTC date, so near local midnight
it can start one calendar day earlier or later than a local clock would.
"""

import asyncio
from collections.abc import Iterable, Mapping
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Optional

from finance_brain.codec.converters import (
    ZERO,
    clean_page_reference,
    cutoff_date_string,
    utc_today,
)
from finance_brain.codec.properties import (
    ACCOUNT_TYPE,
    AMOUNT,
    BALANCE,
    CATEGORY,
    COST_BASIS,
    CREDIT_LIMIT,
    CURRENT_VALUE,
    DATE,
    SYMBOL,
    TOTAL_VALUE,
    get_amount,
    get_property,
    get_text,
)
from finance_brain.config import FinanceSettings, get_settings
from finance_brain.log import get_logger
from finance_brain.models.finance import (
    AccountType,
    AssetAllocation,
    FinanceSummary,
    InvestmentPerformance,
    RecordType,
)
from finance_brain.records import RecordScanner


logger = get_logger(__name__)

Records = Iterable[Mapping[str, Any]]

UNCATEGORIZED = "Uncategorized"
OTHER = "Other"

# Symbol -> allocation bucket, checked in order
ALLOCATION_BUCKETS: tuple[tuple[str, frozenset[str]], ...] = (
    ("US Stocks", frozenset({"VTI", "VOO", "SPY"})),
    ("International Stocks", frozenset({"VXUS", "VEA", "VWO"})),
    ("Bonds", frozenset({"BND", "AGG"})),
    ("Real Estate", frozenset({"VNQ"})),
)


# =============================================================================
# PURE REDUCERS
# =============================================================================

def sum_balances(accounts: Records, account_types: Iterable[str]) -> Decimal:
    """Sum balances of accounts whose account-type is one of `account_types`."""
    wanted = {str(t.value if isinstance(t, AccountType) else t) for t in account_types}
    total = ZERO
    for account in accounts:
        if get_text(account, ACCOUNT_TYPE) in wanted:
            total += get_amount(account, BALANCE)
    return total


def liquid_cash(accounts: Records) -> Decimal:
    """Checking plus savings balances."""
    return sum_balances(accounts, (AccountType.CHECKING, AccountType.SAVINGS))


def credit_card_debt(accounts: Records) -> Decimal:
    """Sum of credit card balances (the amount owed)."""
    return sum_balances(accounts, (AccountType.CREDIT_CARD,))


def loan_debt(accounts: Records) -> Decimal:
    return sum_balances(accounts, (AccountType.LOAN,))


def loan_accounts(accounts: Records) -> list[Mapping[str, Any]]:
    return [
        account for account in accounts
        if get_text(account, ACCOUNT_TYPE) == AccountType.LOAN.value
    ]


def available_credit(accounts: Records) -> Decimal:
    """
    Sum of (limit - balance) over credit cards.

    Cards without a positive credit limit contribute nothing.
    """
    total = ZERO
    for account in accounts:
        if get_text(account, ACCOUNT_TYPE) != AccountType.CREDIT_CARD.value:
            continue
        credit_limit = get_amount(account, CREDIT_LIMIT)
        if credit_limit > 0:
            total += credit_limit - get_amount(account, BALANCE)
    return total


def total_investments(investment_accounts: Records) -> Decimal:
    total = ZERO
    for account in investment_accounts:
        total += get_amount(account, TOTAL_VALUE)
    return total


def net_worth(
    liquid: Decimal,
    investments: Decimal,
    card_debt: Decimal,
    loans: Decimal,
) -> Decimal:
    """liquid cash + investments - credit card debt - loan debt"""
    return liquid + investments - card_debt - loans


def _stored_date(record: Mapping[str, Any]) -> Optional[str]:
    value = get_property(record, DATE)
    if value is None:
        return None
    return clean_page_reference(str(value))


def amount_since(transactions: Records, cutoff: str) -> Decimal:
    """
    Sum amounts of transactions dated on or after `cutoff` (YYYY-MM-DD).

    Transactions without a date are excluded.
    """
    total = ZERO
    for transaction in transactions:
        stored = _stored_date(transaction)
        if stored is not None and stored >= cutoff:
            total += get_amount(transaction, AMOUNT)
    return total


def spending_by_category(expenses: Records, cutoff: str) -> dict[str, Decimal]:
    """Group expense amounts dated on/after `cutoff` by category."""
    totals: dict[str, Decimal] = {}
    for expense in expenses:
        stored = _stored_date(expense)
        if stored is None or stored < cutoff:
            continue
        category = get_text(expense, CATEGORY) or UNCATEGORIZED
        totals[category] = totals.get(category, ZERO) + get_amount(expense, AMOUNT)
    return totals


def categorize_symbol(symbol: str) -> str:
    """Allocation bucket for a ticker symbol (exact match, else 'Other')."""
    for category, symbols in ALLOCATION_BUCKETS:
        if symbol in symbols:
            return category
    return OTHER


def asset_allocation(holdings: Records) -> list[AssetAllocation]:
    """
    Bucket holdings by category.

    Buckets are listed in the order they are first seen. Every bucket
    has percentage 0 when the total value is 0.
    """
    buckets: dict[str, Decimal] = {}
    total_value = ZERO

    for holding in holdings:
        value = get_amount(holding, CURRENT_VALUE)
        category = categorize_symbol(get_text(holding, SYMBOL))
        total_value += value
        buckets[category] = buckets.get(category, ZERO) + value

    return [
        AssetAllocation(
            category=category,
            value=value,
            percentage=(value / total_value * 100) if total_value > 0 else ZERO,
        )
        for category, value in buckets.items()
    ]


def investment_performance(holdings: Records) -> InvestmentPerformance:
    """Cost basis vs. current value across all holdings."""
    invested = ZERO
    current = ZERO
    for holding in holdings:
        invested += get_amount(holding, COST_BASIS)
        current += get_amount(holding, CURRENT_VALUE)

    gain_loss = current - invested
    return InvestmentPerformance(
        total_invested=invested,
        current_value=current,
        total_gain_loss=gain_loss,
        total_gain_loss_percent=(gain_loss / invested * 100) if invested > 0 else ZERO,
        realized_gains=ZERO,
        unrealized_gains=gain_loss,
    )


# =============================================================================
# STORE-BACKED AGGREGATOR
# =============================================================================

class FinanceAggregator:
    """
    Computes financial metrics from the records currently in the store.

    Every method re-scans; nothing is cached between calls.
    """

    def __init__(
        self,
        scanner: RecordScanner,
        settings: Optional[FinanceSettings] = None,
        clock: Optional[Callable[[], date]] = None,
    ):
        """
        Args:
            scanner: Scanner bound to the host store
            settings: Settings (cached application settings by default)
            clock: Returns "today" (UTC date by default); injectable for tests
        """
        self._scanner = scanner
        self._settings = settings or get_settings()
        self._clock = clock or utc_today

    def window_cutoff(self) -> str:
        """Start of the trailing window (burn rate, income, spending)."""
        return cutoff_date_string(self._settings.burn_rate_window_days, self._clock())

    async def _accounts(self) -> list[dict[str, Any]]:
        return await self._scanner.scan_by_type(RecordType.ACCOUNT.value)

    async def get_liquid_cash(self) -> Decimal:
        return liquid_cash(await self._accounts())

    async def get_total_investments(self) -> Decimal:
        return total_investments(
            await self._scanner.scan_by_type(RecordType.INVESTMENT_ACCOUNT.value)
        )

    async def get_credit_card_debt(self) -> Decimal:
        return credit_card_debt(await self._accounts())

    async def get_loan_debt(self) -> Decimal:
        return loan_debt(await self._accounts())

    async def get_loan_accounts(self) -> list[Mapping[str, Any]]:
        return loan_accounts(await self._accounts())

    async def get_total_debt(self) -> Decimal:
        card_debt, loans = await asyncio.gather(
            self.get_credit_card_debt(),
            self.get_loan_debt(),
        )
        return card_debt + loans

    async def get_available_credit(self) -> Decimal:
        return available_credit(await self._accounts())

    async def get_net_worth(self) -> Decimal:
        liquid, investments, card_debt, loans = await asyncio.gather(
            self.get_liquid_cash(),
            self.get_total_investments(),
            self.get_credit_card_debt(),
            self.get_loan_debt(),
        )
        return net_worth(liquid, investments, card_debt, loans)

    async def get_expenses_from(self, cutoff: str) -> Decimal:
        """Total expenses dated on or after `cutoff` (YYYY-MM-DD)."""
        return amount_since(
            await self._scanner.scan_by_type(RecordType.EXPENSE.value), cutoff
        )

    async def get_income_from(self, cutoff: str) -> Decimal:
        """Total income dated on or after `cutoff` (YYYY-MM-DD)."""
        return amount_since(
            await self._scanner.scan_by_type(RecordType.INCOME.value), cutoff
        )

    async def get_monthly_expenses(self) -> Decimal:
        return await self.get_expenses_from(self.window_cutoff())

    async def get_monthly_income(self) -> Decimal:
        return await self.get_income_from(self.window_cutoff())

    async def get_finance_summary(self) -> FinanceSummary:
        """
        Compute the complete financial summary.

        All base aggregates are scanned concurrently. If any of them
        raises, the whole summary falls back to zeros: a partially
        correct summary is never returned.

        Investment transactions count as neither expense nor income.
        """
        logger.info("finance_summary_started")

        try:
            (
                liquid,
                investments,
                monthly_expenses,
                monthly_income,
                credit,
                card_debt,
                loans,
            ) = await asyncio.gather(
                self.get_liquid_cash(),
                self.get_total_investments(),
                self.get_monthly_expenses(),
                self.get_monthly_income(),
                self.get_available_credit(),
                self.get_credit_card_debt(),
                self.get_loan_debt(),
            )

            summary = FinanceSummary(
                liquid_cash=liquid,
                total_investments=investments,
                net_worth=net_worth(liquid, investments, card_debt, loans),
                monthly_burn_rate=monthly_expenses,
                cash_flow=monthly_income - monthly_expenses,
                available_credit=credit,
                total_debt=card_debt + loans,
                last_updated=datetime.now(),
            )
        except Exception as e:
            logger.error("finance_summary_failed", error=str(e))
            return FinanceSummary.zero()

        logger.info(
            "finance_summary_calculated",
            liquid_cash=str(summary.liquid_cash),
            total_investments=str(summary.total_investments),
            net_worth=str(summary.net_worth),
            monthly_burn_rate=str(summary.monthly_burn_rate),
            cash_flow=str(summary.cash_flow),
            available_credit=str(summary.available_credit),
            total_debt=str(summary.total_debt),
            credit_card_debt=str(card_debt),
            loan_debt=str(loans),
        )
        return summary

    async def get_all_holdings(self) -> list[dict[str, Any]]:
        return await self._scanner.scan_by_type(RecordType.HOLDING.value)

    async def get_asset_allocation(self) -> list[AssetAllocation]:
        return asset_allocation(await self.get_all_holdings())

    async def get_investment_performance(self) -> InvestmentPerformance:
        return investment_performance(await self.get_all_holdings())

    async def get_spending_by_category(self) -> dict[str, Decimal]:
        """Expense totals per category over the trailing window."""
        return spending_by_category(
            await self._scanner.scan_by_type(RecordType.EXPENSE.value),
            self.window_cutoff(),
        )
