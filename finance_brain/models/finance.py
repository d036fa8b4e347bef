"""
Core Financial Data Models for Finance Brain

These models are the typed shapes that the property codec and the
aggregator agree on. They are:
1. Immutable - every read re-derives a fresh value from the store
2. Transient - the durable state is the store's flat property maps
3. Money-safe - amounts are Decimal, never float

DESIGN DECISION: Discriminators are str Enums so that a decoded value
compares equal to the raw tag stored on the record ("credit-card").
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class RecordType(str, Enum):
    """
    Values of the `type` property that tags every finance record.

    This is the discriminator the store is queried on.
    """
    ACCOUNT = "account"
    INVESTMENT_ACCOUNT = "investment-account"
    HOLDING = "holding"
    EXPENSE = "expense"
    INCOME = "income"
    INVESTMENT = "investment"


class AccountType(str, Enum):
    """
    Cash and debt account types.

    Checking and savings balances are assets. Credit card and loan
    balances are the amount OWED.
    """
    CHECKING = "checking"
    SAVINGS = "savings"
    CREDIT_CARD = "credit-card"
    LOAN = "loan"


class InvestmentAccountType(str, Enum):
    """Investment account types."""
    BROKERAGE = "brokerage"
    RETIREMENT = "retirement"
    K401 = "401k"
    ROTH_IRA = "roth-ira"
    TRADITIONAL_IRA = "traditional-ira"


class TransactionType(str, Enum):
    """Direction of a transaction. Amounts are always unsigned."""
    EXPENSE = "expense"
    INCOME = "income"
    INVESTMENT = "investment"


LIQUID_ACCOUNT_TYPES = frozenset({AccountType.CHECKING, AccountType.SAVINGS})
LIABILITY_ACCOUNT_TYPES = frozenset({AccountType.CREDIT_CARD, AccountType.LOAN})


# =============================================================================
# ACCOUNTS
# =============================================================================

class Account(BaseModel):
    """
    A bank, credit card or loan account.

    `credit_limit` is only meaningful for credit cards.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    name: str = Field(
        ...,
        description="Account name, also the page name other records link to"
    )
    type: AccountType = Field(
        ...,
        description="Account type"
    )
    balance: Decimal = Field(
        default=Decimal("0"),
        description="Current balance (owed amount for credit cards and loans)"
    )
    institution: str = Field(
        default="",
        description="Bank or card issuer"
    )
    credit_limit: Optional[Decimal] = Field(
        default=None,
        description="Credit limit (credit cards only)"
    )
    last_updated: date = Field(
        default_factory=date.today,
        description="When the balance was last updated"
    )

    @property
    def is_liquid(self) -> bool:
        return self.type in LIQUID_ACCOUNT_TYPES

    @property
    def is_liability(self) -> bool:
        return self.type in LIABILITY_ACCOUNT_TYPES


class InvestmentAccount(BaseModel):
    """An account holding investments (brokerage, 401k, IRA...)."""
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    name: str
    type: InvestmentAccountType
    total_value: Decimal = Field(
        default=Decimal("0"),
        description="Cash plus invested value"
    )
    cash_balance: Decimal = Decimal("0")
    invested_value: Decimal = Decimal("0")
    institution: str = ""
    last_updated: date = Field(default_factory=date.today)

    def is_balanced(self, tolerance: Decimal = Decimal("0.01")) -> bool:
        """
        Check total_value against cash_balance + invested_value.

        Advisory only: nothing rejects an account that is out of balance.
        """
        return abs(self.total_value - (self.cash_balance + self.invested_value)) <= tolerance


# =============================================================================
# HOLDINGS & TRANSACTIONS
# =============================================================================

class Holding(BaseModel):
    """
    A single position (stock, ETF, mutual fund) inside an investment account.

    current_value and gain_loss are stored as given by the caller.
    They are never re-derived from shares and price.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    account: str = Field(
        ...,
        description="Name of the investment account holding this position"
    )
    symbol: str = Field(
        ...,
        description="Ticker symbol"
    )
    name: str = Field(
        default="",
        description="Security name"
    )
    shares: Decimal = Decimal("0")
    current_price: Decimal = Decimal("0")
    current_value: Decimal = Field(
        default=Decimal("0"),
        description="shares x current_price, as computed by the caller"
    )
    cost_basis: Decimal = Decimal("0")
    gain_loss: Decimal = Field(
        default=Decimal("0"),
        description="current_value - cost_basis"
    )
    gain_loss_percent: Decimal = Decimal("0")
    percentage_of_portfolio: Decimal = Decimal("0")


class Transaction(BaseModel):
    """
    An expense, income or investment transaction.

    The amount is a non-negative magnitude. Direction comes from `type`.
    For income, `merchant` holds the income source.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    date: date
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Unsigned amount"
    )
    merchant: str = Field(
        default="",
        description="Merchant for expenses, source for income"
    )
    category: str = ""
    account: str = Field(
        default="",
        description="Name of the account the money moved through"
    )
    type: TransactionType
    description: Optional[str] = None


# =============================================================================
# DERIVED SUMMARIES
# =============================================================================

class FinanceSummary(BaseModel):
    """
    Summary of the overall financial position.

    net_worth = liquid_cash + total_investments - total_debt
    cash_flow = monthly income - monthly_burn_rate
    """
    model_config = ConfigDict(frozen=True)

    liquid_cash: Decimal = Decimal("0")
    total_investments: Decimal = Decimal("0")
    net_worth: Decimal = Decimal("0")
    monthly_burn_rate: Decimal = Decimal("0")
    cash_flow: Decimal = Decimal("0")
    available_credit: Decimal = Decimal("0")
    total_debt: Decimal = Decimal("0")
    last_updated: datetime = Field(default_factory=datetime.now)

    @classmethod
    def zero(cls) -> "FinanceSummary":
        """The all-zero summary returned when aggregation fails."""
        return cls()


class AssetAllocation(BaseModel):
    """One bucket of the asset allocation breakdown."""
    model_config = ConfigDict(frozen=True)

    category: str
    value: Decimal
    percentage: Decimal = Field(
        ...,
        description="Share of total holdings value, 0-100"
    )


class InvestmentPerformance(BaseModel):
    """
    Performance across all holdings.

    Holding records carry no sale history, so realized_gains is always 0
    and unrealized_gains equals total_gain_loss.
    """
    model_config = ConfigDict(frozen=True)

    total_invested: Decimal = Decimal("0")
    current_value: Decimal = Decimal("0")
    total_gain_loss: Decimal = Decimal("0")
    total_gain_loss_percent: Decimal = Decimal("0")
    realized_gains: Decimal = Decimal("0")
    unrealized_gains: Decimal = Decimal("0")
