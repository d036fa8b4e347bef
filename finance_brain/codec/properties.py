"""
Property Codec

Maps each finance entity to and from the flat property map stored on a
block. The store enforces no schema, so decoding is where all the
leniency lives:

- The `type` property is the discriminator. A decoder handed a record of
  another type returns None; decode_record() dispatches on it.
- Every field has an ordered list of accepted keys. The hyphenated form
  comes first and wins; the compact camelCase form written by older
  versions is still accepted. Encoding only ever emits hyphenated keys.
- Numbers and dates never fail to decode (see converters).
- References to other pages are stored as [[name]] and decoded to name.

All functions here are pure. Writing an encoded map back to the store is
the RecordWriter's job.
"""

from collections.abc import Mapping
from decimal import Decimal
from typing import Any, Optional, Union

from finance_brain.codec.converters import (
    clean_page_reference,
    format_date,
    format_fixed,
    format_money,
    format_number,
    is_valid_account_type,
    is_valid_investment_account_type,
    page_reference,
    parse_amount,
    parse_date,
    parse_percentage,
)
from finance_brain.log import get_logger
from finance_brain.models.finance import (
    Account,
    AccountType,
    Holding,
    InvestmentAccount,
    InvestmentAccountType,
    RecordType,
    Transaction,
    TransactionType,
)


logger = get_logger(__name__)

Properties = Mapping[str, Any]
FinanceEntity = Union[Account, InvestmentAccount, Holding, Transaction]


# =============================================================================
# PROPERTY KEYS - hyphenated form first, accepted synonyms after it
# =============================================================================

TYPE = ("type",)

ACCOUNT_NAME = ("account-name", "accountName")
ACCOUNT_TYPE = ("account-type", "accountType")
BALANCE = ("balance",)
INSTITUTION = ("institution",)
CREDIT_LIMIT = ("credit-limit", "creditLimit")
LAST_UPDATED = ("last-updated", "lastUpdated")

TOTAL_VALUE = ("total-value", "totalValue")
CASH_BALANCE = ("cash-balance", "cashBalance")
INVESTED_VALUE = ("invested-value", "investedValue")

ACCOUNT = ("account",)
SYMBOL = ("symbol",)
NAME = ("name",)
SHARES = ("shares",)
CURRENT_PRICE = ("current-price", "currentPrice")
CURRENT_VALUE = ("current-value", "currentValue")
COST_BASIS = ("cost-basis", "costBasis")
GAIN_LOSS = ("gain-loss", "gainLoss")
GAIN_LOSS_PERCENT = ("gain-loss-percent", "gainLossPercent")
PERCENTAGE = ("percentage", "percentageOfPortfolio")

DATE = ("date",)
AMOUNT = ("amount",)
MERCHANT = ("merchant", "source")
SOURCE = ("source",)
CATEGORY = ("category",)
DESCRIPTION = ("description",)

TRANSACTION_TYPES = frozenset(t.value for t in TransactionType)


# =============================================================================
# LOOKUP HELPERS
# =============================================================================

def get_property(properties: Optional[Properties], keys: tuple[str, ...]) -> Any:
    """
    Return the value of the first key in `keys` that is present.

    A key counts as present when it exists with a value other than None
    or the empty string. Returns None when no key is present.
    """
    if not properties:
        return None
    for key in keys:
        value = properties.get(key)
        if value is not None and value != "":
            return value
    return None


def get_text(properties: Optional[Properties], keys: tuple[str, ...], default: str = "") -> str:
    value = get_property(properties, keys)
    return default if value is None else str(value)


def get_amount(properties: Optional[Properties], keys: tuple[str, ...]) -> Decimal:
    """Lenient numeric lookup: missing or unparseable values are 0."""
    return parse_amount(get_property(properties, keys))


def get_reference(properties: Optional[Properties], keys: tuple[str, ...]) -> str:
    return clean_page_reference(get_text(properties, keys))


def record_type(properties: Optional[Properties]) -> Optional[str]:
    """The record's `type` tag, or None when it has none."""
    value = get_property(properties, TYPE)
    return None if value is None else str(value)


# =============================================================================
# ACCOUNT
# =============================================================================

def encode_account(account: Account) -> dict[str, str]:
    """Convert an Account to block properties."""
    props = {
        "type": RecordType.ACCOUNT.value,
        ACCOUNT_NAME[0]: account.name,
        ACCOUNT_TYPE[0]: account.type.value,
        BALANCE[0]: format_money(account.balance),
        INSTITUTION[0]: account.institution,
        LAST_UPDATED[0]: format_date(account.last_updated),
    }
    if account.credit_limit is not None:
        props[CREDIT_LIMIT[0]] = format_money(account.credit_limit)
    return props


def decode_account(properties: Optional[Properties]) -> Optional[Account]:
    """
    Convert block properties to an Account.

    Returns None for records of another type, and for account records
    whose account type is not one we know.
    """
    if record_type(properties) != RecordType.ACCOUNT.value:
        return None

    account_type = get_text(properties, ACCOUNT_TYPE)
    if not is_valid_account_type(account_type):
        logger.warning(
            "unknown_account_type",
            account_type=account_type,
            account_name=get_text(properties, ACCOUNT_NAME),
        )
        return None

    credit_limit = get_property(properties, CREDIT_LIMIT)

    return Account(
        name=get_text(properties, ACCOUNT_NAME),
        type=AccountType(account_type),
        balance=get_amount(properties, BALANCE),
        institution=get_text(properties, INSTITUTION),
        credit_limit=parse_amount(credit_limit) if credit_limit is not None else None,
        last_updated=parse_date(get_property(properties, LAST_UPDATED)),
    )


# =============================================================================
# INVESTMENT ACCOUNT
# =============================================================================

def encode_investment_account(account: InvestmentAccount) -> dict[str, str]:
    """Convert an InvestmentAccount to block properties."""
    return {
        "type": RecordType.INVESTMENT_ACCOUNT.value,
        ACCOUNT_NAME[0]: account.name,
        ACCOUNT_TYPE[0]: account.type.value,
        TOTAL_VALUE[0]: format_money(account.total_value),
        CASH_BALANCE[0]: format_money(account.cash_balance),
        INVESTED_VALUE[0]: format_money(account.invested_value),
        INSTITUTION[0]: account.institution,
        LAST_UPDATED[0]: format_date(account.last_updated),
    }


def decode_investment_account(properties: Optional[Properties]) -> Optional[InvestmentAccount]:
    if record_type(properties) != RecordType.INVESTMENT_ACCOUNT.value:
        return None

    account_type = get_text(properties, ACCOUNT_TYPE)
    if not is_valid_investment_account_type(account_type):
        logger.warning(
            "unknown_investment_account_type",
            account_type=account_type,
            account_name=get_text(properties, ACCOUNT_NAME),
        )
        return None

    return InvestmentAccount(
        name=get_text(properties, ACCOUNT_NAME),
        type=InvestmentAccountType(account_type),
        total_value=get_amount(properties, TOTAL_VALUE),
        cash_balance=get_amount(properties, CASH_BALANCE),
        invested_value=get_amount(properties, INVESTED_VALUE),
        institution=get_text(properties, INSTITUTION),
        last_updated=parse_date(get_property(properties, LAST_UPDATED)),
    )


# =============================================================================
# HOLDING
# =============================================================================

def encode_holding(holding: Holding) -> dict[str, str]:
    """Convert a Holding to block properties."""
    return {
        "type": RecordType.HOLDING.value,
        ACCOUNT[0]: page_reference(holding.account),
        SYMBOL[0]: holding.symbol,
        NAME[0]: holding.name,
        SHARES[0]: format_number(holding.shares),
        CURRENT_PRICE[0]: format_money(holding.current_price),
        CURRENT_VALUE[0]: format_money(holding.current_value),
        COST_BASIS[0]: format_money(holding.cost_basis),
        GAIN_LOSS[0]: format_money(holding.gain_loss),
        GAIN_LOSS_PERCENT[0]: format_fixed(holding.gain_loss_percent, 2),
        PERCENTAGE[0]: format_fixed(holding.percentage_of_portfolio, 1),
    }


def decode_holding(properties: Optional[Properties]) -> Optional[Holding]:
    if record_type(properties) != RecordType.HOLDING.value:
        return None

    return Holding(
        account=get_reference(properties, ACCOUNT),
        symbol=get_text(properties, SYMBOL),
        name=get_text(properties, NAME),
        shares=get_amount(properties, SHARES),
        current_price=get_amount(properties, CURRENT_PRICE),
        current_value=get_amount(properties, CURRENT_VALUE),
        cost_basis=get_amount(properties, COST_BASIS),
        gain_loss=get_amount(properties, GAIN_LOSS),
        gain_loss_percent=parse_percentage(get_property(properties, GAIN_LOSS_PERCENT)),
        percentage_of_portfolio=parse_percentage(get_property(properties, PERCENTAGE)),
    )


# =============================================================================
# TRANSACTION
# =============================================================================

def encode_transaction(transaction: Transaction) -> dict[str, str]:
    """
    Convert a Transaction to block properties.

    Income stores its counterparty under `source`; expenses and
    investments store it under `merchant`.
    """
    props = {
        "type": transaction.type.value,
        DATE[0]: format_date(transaction.date),
        AMOUNT[0]: format_money(transaction.amount),
        CATEGORY[0]: transaction.category,
        ACCOUNT[0]: page_reference(transaction.account),
    }

    if transaction.type == TransactionType.INCOME:
        props[SOURCE[0]] = transaction.merchant
    else:
        props[MERCHANT[0]] = transaction.merchant

    if transaction.description:
        props[DESCRIPTION[0]] = transaction.description

    return props


def decode_transaction(properties: Optional[Properties]) -> Optional[Transaction]:
    """
    Convert block properties to a Transaction.

    Accepts expense, income and investment records. A negative stored
    amount is read as its magnitude.
    """
    tag = record_type(properties)
    if tag not in TRANSACTION_TYPES:
        return None

    description = get_property(properties, DESCRIPTION)

    return Transaction(
        date=parse_date(get_property(properties, DATE)),
        amount=abs(get_amount(properties, AMOUNT)),
        merchant=get_text(properties, MERCHANT),
        category=get_text(properties, CATEGORY),
        account=get_reference(properties, ACCOUNT),
        type=TransactionType(tag),
        description=None if description is None else str(description),
    )


# =============================================================================
# DISPATCH
# =============================================================================

_DECODERS = {
    RecordType.ACCOUNT.value: decode_account,
    RecordType.INVESTMENT_ACCOUNT.value: decode_investment_account,
    RecordType.HOLDING.value: decode_holding,
    RecordType.EXPENSE.value: decode_transaction,
    RecordType.INCOME.value: decode_transaction,
    RecordType.INVESTMENT.value: decode_transaction,
}


def decode_record(properties: Optional[Properties]) -> Optional[FinanceEntity]:
    """
    Decode any finance record by its `type` tag.

    Returns None for untagged records and for tags that are not finance
    record types.
    """
    decoder = _DECODERS.get(record_type(properties) or "")
    if decoder is None:
        return None
    return decoder(properties)


def encode(entity: FinanceEntity) -> dict[str, str]:
    """Encode any finance entity to block properties."""
    if isinstance(entity, Account):
        return encode_account(entity)
    if isinstance(entity, InvestmentAccount):
        return encode_investment_account(entity)
    if isinstance(entity, Holding):
        return encode_holding(entity)
    if isinstance(entity, Transaction):
        return encode_transaction(entity)
    raise TypeError(f"Cannot encode {type(entity).__name__} as block properties")
