"""
Type Conversion and Formatting Utilities

Values in the store are loosely typed: a balance may be the number 1250.5,
the string "1250.50" or the string "$1,250.50", and some records have no
balance at all. Everything here follows two rules:

1. Parsing NEVER raises. Bad numbers become 0, bad dates become today.
2. Storage formatting is fixed-point and locale-free ("1250.50").
   Display formatting (format_currency) is a separate concern.
"""

import calendar
import re
from datetime import date, datetime, time, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Any, Optional, Union

from finance_brain.models.finance import (
    AccountType,
    InvestmentAccountType,
    TransactionType,
)


Number = Union[int, float, Decimal]

ZERO = Decimal("0")

# Largest exponent a lenient float parse stays finite at (about 1.8e308)
_MAX_EXPONENT = 308

# Leading numeric prefix, the same portion a lenient float parse would read
_NUMBER_PREFIX = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

_PAGE_REF_OPEN = re.compile(r"^\[\[")
_PAGE_REF_CLOSE = re.compile(r"\]\]$")

_CURRENCY_SYMBOLS = {
    "USD": "$",
    "CAD": "CA$",
    "AUD": "A$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "INR": "₹",
}


# =============================================================================
# PARSING
# =============================================================================

def _finite_or_zero(parsed: Decimal) -> Decimal:
    if not parsed.is_finite() or parsed.adjusted() > _MAX_EXPONENT:
        return ZERO
    return parsed


def _to_decimal(value: Any, strip_chars: str) -> Decimal:
    if value is None or isinstance(value, bool):
        return ZERO

    if isinstance(value, Decimal):
        return _finite_or_zero(value)

    if isinstance(value, (int, float)):
        try:
            parsed = Decimal(str(value))
        except InvalidOperation:
            return ZERO
        return _finite_or_zero(parsed)

    cleaned = str(value)
    for char in strip_chars:
        cleaned = cleaned.replace(char, "")
    cleaned = cleaned.strip()

    match = _NUMBER_PREFIX.match(cleaned)
    if not match:
        return ZERO

    try:
        parsed = Decimal(match.group(0))
    except InvalidOperation:
        return ZERO
    return _finite_or_zero(parsed)


def parse_amount(value: Any) -> Decimal:
    """
    Leniently parse a money value.

    Strips currency symbols ($) and thousands separators (,).
    Absent, empty or unparseable input returns 0.

    >>> parse_amount("$1,250.50")
    Decimal('1250.50')
    >>> parse_amount("n/a")
    Decimal('0')
    """
    return _to_decimal(value, "$,")


def parse_percentage(value: Any) -> Decimal:
    """Leniently parse a percentage ("12.5%" -> 12.5). Unparseable returns 0."""
    return _to_decimal(value, "%")


def parse_date(value: Any, default: Optional[date] = None) -> date:
    """
    Leniently parse a date.

    Accepts date/datetime objects, ISO dates ("2024-03-01"), ISO
    datetimes ("2024-03-01T10:00:00Z") and page references to journal
    days ("[[2024-03-01]]"). Anything else returns `default`, or today
    when no default is given.
    """
    fallback = default or date.today()

    if value is None or value == "":
        return fallback

    if isinstance(value, datetime):
        return value.date()

    if isinstance(value, date):
        return value

    text = clean_page_reference(str(value).strip())

    try:
        return date.fromisoformat(text)
    except ValueError:
        pass

    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return fallback


# =============================================================================
# STORAGE FORMATTING
# =============================================================================

def _quantize(value: Number, decimals: int) -> Decimal:
    number = Decimal(str(value))
    exponent = Decimal(1).scaleb(-decimals)
    with localcontext() as ctx:
        # Quantize needs room for every integer digit plus the decimals
        ctx.prec = max(ctx.prec, number.adjusted() + decimals + 2)
        return number.quantize(exponent, rounding=ROUND_HALF_UP)


def format_money(value: Number) -> str:
    """Fixed two-decimal storage form: 1250.5 -> "1250.50"."""
    return str(_quantize(value, 2))


def format_fixed(value: Number, decimals: int) -> str:
    """Fixed-point storage form with the given number of decimals."""
    return str(_quantize(value, decimals))


def format_number(value: Number) -> str:
    """Plain decimal form without exponent or trailing zeros: 10.50 -> "10.5"."""
    text = format(Decimal(str(value)).normalize(), "f")
    return "0" if text in ("-0", "") else text


def format_date(value: date, fmt: str = "YYYY-MM-DD") -> str:
    """Format a date using YYYY / MM / DD placeholders."""
    return (
        fmt.replace("YYYY", f"{value.year:04d}")
        .replace("MM", f"{value.month:02d}")
        .replace("DD", f"{value.day:02d}")
    )


def utc_today() -> date:
    """Today's date in UTC. Window cutoffs are computed on this calendar."""
    return datetime.now(timezone.utc).date()


def cutoff_date_string(days: int, today: Optional[date] = None) -> str:
    """ISO date `days` before today (UTC), for lexicographic >= comparisons."""
    return ((today or utc_today()) - timedelta(days=days)).isoformat()


# =============================================================================
# DISPLAY FORMATTING
# =============================================================================

def format_currency(amount: Number, currency: str = "USD") -> str:
    """
    Format an amount for display: format_currency(-1234.5) -> "-$1,234.50".

    Currency is only a label here. Nothing is converted.
    """
    code = currency.upper()
    value = _quantize(amount, 2)
    sign = "-" if value < 0 else ""
    digits = f"{abs(value):,.2f}"

    symbol = _CURRENCY_SYMBOLS.get(code)
    if symbol:
        return f"{sign}{symbol}{digits}"
    return f"{sign}{code} {digits}"


def format_percentage(value: Number, decimals: int = 1) -> str:
    """Format a percentage for display: 62.94 -> "62.9%"."""
    return f"{_quantize(value, decimals)}%"


# =============================================================================
# REFERENCES & NAMES
# =============================================================================

def page_reference(name: str) -> str:
    """Wrap a name as a page reference: "Chase" -> "[[Chase]]"."""
    return f"[[{name}]]"


def clean_page_reference(ref: str) -> str:
    """Remove a leading [[ and a trailing ]] if present."""
    return _PAGE_REF_CLOSE.sub("", _PAGE_REF_OPEN.sub("", ref))


def clean_merchant_name(name: str) -> str:
    """Normalize whitespace and drop characters other than word chars, -&.'"""
    collapsed = re.sub(r"\s+", " ", name.strip())
    return re.sub(r"[^\w\s\-&.']", "", collapsed)


# =============================================================================
# PERIODS & CHANGE
# =============================================================================

def get_month_key(value: date) -> str:
    """Grouping key for a month: date(2024, 3, 9) -> "2024-03"."""
    return f"{value.year:04d}-{value.month:02d}"


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def get_date_range(
    period: str,
    offset: int = 0,
    today: Optional[date] = None,
) -> tuple[datetime, datetime]:
    """
    Start and end of a calendar month, quarter or year.

    offset=0 is the current period, offset=1 the previous one, and so on.
    The start is at 00:00 and the end at the last microsecond of the day.
    """
    today = today or date.today()

    if period == "month":
        start_year, start_month = _shift_month(today.year, today.month, -offset)
        end_year, end_month = start_year, start_month
    elif period == "quarter":
        quarter_start = (today.month - 1) // 3 * 3 + 1
        start_year, start_month = _shift_month(today.year, quarter_start, -3 * offset)
        end_year, end_month = _shift_month(start_year, start_month, 2)
    elif period == "year":
        start_year, start_month = today.year - offset, 1
        end_year, end_month = start_year, 12
    else:
        raise ValueError(f"Unsupported period: {period}. Use month, quarter or year")

    last_day = calendar.monthrange(end_year, end_month)[1]
    start = datetime.combine(date(start_year, start_month, 1), time.min)
    end = datetime.combine(date(end_year, end_month, last_day), time.max)
    return start, end


def calculate_percentage_change(current: Number, previous: Number) -> Decimal:
    """
    Percentage change from previous to current.

    From a previous value of 0 the change is 100 for growth, else 0.
    """
    current = Decimal(str(current))
    previous = Decimal(str(previous))
    if previous == 0:
        return Decimal("100") if current > 0 else ZERO
    return (current - previous) / previous * 100


# =============================================================================
# TYPE VALIDATORS
# =============================================================================

def is_valid_account_type(value: str) -> bool:
    return value in {t.value for t in AccountType}


def is_valid_investment_account_type(value: str) -> bool:
    return value in {t.value for t in InvestmentAccountType}


def is_valid_transaction_type(value: str) -> bool:
    return value in {t.value for t in TransactionType}
