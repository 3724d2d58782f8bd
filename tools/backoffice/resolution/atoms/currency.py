"""Currency atom - Pure functions for parsing, rounding and formatting money

The backend sends currency values either as JSON numbers or as decimal
strings ("1234.50"). Every consumer goes through parse_amount() before
doing arithmetic.
"""
import math
import re
from decimal import Decimal
from typing import Any, Optional


def parse_amount(value: Any, default: float = 0.0) -> float:
    """
    Convert a backend or user-entered currency value to float.

    Args:
        value: str, int, float, Decimal or None
        default: Returned for None, blank or unparseable input

    Returns:
        Float amount

    Example:
        >>> parse_amount('123.45')
        123.45
        >>> parse_amount('')
        0.0
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return default
        try:
            amount = float(text)
        except ValueError:
            return default
    elif isinstance(value, (int, float, Decimal)):
        amount = float(value)
    else:
        return default
    if math.isnan(amount) or math.isinf(amount):
        return default
    return amount


def round2(value: float) -> float:
    """
    Round to cents, half away from zero.

    Scales to cents before rounding so that float noise from repeated
    additions (33.33 + 33.33 + 33.34) collapses to the intended value.

    Example:
        >>> round2(123.456)
        123.46
        >>> round2(33.33 + 33.33 + 33.34)
        100.0
    """
    scaled = abs(value) * 100
    # Past 2**52 a float has no cent fraction left to round
    if not math.isfinite(scaled) or scaled >= 2 ** 52:
        return value
    cents = math.floor(scaled + 0.5)
    return math.copysign(cents, value) / 100


def format_currency(amount: Optional[float]) -> str:
    """
    Format amount as Canadian dollars, en-CA style.

    Example:
        >>> format_currency(1234.5)
        '$1,234.50'
        >>> format_currency(-10)
        '-$10.00'
    """
    if amount is None:
        return '$0.00'
    value = round2(parse_amount(amount))
    sign = '-' if value < 0 else ''
    return f"{sign}${abs(value):,.2f}"


def cents_to_dollars(cents: Optional[int]) -> Optional[float]:
    """2034 -> 20.34"""
    if cents is None:
        return None
    return cents / 100


def dollars_to_cents(dollars: Optional[float]) -> Optional[int]:
    """20.34 -> 2034"""
    if dollars is None:
        return None
    return int(math.copysign(math.floor(abs(dollars) * 100 + 0.5), dollars))


def parse_currency_input(value: Optional[str]) -> Optional[int]:
    """
    Convert a form input string to cents.

    Input with a decimal point is read as dollars, input without one is
    already in cents. Anything other than digits and '.' is stripped.

    Example:
        >>> parse_currency_input('$20.34')
        2034
        >>> parse_currency_input('2034')
        2034
    """
    if not value or not value.strip():
        return None

    clean = re.sub(r'[^\d.]', '', value)

    if '.' in clean:
        try:
            dollars = float(clean)
        except ValueError:
            return None
        return dollars_to_cents(dollars)

    if not clean:
        return None
    return int(clean)


def format_cents_for_input(cents: Optional[int]) -> str:
    """2034 -> '20.34'"""
    if cents is None:
        return ''
    return f"{cents / 100:.2f}"
