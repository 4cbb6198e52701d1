"""
Money and currency helpers.

All amounts are integer minor units (cents). Rates are Decimals with 8
fractional digits. Rounding is half away from zero, applied once per
conversion.
"""
from datetime import date, datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

RATE_QUANTUM = Decimal("0.00000001")
ONE = Decimal("1")

Number = Union[int, float, str, Decimal]


def utc_today() -> date:
    """Today's date in UTC; rate dates are UTC calendar days."""
    return datetime.now(timezone.utc).date()


def normalize_currency(code: str) -> str:
    """Upper-case and strip an ISO 4217 code."""
    return (code or "").strip().upper()


def to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() first so floats like 1.38 do not carry binary noise
    return Decimal(str(value))


def quantize_rate(rate: Number) -> Decimal:
    """Round a rate to the 8 fractional digits stored in the database."""
    return to_decimal(rate).quantize(RATE_QUANTUM, rounding=ROUND_HALF_UP)


def convert_cents(amount_cents: int, rate: Number) -> int:
    """Convert minor units with a rate, rounding half away from zero."""
    product = Decimal(amount_cents) * to_decimal(rate)
    return int(product.quantize(ONE, rounding=ROUND_HALF_UP))


def major_to_minor(amount: Number) -> int:
    """Decimal major units (e.g. dollars) to integer minor units (cents)."""
    return int((to_decimal(amount) * 100).quantize(ONE, rounding=ROUND_HALF_UP))


def effective_rate(amount_cents: int, converted_cents: int) -> Decimal:
    """Rate implied by a precomputed conversion snapshot."""
    if not amount_cents:
        return ONE
    return Decimal(converted_cents) / Decimal(amount_cents)
