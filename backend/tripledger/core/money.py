"""
Money conversion and formatting helpers.

Amounts cross the boundary as decimals (e.g. 12.34) and are converted to
integer minor units immediately. Balances are never accumulated in floating
point.
"""
import math
import sys
from decimal import Decimal
from typing import Optional, Union
from tripledger.core.config import settings

Amount = Union[int, float, Decimal]

# Bias added before rounding so values such as 1.005 that are stored
# slightly below their decimal literal still round half-up.
ROUNDING_EPSILON = sys.float_info.epsilon


def to_cents(amount: Amount) -> int:
    """
    Convert a decimal amount to integer minor units, rounding half-up.
    
    Raises ValueError for NaN, infinite values and amounts too large to
    express in minor units.
    """
    value = float(amount)
    if not math.isfinite(value):
        raise ValueError(f"Invalid amount: {amount}")
    scaled = (value + ROUNDING_EPSILON) * settings.CURRENCY_SCALE
    if not math.isfinite(scaled):
        raise ValueError(f"Amount out of range: {amount}")
    return math.floor(scaled + 0.5)


def currency_decimals() -> int:
    """Decimal places of the major unit implied by CURRENCY_SCALE (100 -> 2)."""
    return round(math.log10(settings.CURRENCY_SCALE))


def from_cents(cents: int) -> float:
    """Convert integer minor units back to a decimal amount."""
    return round(cents / settings.CURRENCY_SCALE, currency_decimals())


def is_cent_precise(amount: Amount) -> bool:
    """Check that an amount has no more decimal places than the currency allows."""
    value = float(amount)
    if not math.isfinite(value):
        return False
    scaled = (value + ROUNDING_EPSILON) * settings.CURRENCY_SCALE
    if not math.isfinite(scaled):
        return False
    return math.isclose(scaled, round(scaled), rel_tol=0.0, abs_tol=1e-6)


def format_amount(amount: Amount, symbol: Optional[str] = None) -> str:
    """Format an amount for display, e.g. "Tk 1,234.50" or "-Tk 12.00"."""
    symbol = settings.CURRENCY_SYMBOL if symbol is None else symbol
    cents = to_cents(abs(float(amount)))
    sign = "-" if float(amount) < 0 and cents > 0 else ""
    formatted_abs = f"{from_cents(cents):,.{currency_decimals()}f}"
    if symbol:
        return f"{sign}{symbol} {formatted_abs}"
    return f"{sign}{formatted_abs}"


def to_signed_cents(amount: Amount) -> int:
    """Like to_cents, but negative amounts round by magnitude (-0.005 -> -1)."""
    cents = to_cents(abs(float(amount)))
    return -cents if float(amount) < 0 else cents
