"""Integer minor-unit money helpers.

All amounts inside the checkout app are integers in minor units (cents).
Conversions to decimal major units only happen at the edge, when a
processor's wire protocol expects them. Rounding is always half-up on the
magnitude, so a negative amount rounds exactly like its positive mirror.
"""

from decimal import Decimal, ROUND_HALF_UP

from .domain import OrderLine


def _round_half_up(value: Decimal) -> int:
    magnitude = abs(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(magnitude) if value >= 0 else -int(magnitude)


def to_major_units(amount: int, exponent: int = 2) -> str:
    """Format minor units as a fixed-point decimal string.

    Args:
        amount: Amount in minor units (e.g. cents).
        exponent: Number of minor-unit digits of the currency.

    Returns:
        str: The amount in major units with exactly ``exponent`` decimals,
        e.g. ``1234 -> "12.34"``.
    """
    quantum = Decimal(1).scaleb(-exponent)
    value = Decimal(amount).scaleb(-exponent)
    return str(value.quantize(quantum, rounding=ROUND_HALF_UP))


def percent_of(amount: int, percent: int) -> int:
    """Return ``percent`` % of ``amount`` rounded to a whole minor unit."""
    return _round_half_up(Decimal(amount) * Decimal(percent) / Decimal(100))


def unit_price(line: OrderLine, prices_include_tax: bool) -> int:
    return line.unit_price_with_tax if prices_include_tax else line.unit_price


def line_subtotal(line: OrderLine, prices_include_tax: bool) -> int:
    """Line total (unit price times quantity) on the channel's tax basis."""
    return unit_price(line, prices_include_tax) * line.quantity
