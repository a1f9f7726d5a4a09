"""Decimal helpers shared by the credit calculators."""

from decimal import Decimal, ROUND_FLOOR


def to_decimal(x) -> Decimal:
    if isinstance(x, Decimal):
        return x
    return Decimal(str(x))


def round_half_up(x: Decimal) -> int:
    """Whole dollars, half up toward +infinity: -2.5 -> -2, 2.5 -> 3."""
    return int((x + Decimal("0.5")).to_integral_value(rounding=ROUND_FLOOR))
