"""Half-up rounding on Decimal, so .5 always rounds away from zero."""

from decimal import ROUND_HALF_UP, Decimal


def to_decimal(value: int | float | Decimal) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() keeps 0.1 as 0.1 instead of its binary expansion
    return Decimal(str(value))


def round_half_up(value: int | float | Decimal, places: int = 0) -> Decimal:
    quantum = Decimal(1).scaleb(-places)
    return to_decimal(value).quantize(quantum, rounding=ROUND_HALF_UP)


def round_percent(value: int | float | Decimal) -> int:
    """Round to an integral percentage clamped into [0, 100]."""
    rounded = int(round_half_up(value))
    return max(0, min(100, rounded))
