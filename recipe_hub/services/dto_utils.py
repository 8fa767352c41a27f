"""DTO utilities for the service layer.

Provides the rounding rule used by the rating aggregate and the conversions
applied when stored values are copied into DTOs.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union

from recipe_hub.utils.constants import RATING_DECIMAL_PLACES

Number = Union[Decimal, float, int, str]


def round_half_up(value: Number, places: int = RATING_DECIMAL_PLACES) -> Decimal:
    """
    Round a value half-up to a fixed number of decimal places.

    Args:
        value: Value to round (Decimal, float, int or numeric string)
        places: Number of decimal places (default 2)

    Returns:
        Rounded Decimal

    Examples:
        >>> round_half_up(Decimal("4.125"))
        Decimal('4.13')
        >>> round_half_up(Decimal(11) / Decimal(3))
        Decimal('3.67')
        >>> round_half_up(5)
        Decimal('5.00')
    """
    decimal_value = value if isinstance(value, Decimal) else Decimal(str(value))
    quantum = Decimal(1).scaleb(-places)
    return decimal_value.quantize(quantum, rounding=ROUND_HALF_UP)


def mean_rating(rating_sum: Number, count: int) -> Optional[Decimal]:
    """
    Two-decimal half-up mean of a rating sum over a count.

    Args:
        rating_sum: Sum of the ratings
        count: Number of ratings

    Returns:
        Rounded mean, or None when count is zero

    Examples:
        >>> mean_rating(13, 3)
        Decimal('4.33')
        >>> mean_rating(0, 0) is None
        True
    """
    if not count:
        return None
    return round_half_up(Decimal(str(rating_sum)) / Decimal(count))


def to_float(value: Optional[Number]) -> Optional[float]:
    """Convert a stored numeric (often Decimal) to float, preserving None."""
    if value is None:
        return None
    return float(value)
