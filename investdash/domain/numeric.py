"""
Numeric helpers shared by the aggregation engine.

Pure functions, no state. Missing or malformed numbers never raise here:
quantities collapse to zero, market prices collapse to "unknown".
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Optional

logger = logging.getLogger(__name__)


def to_float(value: Any) -> Optional[float]:
    """Parse a finite float, or None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def coerce_number(value: Any) -> float:
    """
    Coerce an amount or price to a non-negative float.

    Args:
        value: Raw field value (number, numeric string, None, ...)

    Returns:
        The value as float, or 0.0 when missing, non-numeric, NaN,
        infinite or negative
    """
    number = to_float(value)
    if number is None:
        return 0.0
    if number < 0:
        logger.debug("Negative value %r treated as 0", value)
        return 0.0
    return number


def optional_number(value: Any) -> Optional[float]:
    """Like coerce_number, but a missing value stays None."""
    number = to_float(value)
    if number is None:
        return None
    if number < 0:
        logger.debug("Negative value %r treated as 0", value)
        return 0.0
    return number


def safe_divide(numerator: float, denominator: float, default: float = 0.0) -> float:
    """Divide, returning default when the denominator is zero."""
    if denominator == 0:
        return default
    return numerator / denominator


def ratio_of_return(value: Optional[float], cost: float) -> Optional[float]:
    """
    Return on cost as a ratio (0.25 == +25%).

    Args:
        value: Current market value, None when unknown
        cost: Purchase cost

    Returns:
        None if value is unknown, math.inf for a positive value bought
        at zero cost, 0.0 when both are zero
    """
    if value is None:
        return None
    if cost > 0:
        return (value - cost) / cost
    if value > 0:
        return math.inf
    return 0.0


def encode_number(value: Optional[float]) -> Any:
    """JSON-safe number: infinities become "Infinity"/"-Infinity" strings."""
    if value is None:
        return None
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if math.isnan(value):
        return None
    return value


@dataclass(frozen=True)
class MarketValue:
    """
    Running sum of market values that becomes unknown for good as soon as
    one contribution is missing.
    """
    total: float = 0.0
    is_known: bool = True

    @classmethod
    def known(cls, total: float = 0.0) -> "MarketValue":
        return cls(total=total, is_known=True)

    @classmethod
    def unknown(cls) -> "MarketValue":
        return cls(total=0.0, is_known=False)

    def plus(self, amount: Optional[float]) -> "MarketValue":
        if not self.is_known:
            return self
        if amount is None:
            return MarketValue.unknown()
        return MarketValue.known(self.total + amount)

    @property
    def value(self) -> Optional[float]:
        return self.total if self.is_known else None
