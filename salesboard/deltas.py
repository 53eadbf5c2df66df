"""
Relative change between two values (MoM, YoY) and share of total.

All functions are total: any input, including None, NaN, infinities and
non-numbers, produces a float or None. Nothing here raises.
"""
import math
from typing import Any, Iterable, List, Optional

from salesboard.models import Kpi, coerce_number


def _operand(value: Any) -> Optional[float]:
    # Strings are rejected even when numeric; delta works on computed values
    if isinstance(value, (str, bytes)):
        return None
    return coerce_number(value)


def delta(current: Any, previous: Any) -> Optional[float]:
    """
    Signed fractional change from ``previous`` to ``current``.

    A 20% increase returns 0.2. Returns None when either value is missing
    or not finite, or when ``previous`` is 0.

    Examples:
        >>> delta(120, 100)
        0.2
        >>> delta(50, 0) is None
        True
    """
    curr = _operand(current)
    prev = _operand(previous)
    if curr is None or prev is None or prev == 0:
        return None
    result = (curr - prev) / prev
    return result if math.isfinite(result) else None


def compare(
    current: Any,
    previous: Any = None,
    year_ago: Any = None,
) -> Kpi:
    """Build a Kpi with MoM against ``previous`` and YoY against ``year_ago``."""
    return Kpi(
        current=current,
        previous=previous,
        mom=delta(current, previous),
        yoy=delta(current, year_ago),
    )


def shares(values: Iterable[Any]) -> List[Optional[float]]:
    """
    Each value's fraction of the total.

    Missing values count as 0 in the total and get a None share. When the
    total is not positive every share is None.
    """
    values = list(values)
    numbers = [_operand(v) for v in values]
    grand_total = sum(n for n in numbers if n is not None)
    if grand_total <= 0:
        return [None] * len(values)
    return [None if n is None else n / grand_total for n in numbers]
