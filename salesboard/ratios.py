"""
Ratio metrics derived from summed buckets.

Two sentinels, on purpose different:
- 0 where the denominator is legitimately empty (no orders means no sales
  happened, so AOV is 0).
- None where the value is unknown (ROAS without spend data, a period key
  that is not a month). None must render as absent, never as 0.
"""
import math
from typing import Any, Optional, Union

from salesboard.models import Bucket, coerce_number
from salesboard.periods import days_in_period


def safe_divide(numerator: Any, denominator: Any, default: Optional[float] = None) -> Optional[float]:
    """
    numerator / denominator, or ``default`` when either side is missing,
    the denominator is not positive, or the result is not finite.
    """
    num = coerce_number(numerator)
    den = coerce_number(denominator)
    if num is None or den is None or den <= 0:
        return default
    result = num / den
    return result if math.isfinite(result) else default


def aov(revenue: Union[Bucket, Any], orders: Any = None) -> Optional[float]:
    """
    Average order value.

    Accepts either a Bucket or explicit revenue/orders. Zero orders gives
    0.0; a non-numeric revenue gives None.
    """
    if isinstance(revenue, Bucket):
        revenue, orders = revenue.revenue, revenue.orders

    rev = coerce_number(revenue)
    count = coerce_number(orders)
    if rev is None:
        return None
    if count is None or count <= 0:
        return 0.0
    result = rev / count
    return result if math.isfinite(result) else None


def roas(sales: Any, spend: Any) -> Optional[float]:
    """Return on ad spend (sales / spend). None without usable spend or sales."""
    return safe_divide(sales, spend)


def sales_from_roas(spend: Any, roas_value: Any) -> Optional[float]:
    """
    Ad-attributed sales recovered from spend x ROAS.

    None when either input is missing or the product is not a positive
    finite number.
    """
    s = coerce_number(spend)
    r = coerce_number(roas_value)
    if s is None or r is None:
        return None
    sales = s * r
    if not math.isfinite(sales) or sales <= 0:
        return None
    return sales


def daily_spend(spend: Any, period: str) -> Optional[float]:
    """Spend divided by the calendar days of the period's month."""
    days = days_in_period(period)
    if days is None:
        return None
    return safe_divide(spend, days)


def cost_per_order(spend: Any, orders: Any) -> Optional[float]:
    """Ad spend per attributed order. None when there were no orders."""
    return safe_divide(spend, orders)

