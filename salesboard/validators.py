"""
Input validation functions for query parameters.

All validators raise ValidationError on invalid input and return the
cleaned value otherwise.
"""

from typing import Optional, Sequence, Tuple

from salesboard.config import config
from salesboard.exceptions import ValidationError
from salesboard.periods import normalize_period, parse_period
from salesboard.ranking import SortDirection

# Maximum trailing window accepted from callers
MAX_WINDOW = 24
MAX_NAME_LENGTH = 255


def validate_period(
    value: Optional[str],
    field: str = "period",
    allow_none: bool = True
) -> Optional[str]:
    """
    Validate a period key and return it as ``YYYY-MM``.

    Args:
        value: Period string (YYYY-MM or YYYY-MM-DD)
        field: Field name for error messages
        allow_none: Whether None/empty is allowed (meaning "latest")

    Raises:
        ValidationError: If the value is not a calendar month
    """
    if value is None or value == "":
        if allow_none:
            return None
        raise ValidationError(field, "Period is required")

    if not isinstance(value, str):
        raise ValidationError(field, "Must be a string", value)

    normalized = normalize_period(value)
    if parse_period(normalized) is None:
        raise ValidationError(field, "Invalid period. Expected YYYY-MM", value)
    return normalized


def validate_group_by(value: Optional[str], field: str = "group_by") -> Tuple[str, ...]:
    """
    Validate a comma-separated list of dimensions.

    Empty means "no grouping" (a single total row).
    """
    if not value:
        return ()

    allowed = config.engine.dimensions
    dims = tuple(d.strip().lower() for d in value.split(",") if d.strip())
    unknown = [d for d in dims if d not in allowed]
    if unknown:
        raise ValidationError(
            field,
            f"Unknown dimension(s) {', '.join(unknown)}. Allowed: {', '.join(allowed)}",
            value,
        )
    if len(set(dims)) != len(dims):
        raise ValidationError(field, "Dimensions must not repeat", value)
    return dims


def validate_metric(value: Optional[str], field: str = "metric") -> str:
    """Validate the breakdown metric (revenue, orders or aov)."""
    if not value:
        return "revenue"
    metric = value.strip().lower()
    if metric not in config.engine.metrics:
        raise ValidationError(
            field,
            f"Must be one of: {', '.join(config.engine.metrics)}",
            value,
        )
    return metric


def validate_sort_direction(value: Optional[str], field: str = "sort_direction") -> str:
    """Validate asc/desc (default desc)."""
    if not value:
        return SortDirection.DESC.value
    direction = value.strip().lower()
    try:
        return SortDirection(direction).value
    except ValueError:
        raise ValidationError(field, "Must be 'asc' or 'desc'", value)


def validate_window(value: Optional[int], field: str = "window", default: int = 1) -> int:
    """Validate a trailing window length (1 to MAX_WINDOW months)."""
    if value is None:
        return default
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValidationError(field, "Must be an integer", value)
    if value < 1:
        raise ValidationError(field, "Must be at least 1", value)
    if value > MAX_WINDOW:
        raise ValidationError(field, f"Cannot exceed {MAX_WINDOW}", value)
    return value


def validate_name(value: Optional[str], field: str) -> Optional[str]:
    """
    Validate a free-text dimension value (region, platform, store).

    Returns the stripped value, or None when empty.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(field, "Must be a string", value)
    value = value.strip()
    if not value:
        return None
    if len(value) > MAX_NAME_LENGTH:
        raise ValidationError(field, f"Too long (max {MAX_NAME_LENGTH} characters)", len(value))
    return value


def validate_region(value: Optional[str], field: str = "region", required: bool = False) -> Optional[str]:
    """Validate a region code; regions are upper-cased."""
    region = validate_name(value, field)
    if region is None:
        if required:
            raise ValidationError(field, "Region is required")
        return None
    return region.upper()


def validate_choice(
    value: Optional[str],
    choices: Sequence[str],
    field: str,
    default: Optional[str] = None,
) -> str:
    """Validate a value against a fixed set of names (case-insensitive)."""
    if not value:
        if default is None:
            raise ValidationError(field, "Value is required")
        return default
    choice = value.strip().lower()
    if choice not in choices:
        raise ValidationError(field, f"Must be one of: {', '.join(choices)}", value)
    return choice
