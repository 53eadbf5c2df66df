"""
Result ranker: sort comparison rows by any field.

Rules:
- Strings use locale-aware collation, numbers compare numerically.
- Missing values (None, NaN) always go last, in both directions.
- Sorting is stable: equal keys keep their input order unless an
  explicit secondary key is given.
"""
import functools
import locale
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional, Sequence, Tuple, Union

from salesboard.models import ComparisonRow, field_value


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"

    def toggled(self) -> "SortDirection":
        return SortDirection.ASC if self is SortDirection.DESC else SortDirection.DESC


SortKey = Union[str, Callable[[Any], Any]]


def toggle(direction: Union[str, SortDirection]) -> SortDirection:
    """Flip asc <-> desc."""
    return SortDirection(direction).toggled()


@functools.lru_cache(maxsize=4096)
def collation_key(text: str) -> Tuple[str, str]:
    """
    Locale-aware sort key for a string.

    Uses the process locale via strxfrm; falls back to case-folded text
    when the locale cannot transform the string.
    """
    try:
        primary = locale.strxfrm(text.casefold())
    except (ValueError, OSError):
        primary = text.casefold()
    return primary, text


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, float) and math.isnan(value)


def _value(row: Any, key: SortKey) -> Any:
    if callable(key):
        return key(row)
    if isinstance(row, ComparisonRow):
        return row.get(key)
    return field_value(row, key)


def _order_key(value: Any) -> Tuple[int, Any]:
    # Numbers before strings if a column ever mixes them
    if isinstance(value, str):
        return 1, collation_key(value)
    if isinstance(value, bool):
        return 0, int(value)
    return 0, value


def sort_rows(
    rows: Sequence[Any],
    key: SortKey,
    direction: Union[str, SortDirection] = SortDirection.DESC,
    secondary: Optional[SortKey] = None,
) -> List[Any]:
    """
    Return a new list of rows sorted by ``key``.

    Args:
        rows: ComparisonRows, dataclass rows or dicts
        key: Field name (row field, dimension label or extra) or a callable
        direction: "asc" or "desc"
        secondary: Optional tie-break key, always ascending

    Returns:
        Sorted copy; rows whose key is missing are appended last in
        input order.
    """
    direction = SortDirection(direction)
    ordered = list(rows)

    if secondary is not None:
        ordered.sort(key=lambda r: _order_key(_tie_value(r, secondary)))

    present = [r for r in ordered if not _is_missing(_value(r, key))]
    missing = [r for r in ordered if _is_missing(_value(r, key))]

    present.sort(
        key=lambda r: _order_key(_value(r, key)),
        reverse=direction is SortDirection.DESC,
    )
    return present + missing


def _tie_value(row: Any, key: SortKey) -> Any:
    value = _value(row, key)
    return "" if _is_missing(value) else value


@dataclass(frozen=True)
class SortState:
    """
    Column-header sort selection.

    Clicking the active column flips the direction; clicking another
    column selects it with the default direction.
    """
    key: str = "current"
    direction: SortDirection = SortDirection.DESC

    def click(self, key: str, default: SortDirection = SortDirection.DESC) -> "SortState":
        if key == self.key:
            return SortState(key, self.direction.toggled())
        return SortState(key, default)

    def apply(self, rows: Sequence[Any], secondary: Optional[SortKey] = None) -> List[Any]:
        return sort_rows(rows, self.key, self.direction, secondary=secondary)
