"""
Period index: the sorted list of months present in a feed.

"Current", "previous" and "year-ago" are offsets into that list rather
than calendar arithmetic, so a month missing from the feed shifts them.
Unknown targets and empty feeds resolve to empty selections, never errors.
"""
import calendar
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Iterable, List, Optional, Tuple

from salesboard.config import MOM_OFFSET, YOY_OFFSET

# "2025-10", "2025-10-01", "2025-10-01T00:00:00+00:00"
_MONTH_RE = re.compile(r"^(\d{4})-(\d{1,2})(?:-\d{1,2})?(?:[T ].*)?$")


def normalize_period(value: Any) -> str:
    """
    Canonicalise a period value to ``YYYY-MM``.

    Dates, datetimes and first-of-month ISO strings collapse to their
    month. Anything unparseable is returned stripped but otherwise
    unchanged, so it still sorts and groups as an opaque key.
    """
    if value is None:
        return ""
    if isinstance(value, (date, datetime)):
        return f"{value.year:04d}-{value.month:02d}"

    text = str(value).strip()
    match = _MONTH_RE.match(text)
    if not match:
        return text
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        return text
    return f"{year:04d}-{month:02d}"


def parse_period(period: str) -> Optional[Tuple[int, int]]:
    """Return (year, month) for a canonical period key, or None."""
    match = _MONTH_RE.match(period or "")
    if not match:
        return None
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        return None
    return year, month


def days_in_period(period: str) -> Optional[int]:
    """Calendar days in the period's month (28-31), None if unparseable."""
    parsed = parse_period(period)
    if parsed is None:
        return None
    return calendar.monthrange(*parsed)[1]


def _period_of(row: Any) -> str:
    if isinstance(row, dict):
        return row.get("period") or ""
    return getattr(row, "period", "") or ""


@dataclass(frozen=True)
class PeriodSelection:
    """Resolved period keys and period sets for one query."""
    requested: Optional[str]
    current: Optional[str] = None
    previous: Optional[str] = None
    year_ago: Optional[str] = None
    current_periods: Tuple[str, ...] = ()
    previous_periods: Tuple[str, ...] = ()
    year_ago_periods: Tuple[str, ...] = ()

    @property
    def is_resolved(self) -> bool:
        """False when the requested period is not in the index."""
        return self.current is not None

    def to_dict(self) -> dict:
        return {
            "current_period": self.current,
            "previous_period": self.previous,
            "yoy_period": self.year_ago,
            "current_periods": list(self.current_periods),
            "previous_periods": list(self.previous_periods),
            "yoy_periods": list(self.year_ago_periods),
        }


class PeriodIndex:
    """
    Sorted, de-duplicated period keys.

    Usage:
        index = PeriodIndex.from_records(snapshot.sales)
        index.previous("2025-10")     # "2025-09" when present
        index.year_ago("2025-10")     # 12 entries back, or None
        index.resolve("2025-10", window=3)
    """

    def __init__(self, periods: Iterable[str] = ()):
        self._periods: Tuple[str, ...] = tuple(sorted({p for p in periods if p}))
        self._positions = {p: i for i, p in enumerate(self._periods)}

    @classmethod
    def from_records(cls, records: Iterable[Any]) -> "PeriodIndex":
        return cls(_period_of(r) for r in records)

    @property
    def periods(self) -> List[str]:
        return list(self._periods)

    @property
    def latest(self) -> Optional[str]:
        return self._periods[-1] if self._periods else None

    def __len__(self) -> int:
        return len(self._periods)

    def __contains__(self, period: object) -> bool:
        return period in self._positions

    def __iter__(self):
        return iter(self._periods)

    def __repr__(self) -> str:
        return f"PeriodIndex({list(self._periods)!r})"

    def index_of(self, period: Optional[str]) -> Optional[int]:
        if period is None:
            return None
        return self._positions.get(period)

    def offset(self, target: Optional[str], offset: int) -> Optional[str]:
        """Period at ``index(target) + offset``, or None when out of bounds."""
        idx = self.index_of(target)
        if idx is None:
            return None
        pos = idx + offset
        if 0 <= pos < len(self._periods):
            return self._periods[pos]
        return None

    def previous(self, target: Optional[str], steps: int = MOM_OFFSET) -> Optional[str]:
        return self.offset(target, -steps)

    def year_ago(self, target: Optional[str], steps: int = YOY_OFFSET) -> Optional[str]:
        return self.offset(target, -steps)

    def window(self, target: Optional[str], size: int) -> List[str]:
        """Up to ``size`` periods ending at ``target``, oldest first."""
        idx = self.index_of(target)
        if idx is None or size <= 0:
            return []
        start = max(0, idx - size + 1)
        return list(self._periods[start:idx + 1])

    def resolve(
        self,
        target: Optional[str] = None,
        window: int = 1,
        mom_offset: int = MOM_OFFSET,
        yoy_offset: int = YOY_OFFSET,
    ) -> PeriodSelection:
        """
        Resolve current / previous / year-ago periods for a query.

        ``target`` defaults to the latest period. With ``window > 1`` the
        current set is the trailing window, the previous set is the window
        of the same length right before it, and the year-ago set is the
        window ending ``yoy_offset`` periods back. A baseline window that
        runs off the start of the feed is dropped rather than summed short.
        """
        requested = normalize_period(target) if target else self.latest
        if requested not in self:
            return PeriodSelection(requested=requested)

        size = max(window, 1)
        step = size * mom_offset
        previous, previous_periods = self._full_window(self.offset(requested, -step), size)
        year_ago, year_ago_periods = self._full_window(self.offset(requested, -yoy_offset), size)

        return PeriodSelection(
            requested=requested,
            current=requested,
            previous=previous,
            year_ago=year_ago,
            current_periods=tuple(self.window(requested, size)),
            previous_periods=previous_periods,
            year_ago_periods=year_ago_periods,
        )

    def _full_window(self, end: Optional[str], size: int) -> Tuple[Optional[str], Tuple[str, ...]]:
        periods = self.window(end, size)
        if len(periods) < size:
            return None, ()
        return end, tuple(periods)
