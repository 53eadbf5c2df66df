"""
Logging, correlation IDs and in-process metrics for salesboard.

Timings are grouped by where they come from, so /api/metrics can show
whether a slow response was spent in the feed or in the engine:

- ``route``: one sample per HTTP request, recorded by the web middleware
- ``engine``: one sample per engine call (``@timed`` on the builders)
- ``feed``: feed page fetches, CSV loads and snapshot loads

Usage:
    from salesboard.observability import get_logger, timed, Timer

    logger = get_logger(__name__)

    @timed("build_comparison")
    def build_comparison(records, query): ...

    with Timer("sales_records", logger, category="feed"):
        rows = await source.fetch_table("sales_records")
"""
import asyncio
import functools
import json
import logging
import time
import uuid
from collections import deque
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Callable, Deque, Dict, Optional

# Request correlation ID, set by the web middleware and forwarded to the feed
_correlation_id: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

# Operations slower than this are logged at WARNING
SLOW_OPERATION_MS = 1000

CATEGORIES = ("route", "engine", "feed")

_RESERVED = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


def get_correlation_id() -> Optional[str]:
    return _correlation_id.get()


def set_correlation_id(correlation_id: str) -> None:
    _correlation_id.set(correlation_id)


def generate_correlation_id() -> str:
    """Short random ID for requests that arrive without X-Request-ID."""
    return uuid.uuid4().hex[:8]


# ═══════════════════════════════════════════════════════════════════════════════
# LOG FORMATTING
# ═══════════════════════════════════════════════════════════════════════════════

def _fields(record: logging.LogRecord) -> Dict[str, Any]:
    """``extra=`` fields of a record (period, region, rows, duration_ms, ...)."""
    return {k: v for k, v in vars(record).items() if k not in _RESERVED and not k.startswith("_")}


class JsonFormatter(logging.Formatter):
    """One JSON object per line, for log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": get_correlation_id(),
            **_fields(record),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """
    Console format:

        2025-10-03 09:12:44 INFO salesboard.datasource [1a2b3c4d] Fetched 120 rows table=sales_records
    """

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created, timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
        correlation_id = get_correlation_id()
        parts = [stamp, f"{record.levelname:<8}", record.name]
        if correlation_id:
            parts.append(f"[{correlation_id}]")
        parts.append(record.getMessage())
        parts.extend(f"{k}={v}" for k, v in _fields(record).items())

        line = " ".join(parts)
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(level: str = "INFO", json_format: bool = False) -> None:
    """
    Route all logging through one stderr handler.

    httpx and uvicorn's access log are held at WARNING; the request
    middleware already logs every call with its correlation ID.
    """
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter() if json_format else TextFormatter())

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level.upper())

    for noisy in ("httpx", "httpcore", "uvicorn.access"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


# ═══════════════════════════════════════════════════════════════════════════════
# METRICS
# ═══════════════════════════════════════════════════════════════════════════════

def _summarize(samples: Deque[float]) -> Dict[str, float]:
    ordered = sorted(samples)
    return {
        "count": len(ordered),
        "avg_ms": round(sum(ordered) / len(ordered), 2),
        "min_ms": round(ordered[0], 2),
        "max_ms": round(ordered[-1], 2),
        "p50_ms": round(ordered[len(ordered) // 2], 2),
        "p95_ms": round(ordered[min(len(ordered) - 1, int(len(ordered) * 0.95))], 2),
    }


class DashboardMetrics:
    """
    Request counts, error counts, timing samples and snapshot freshness.

    Timing samples are bounded per operation; counters are not.
    """

    def __init__(self, max_samples: int = 200):
        self._max_samples = max_samples
        self.reset()

    def reset(self) -> None:
        self._requests: Dict[str, int] = {}
        self._errors: Dict[str, int] = {}
        self._timings: Dict[str, Dict[str, Deque[float]]] = {c: {} for c in CATEGORIES}
        self._snapshot_loads = 0
        self._snapshot_failures = 0
        self._snapshot_fetched_at: Optional[datetime] = None

    def record_timing(self, category: str, operation: str, duration_ms: float) -> None:
        if category not in self._timings:
            raise ValueError(f"Unknown timing category {category!r}; expected one of {CATEGORIES}")
        samples = self._timings[category].get(operation)
        if samples is None:
            samples = self._timings[category][operation] = deque(maxlen=self._max_samples)
        samples.append(duration_ms)

    def record_request(self, route: str, status_code: int, duration_ms: float) -> None:
        """Count a finished request; 4xx/5xx also count as ``HTTP_<status>`` errors."""
        self._requests[route] = self._requests.get(route, 0) + 1
        self.record_timing("route", route, duration_ms)
        if status_code >= 400:
            self.record_error(f"HTTP_{status_code}")

    def record_error(self, kind: str) -> None:
        self._errors[kind] = self._errors.get(kind, 0) + 1

    def record_snapshot_loaded(self, fetched_at: datetime) -> None:
        self._snapshot_loads += 1
        self._snapshot_fetched_at = fetched_at

    def record_snapshot_failed(self) -> None:
        self._snapshot_failures += 1

    def snapshot_age_seconds(self, now: Optional[datetime] = None) -> Optional[int]:
        if self._snapshot_fetched_at is None:
            return None
        now = now or datetime.now(timezone.utc)
        return int((now - self._snapshot_fetched_at).total_seconds())

    def get_stats(self) -> Dict[str, Any]:
        return {
            "requests": dict(self._requests),
            "errors": dict(self._errors),
            "timing": {
                category: {op: _summarize(s) for op, s in ops.items() if s}
                for category, ops in self._timings.items()
            },
            "snapshot": {
                "loads": self._snapshot_loads,
                "failures": self._snapshot_failures,
                "fetched_at": self._snapshot_fetched_at.isoformat() if self._snapshot_fetched_at else None,
                "age_seconds": self.snapshot_age_seconds(),
            },
        }


metrics = DashboardMetrics()


# ═══════════════════════════════════════════════════════════════════════════════
# TIMING
# ═══════════════════════════════════════════════════════════════════════════════

class Timer:
    """
    Time a block and record it under ``category``.

    Usage:
        with Timer("snapshot_load", logger) as t:
            snapshot = await fetch_snapshot()
        t.elapsed_ms
    """

    def __init__(self, name: str, logger: Optional[logging.Logger] = None, category: str = "feed"):
        self.name = name
        self.logger = logger
        self.category = category
        self.elapsed_ms: float = 0
        self._start: float = 0

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.elapsed_ms = (time.perf_counter() - self._start) * 1000
        metrics.record_timing(self.category, self.name, self.elapsed_ms)
        if self.logger is not None:
            slow = self.elapsed_ms > SLOW_OPERATION_MS
            self.logger.log(
                logging.WARNING if slow else logging.DEBUG,
                f"{self.name} {'failed' if exc_type else 'completed'}",
                extra={"duration_ms": round(self.elapsed_ms, 2), "category": self.category},
            )


def timed(name: Optional[str] = None, category: str = "engine"):
    """Decorator form of Timer, for plain and async functions."""
    def decorator(func: Callable) -> Callable:
        operation = name or func.__name__
        func_logger = get_logger(func.__module__)

        if asyncio.iscoroutinefunction(func):
            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                with Timer(operation, func_logger, category):
                    return await func(*args, **kwargs)
            return async_wrapper

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            with Timer(operation, func_logger, category):
                return func(*args, **kwargs)
        return wrapper

    return decorator
