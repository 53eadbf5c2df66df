#!/usr/bin/env python3
"""
Print a breakdown table from the configured feed or a CSV export.

Useful for checking dashboard numbers against the raw feed.

Usage:
    python scripts/breakdown_report.py --period 2025-10 --group-by platform
    python scripts/breakdown_report.py --csv sales.csv --region BC --group-by store --metric aov
"""
import asyncio
import argparse
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from salesboard.comparison import ComparisonQuery, build_comparison
from salesboard.datasource import fetch_snapshot, load_snapshot_csv
from salesboard.exceptions import SalesboardError, ValidationError
from salesboard.observability import get_logger, setup_logging
from salesboard.validators import (
    validate_group_by,
    validate_metric,
    validate_period,
    validate_region,
    validate_window,
)

setup_logging(level="INFO")
logger = get_logger(__name__)


def _fmt(value, pct: bool = False) -> str:
    if value is None:
        return "-"
    if pct:
        return f"{value * 100:+.1f}%"
    return f"{value:,.2f}"


def print_table(result) -> None:
    print(f"Period: {result.current_period}  vs {result.previous_period}  (YoY {result.yoy_period})")
    print(f"{'name':<32} {'current':>14} {'previous':>14} {'mom':>9} {'yoy':>9} {'share':>8}")
    for row in result.rows:
        print(
            f"{row.name[:32]:<32} {_fmt(row.current):>14} {_fmt(row.previous):>14} "
            f"{_fmt(row.mom, True):>9} {_fmt(row.yoy, True):>9} {_fmt(row.share, True):>8}"
        )
    total = result.total
    print(
        f"{'TOTAL':<32} {_fmt(total.current):>14} {_fmt(total.previous):>14} "
        f"{_fmt(total.mom, True):>9} {_fmt(total.yoy, True):>9}"
    )


async def main(args) -> int:
    try:
        query = ComparisonQuery(
            selected_period=validate_period(args.period),
            filters={"region": validate_region(args.region)} if args.region else {},
            group_by=validate_group_by(args.group_by),
            metric=validate_metric(args.metric),
            window=validate_window(args.window),
        )
        snapshot = load_snapshot_csv(args.csv) if args.csv else await fetch_snapshot()
    except (SalesboardError, ValidationError) as e:
        logger.error(f"Report failed: {e}")
        return 1

    result = build_comparison(snapshot.sales, query)
    if not result.selection.is_resolved:
        logger.error(f"Period {args.period} is not in the feed")
        return 1

    print_table(result)
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Print a sales breakdown table")
    parser.add_argument("--period", help="Month (YYYY-MM), default latest")
    parser.add_argument("--group-by", default="platform", help="Comma-separated dimensions")
    parser.add_argument("--metric", default="revenue", help="revenue, orders or aov")
    parser.add_argument("--region", help="Filter by region")
    parser.add_argument("--window", type=int, default=1, help="Trailing months (default: 1)")
    parser.add_argument("--csv", help="Read sales from a CSV export instead of the feed")
    args = parser.parse_args()

    sys.exit(asyncio.run(main(args)))
