"""
salesboard: regional sales and advertising analytics engine.

This package holds the engine and the shared pieces around it:
- periods / aggregation / ratios / deltas / ranking: the comparison core
- comparison / matrix / heatmap / ads: dashboard views built on the core
- datasource: Supabase REST and CSV feed loaders
- exceptions, validators, config, observability
"""

from salesboard.exceptions import (
    SalesboardError,
    DataFetchError,
    FeedSchemaError,
    ValidationError,
    ConfigurationError,
)

from salesboard.models import (
    SalesRecord,
    AdMetricRecord,
    RecordSnapshot,
    Bucket,
    Kpi,
    ComparisonRow,
)

from salesboard.periods import PeriodIndex, PeriodSelection
from salesboard.aggregation import aggregate, aggregate_series, by_fields, where
from salesboard.ratios import aov, roas, sales_from_roas, daily_spend
from salesboard.deltas import delta, compare
from salesboard.ranking import sort_rows, SortDirection
from salesboard.comparison import ComparisonQuery, ComparisonResult, build_comparison, summary_kpis

__all__ = [
    # Exceptions
    "SalesboardError",
    "DataFetchError",
    "FeedSchemaError",
    "ValidationError",
    "ConfigurationError",
    # Models
    "SalesRecord",
    "AdMetricRecord",
    "RecordSnapshot",
    "Bucket",
    "Kpi",
    "ComparisonRow",
    # Engine
    "PeriodIndex",
    "PeriodSelection",
    "aggregate",
    "aggregate_series",
    "by_fields",
    "where",
    "aov",
    "roas",
    "sales_from_roas",
    "daily_spend",
    "delta",
    "compare",
    "sort_rows",
    "SortDirection",
    "ComparisonQuery",
    "ComparisonResult",
    "build_comparison",
    "summary_kpis",
]
