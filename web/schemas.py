"""
Pydantic response models for API endpoints.

Provides type-safe response models with automatic validation and documentation.
"""
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


# ═══════════════════════════════════════════════════════════════════════════════
# COMMON MODELS
# ═══════════════════════════════════════════════════════════════════════════════

class KpiResponse(BaseModel):
    """A value with its previous-period and year-ago comparison."""
    current: Optional[float] = Field(None, description="Value for the selected period")
    previous: Optional[float] = Field(None, description="Value for the previous period")
    mom: Optional[float] = Field(None, description="Month-over-month change as a fraction (0.2 = +20%)")
    yoy: Optional[float] = Field(None, description="Year-over-year change as a fraction")


class PeriodLabels(BaseModel):
    """Resolved period keys for a comparison."""
    current_period: Optional[str] = Field(None, description="Selected period (YYYY-MM)")
    previous_period: Optional[str] = Field(None, description="MoM baseline period")
    yoy_period: Optional[str] = Field(None, description="YoY baseline period")
    current_periods: List[str] = Field(default_factory=list)
    previous_periods: List[str] = Field(default_factory=list)
    yoy_periods: List[str] = Field(default_factory=list)


# ═══════════════════════════════════════════════════════════════════════════════
# HEALTH CHECK
# ═══════════════════════════════════════════════════════════════════════════════

class SnapshotStatus(BaseModel):
    """Loaded feed snapshot."""
    status: str = Field(description="loaded, empty or not_loaded")
    sales_rows: int = 0
    ad_rows: int = 0
    periods: int = 0
    latest_period: Optional[str] = None
    fetched_at: Optional[str] = Field(None, description="Load time (ISO format)")


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = Field(description="Service status: healthy or degraded")
    version: str = Field(description="Application version")
    uptime_seconds: int = Field(description="Uptime in seconds")
    correlation_id: Optional[str] = Field(None, description="Request correlation ID")
    snapshot: SnapshotStatus


# ═══════════════════════════════════════════════════════════════════════════════
# PERIODS AND SUMMARY
# ═══════════════════════════════════════════════════════════════════════════════

class PeriodsResponse(BaseModel):
    """Periods and dimension values available in the feed."""
    periods: List[str] = Field(default_factory=list, description="Sorted period keys")
    latest: Optional[str] = None
    regions: List[str] = Field(default_factory=list)
    platforms: List[str] = Field(default_factory=list)
    stores: List[str] = Field(default_factory=list)
    ad_periods: List[str] = Field(default_factory=list)


class SummaryResponse(PeriodLabels):
    """Executive summary cards."""
    revenue: KpiResponse
    orders: KpiResponse
    aov: KpiResponse


# ═══════════════════════════════════════════════════════════════════════════════
# BREAKDOWN
# ═══════════════════════════════════════════════════════════════════════════════

class BreakdownRowResponse(BaseModel):
    """One dimension key of a breakdown table."""
    name: str = Field(description="Dimension values joined with ' / '")
    region: Optional[str] = None
    platform: Optional[str] = None
    store: Optional[str] = None
    current: Optional[float] = None
    previous: Optional[float] = None
    mom: Optional[float] = None
    yoy: Optional[float] = None
    share: Optional[float] = Field(None, description="Fraction of the current total")
    revenue: Optional[float] = None
    orders: Optional[float] = None
    aov: Optional[float] = None


class BreakdownResponse(PeriodLabels):
    """Breakdown table with totals."""
    metric: str
    group_by: List[str] = Field(default_factory=list)
    rows: List[BreakdownRowResponse] = Field(default_factory=list)
    total: KpiResponse


# ═══════════════════════════════════════════════════════════════════════════════
# STORES
# ═══════════════════════════════════════════════════════════════════════════════

class MatrixRowResponse(BaseModel):
    """Store comparison row."""
    store: str
    region: str
    revenue: KpiResponse
    orders: KpiResponse
    aov: KpiResponse


class MatrixResponse(BaseModel):
    """Per-store matrix for one region and month."""
    current_period: Optional[str] = None
    previous_period: Optional[str] = None
    rows: List[MatrixRowResponse] = Field(default_factory=list)


class StoreSeriesResponse(BaseModel):
    store: str
    region: str
    values: List[float]


class TrendResponse(BaseModel):
    """Revenue per store for a trailing window."""
    periods: List[str] = Field(default_factory=list)
    series: List[StoreSeriesResponse] = Field(default_factory=list)


class RegionTrendResponse(BaseModel):
    """Total revenue of a region for a trailing window."""
    region: str
    periods: List[str] = Field(default_factory=list)
    values: List[float] = Field(default_factory=list)


# ═══════════════════════════════════════════════════════════════════════════════
# HEATMAP
# ═══════════════════════════════════════════════════════════════════════════════

class HeatmapRowResponse(BaseModel):
    key: str
    region: Optional[str] = None
    revenue: List[float] = Field(default_factory=list)
    mom: List[Optional[float]] = Field(default_factory=list)


class HeatmapResponse(BaseModel):
    """MoM grid aligned with ``periods``."""
    dimension: str
    periods: List[str] = Field(default_factory=list)
    rows: List[HeatmapRowResponse] = Field(default_factory=list)


# ═══════════════════════════════════════════════════════════════════════════════
# ADS
# ═══════════════════════════════════════════════════════════════════════════════

class AdRowResponse(BaseModel):
    """Ad metrics for one store."""
    store: str
    region: str
    spend: Optional[float] = None
    sales: Optional[float] = None
    daily_spend: Optional[float] = None
    roas: Optional[float] = None
    cost_per_order: Optional[float] = None
    spend_delta: Optional[float] = Field(None, description="Spend change vs previous month (fraction)")
    roas_delta: Optional[float] = Field(None, description="ROAS change vs previous month (fraction)")
    previous_spend: Optional[float] = None
    previous_sales: Optional[float] = None
    previous_roas: Optional[float] = None


class AdsPanelResponse(BaseModel):
    """Advertising panel for one region and month."""
    current_period: Optional[str] = None
    previous_period: Optional[str] = None
    rows: List[AdRowResponse] = Field(default_factory=list)
    totals: Dict[str, KpiResponse] = Field(default_factory=dict)


# ═══════════════════════════════════════════════════════════════════════════════
# METRICS
# ═══════════════════════════════════════════════════════════════════════════════

class TimingStats(BaseModel):
    """Timing statistics for an operation."""
    count: int
    avg_ms: float
    min_ms: float
    max_ms: float
    p50_ms: Optional[float] = None
    p95_ms: Optional[float] = None


class SnapshotMetrics(BaseModel):
    """Feed snapshot loads since process start."""
    loads: int = 0
    failures: int = 0
    fetched_at: Optional[str] = None
    age_seconds: Optional[int] = Field(None, description="Seconds since the last successful load")


class MetricsResponse(BaseModel):
    """Application metrics response."""
    uptime_seconds: int
    correlation_id: Optional[str] = None
    requests: Dict[str, int] = Field(default_factory=dict, description="Request count per route")
    errors: Dict[str, int] = Field(default_factory=dict)
    timing: Dict[str, Dict[str, TimingStats]] = Field(
        default_factory=dict,
        description="Timing per category (route, engine, feed) and operation",
    )
    snapshot: SnapshotMetrics = Field(default_factory=SnapshotMetrics)


class ReloadResponse(BaseModel):
    """Result of a snapshot reload."""
    status: str
    snapshot: SnapshotStatus
