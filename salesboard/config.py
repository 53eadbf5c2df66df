"""
Centralized configuration for salesboard.

This module provides a single source of truth for all configuration values.
Configuration is loaded from environment variables with sensible defaults.

Usage:
    from salesboard.config import config

    url = config.datasource.url
    yoy_offset = config.engine.yoy_offset
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

from salesboard.exceptions import ConfigurationError

# Load environment variables
load_dotenv()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "")
    return int(raw) if raw.strip().isdigit() else default


@dataclass(frozen=True)
class DataSourceConfig:
    """Raw record feed configuration (Supabase REST or local CSV)."""

    url: str = field(default_factory=lambda: os.getenv("SUPABASE_URL", ""))
    key: str = field(default_factory=lambda: os.getenv("SUPABASE_KEY", ""))
    sales_table: str = field(
        default_factory=lambda: os.getenv("SALES_TABLE", "sales_records")
    )
    ads_table: str = field(
        default_factory=lambda: os.getenv("ADS_TABLE", "uber_ads_metrics")
    )
    page_size: int = field(default_factory=lambda: _env_int("FEED_PAGE_SIZE", 1000))
    request_timeout: float = 30.0

    # Offline mode: load snapshot from CSV files instead of the REST feed
    sales_csv: Optional[str] = field(default_factory=lambda: os.getenv("SALES_CSV") or None)
    ads_csv: Optional[str] = field(default_factory=lambda: os.getenv("ADS_CSV") or None)

    @property
    def use_csv(self) -> bool:
        """True when a local sales CSV is configured."""
        return bool(self.sales_csv)


@dataclass(frozen=True)
class EngineConfig:
    """Period-comparison engine defaults."""

    mom_offset: int = 1
    yoy_offset: int = 12

    # Trailing months summed by the summary cards and shown by trend views
    summary_window: int = 3
    trend_window: int = 3
    heatmap_window: int = 3

    regions: List[str] = field(default_factory=lambda: ["BC", "ON", "CA"])
    platforms: List[str] = field(default_factory=lambda: ["Uber", "Fantuan", "Doordash"])

    # Dimensions the API lets callers group and filter by
    dimensions: List[str] = field(default_factory=lambda: ["region", "platform", "store"])
    metrics: List[str] = field(default_factory=lambda: ["revenue", "orders", "aov"])


@dataclass(frozen=True)
class WebConfig:
    """JSON API configuration."""

    host: str = field(default_factory=lambda: os.getenv("WEB_HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: _env_int("WEB_PORT", 8080))

    # Rate limiting
    rate_limit_per_minute: int = 60


@dataclass(frozen=True)
class AppConfig:
    """Main application configuration."""

    version: str = "0.3.0"
    datasource: DataSourceConfig = field(default_factory=DataSourceConfig)
    engine: EngineConfig = field(default_factory=EngineConfig)
    web: WebConfig = field(default_factory=WebConfig)


# Global config instance
config = AppConfig()


# ─── Convenience Exports ──────────────────────────────────────────────────────
VERSION = config.version
MOM_OFFSET = config.engine.mom_offset
YOY_OFFSET = config.engine.yoy_offset


def validate_config(require_feed: bool = True) -> None:
    """
    Validate that all required configuration is present.

    Call this on application startup to fail fast with clear error messages
    instead of cryptic runtime failures.

    Args:
        require_feed: If True, a feed (REST credentials or a CSV path) must be set

    Raises:
        ConfigurationError: If required configuration is missing
    """
    errors = []
    source = config.datasource

    if require_feed and not source.use_csv:
        if not source.url:
            errors.append("SUPABASE_URL is required but not set (or set SALES_CSV)")
        if not source.key:
            errors.append("SUPABASE_KEY is required but not set (or set SALES_CSV)")

    if source.url and not source.url.startswith(("http://", "https://")):
        errors.append("SUPABASE_URL appears to be invalid (expected http(s)://...)")

    if source.sales_csv and not os.path.exists(source.sales_csv):
        errors.append(f"SALES_CSV points to a missing file: {source.sales_csv}")

    if source.page_size <= 0:
        errors.append("FEED_PAGE_SIZE must be a positive integer")

    if errors:
        error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        raise ConfigurationError(error_msg)
