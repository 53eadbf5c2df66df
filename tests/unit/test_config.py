"""
Tests for salesboard.config module.
"""
import dataclasses

import pytest

from salesboard import config as config_module
from salesboard.config import (
    AppConfig,
    DataSourceConfig,
    EngineConfig,
    validate_config,
)
from salesboard.exceptions import ConfigurationError


class TestDefaults:
    """Tests for configuration defaults."""

    def test_engine_offsets(self):
        """MoM is one period back, YoY twelve."""
        engine = EngineConfig()
        assert engine.mom_offset == 1
        assert engine.yoy_offset == 12
        assert engine.summary_window == 3

    def test_known_values(self):
        """Known regions, platforms and dimensions."""
        engine = EngineConfig()
        assert engine.regions == ["BC", "ON", "CA"]
        assert "Uber" in engine.platforms
        assert engine.dimensions == ["region", "platform", "store"]

    def test_frozen(self):
        """Config objects are immutable."""
        with pytest.raises(dataclasses.FrozenInstanceError):
            EngineConfig().mom_offset = 2

    def test_datasource_from_env(self, monkeypatch):
        """Feed settings are read from the environment."""
        monkeypatch.setenv("SUPABASE_URL", "https://example.supabase.co")
        monkeypatch.setenv("SALES_TABLE", "sales_v2")
        monkeypatch.setenv("FEED_PAGE_SIZE", "250")
        source = DataSourceConfig()
        assert source.url == "https://example.supabase.co"
        assert source.sales_table == "sales_v2"
        assert source.page_size == 250

    def test_bad_page_size_uses_default(self, monkeypatch):
        """A non-numeric page size falls back to the default."""
        monkeypatch.setenv("FEED_PAGE_SIZE", "lots")
        assert DataSourceConfig().page_size == 1000

    def test_use_csv(self, monkeypatch):
        """A sales CSV path switches to offline mode."""
        monkeypatch.setenv("SALES_CSV", "/tmp/sales.csv")
        assert DataSourceConfig().use_csv
        monkeypatch.delenv("SALES_CSV")
        assert not DataSourceConfig().use_csv


class TestValidateConfig:
    """Tests for validate_config function."""

    def _install(self, monkeypatch, **source):
        monkeypatch.setattr(config_module, "config", AppConfig(datasource=DataSourceConfig(**source)))

    def test_missing_credentials(self, monkeypatch):
        """REST mode needs URL and key."""
        self._install(monkeypatch, url="", key="", sales_csv=None)
        with pytest.raises(ConfigurationError) as exc_info:
            validate_config()
        assert "SUPABASE_URL" in str(exc_info.value)
        assert "SUPABASE_KEY" in str(exc_info.value)

    def test_feed_not_required(self, monkeypatch):
        """Credentials can be skipped."""
        self._install(monkeypatch, url="", key="", sales_csv=None)
        validate_config(require_feed=False)

    def test_invalid_url(self, monkeypatch):
        """The URL must be http(s)."""
        self._install(monkeypatch, url="example.supabase.co", key="k", sales_csv=None)
        with pytest.raises(ConfigurationError) as exc_info:
            validate_config()
        assert "invalid" in str(exc_info.value)

    def test_csv_mode(self, monkeypatch, tmp_path):
        """An existing sales CSV replaces the credentials."""
        path = tmp_path / "sales.csv"
        path.write_text("month,region,revenue,orders\n")
        self._install(monkeypatch, url="", key="", sales_csv=str(path))
        validate_config()

    def test_csv_missing_file(self, monkeypatch, tmp_path):
        """A CSV path must exist."""
        self._install(monkeypatch, url="", key="", sales_csv=str(tmp_path / "nope.csv"))
        with pytest.raises(ConfigurationError):
            validate_config()

    def test_valid(self, monkeypatch):
        """Complete REST settings pass."""
        self._install(monkeypatch, url="https://example.supabase.co", key="k", sales_csv=None)
        validate_config()
