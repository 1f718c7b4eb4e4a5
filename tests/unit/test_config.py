"""
Unit tests for ConfigManager.

Tests verify:
- TOML loading
- Environment variable overrides
- Command-line overrides
- Type-specific getters
"""
from decimal import Decimal

import pytest

from janus.core.config import ConfigManager

SAMPLE_TOML = """
[janus]
log_level = "DEBUG"
simulation = true

[trading]
limit_price = "0.45"
poll_interval_ms = 500
dispatch_window_seconds = 1.5

[assets.sol]
prefixes = ["solana", "sol"]
"""


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "janus.toml"
    path.write_text(SAMPLE_TOML)
    return path


class TestConfigBasics:
    """Tests for basic ConfigManager functionality."""

    def test_empty_config(self):
        """Verify ConfigManager works without a config file."""
        config = ConfigManager()
        assert config.get("any.key") is None
        assert config.get("any.key", "default") == "default"
        assert config.raw_data == {}

    def test_missing_file_is_ignored(self, tmp_path):
        config = ConfigManager(tmp_path / "nope.toml")
        assert config.get("janus.log_level") is None

    def test_load_toml_file(self, config_file):
        config = ConfigManager(config_file)
        assert config.get("janus.log_level") == "DEBUG"
        assert config.get("trading.poll_interval_ms") == 500
        assert config.get_list("assets.sol.prefixes") == ["solana", "sol"]
        assert config.config_path == config_file

    def test_get_section(self, config_file):
        config = ConfigManager(config_file)
        assert config.get_section("assets") == {"sol": {"prefixes": ["solana", "sol"]}}
        assert config.get_section("missing") == {}


class TestTypedGetters:
    """Tests for typed getters."""

    def test_get_decimal(self, config_file):
        config = ConfigManager(config_file)
        assert config.get_decimal("trading.limit_price") == Decimal("0.45")
        assert config.get_decimal("trading.missing", None) is None
        assert config.get_decimal("trading.missing", Decimal("1")) == Decimal("1")

    def test_get_float_and_int(self, config_file):
        config = ConfigManager(config_file)
        assert config.get_float("trading.dispatch_window_seconds") == 1.5
        assert config.get_int("trading.poll_interval_ms") == 500
        assert config.get_int("trading.missing", 7) == 7

    def test_get_bool(self, config_file):
        config = ConfigManager(config_file)
        assert config.get_bool("janus.simulation") is True
        assert config.get_bool("janus.missing", default=True) is True

    def test_get_str_maps_empty_to_default(self):
        config = ConfigManager()
        config.set("polymarket.private_key", "")
        assert config.get_str("polymarket.private_key", "fallback") == "fallback"

    def test_get_list_splits_strings(self):
        config = ConfigManager()
        config.set("assets.sol.prefixes", "solana, sol")
        assert config.get_list("assets.sol.prefixes") == ["solana", "sol"]


class TestOverrides:
    """Tests for environment and command-line overrides."""

    def test_env_overrides_toml(self, config_file, monkeypatch):
        monkeypatch.setenv("JANUS_JANUS_LOG_LEVEL", "WARNING")
        monkeypatch.setenv("JANUS_TRADING_POLL_INTERVAL_MS", "250")
        config = ConfigManager(config_file)
        assert config.get("janus.log_level") == "WARNING"
        assert config.get("trading.poll_interval_ms") == 250

    def test_env_value_parsing(self, monkeypatch):
        monkeypatch.setenv("JANUS_JANUS_SIMULATION", "off")
        monkeypatch.setenv("JANUS_TRADING_LIMIT_PRICE", "0.4")
        monkeypatch.setenv("JANUS_ASSETS_XRP_PREFIXES", "xrp,ripple")
        config = ConfigManager()
        assert config.get_bool("janus.simulation") is False
        assert config.get_decimal("trading.limit_price") == Decimal("0.4")
        assert config.get_list("assets.xrp.prefixes") == ["xrp", "ripple"]

    def test_custom_env_prefix(self, monkeypatch):
        monkeypatch.setenv("BOT_JANUS_LOG_LEVEL", "ERROR")
        config = ConfigManager(env_prefix="BOT_")
        assert config.get("janus.log_level") == "ERROR"

    def test_set_wins_over_env_and_toml(self, config_file, monkeypatch):
        monkeypatch.setenv("JANUS_JANUS_SIMULATION", "true")
        config = ConfigManager(config_file)
        config.set("janus.simulation", False)
        assert config.get_bool("janus.simulation") is False
