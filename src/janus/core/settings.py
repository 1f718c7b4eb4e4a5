"""
Typed settings for the bot, built from a ConfigManager.

Sections:
    [janus]          log_level, log_json, log_file, simulation
    [polymarket]     credentials and endpoints
    [trading]        prices, sizing, timing
    [assets.<name>]  enabled, prefixes, include_previous
    [metrics]        port
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from janus.core.config import ConfigManager
from janus.core.errors import ConfigurationError
from janus.integrations.polymarket.types import PolymarketSettings

DEFAULT_LIMIT_PRICE = Decimal("0.45")
DEFAULT_FIXED_TRADE_AMOUNT = Decimal("1")
DEFAULT_POLL_INTERVAL_MS = 1000
DEFAULT_DISPATCH_WINDOW_SECONDS = 2.0
DEFAULT_REQUEST_TIMEOUT_SECONDS = 0.8
DEFAULT_ORDER_TIMEOUT_SECONDS = 5.0
DEFAULT_REDISCOVERY_INTERVAL_SECONDS = 5.0


@dataclass(frozen=True)
class AssetSpec:
    """How to find one asset's market each period."""
    name: str
    enabled: bool
    prefixes: tuple[str, ...]
    include_previous: bool = False


DEFAULT_ASSETS: tuple[AssetSpec, ...] = (
    AssetSpec("BTC", True, ("btc",), include_previous=True),
    AssetSpec("ETH", False, ("eth",), include_previous=True),
    AssetSpec("SOL", False, ("solana", "sol"), include_previous=False),
    AssetSpec("XRP", False, ("xrp",), include_previous=False),
)


@dataclass(frozen=True)
class TradingSettings:
    """Order sizing and loop timing."""
    limit_price: Decimal = DEFAULT_LIMIT_PRICE
    fixed_trade_amount: Decimal = DEFAULT_FIXED_TRADE_AMOUNT
    shares: Optional[Decimal] = None
    poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS
    dispatch_window_seconds: float = DEFAULT_DISPATCH_WINDOW_SECONDS
    request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS
    order_timeout_seconds: float = DEFAULT_ORDER_TIMEOUT_SECONDS
    rediscovery_interval_seconds: float = DEFAULT_REDISCOVERY_INTERVAL_SECONDS

    def validate(self) -> None:
        if not Decimal("0") < self.limit_price < Decimal("1"):
            raise ConfigurationError(f"trading.limit_price must be in (0, 1), got {self.limit_price}")
        if self.fixed_trade_amount <= 0:
            raise ConfigurationError("trading.fixed_trade_amount must be positive")
        if self.shares is not None and self.shares <= 0:
            raise ConfigurationError("trading.shares must be positive when set")
        if self.poll_interval_ms <= 0:
            raise ConfigurationError("trading.poll_interval_ms must be positive")
        if self.dispatch_window_seconds < 0:
            raise ConfigurationError("trading.dispatch_window_seconds must not be negative")


@dataclass(frozen=True)
class BotSettings:
    """Everything the app needs to wire a run."""
    simulation: bool = True
    log_level: str = "INFO"
    log_json: bool = False
    log_file: Optional[str] = None
    metrics_port: int = 0
    polymarket: PolymarketSettings = field(default_factory=PolymarketSettings)
    trading: TradingSettings = field(default_factory=TradingSettings)
    assets: tuple[AssetSpec, ...] = DEFAULT_ASSETS

    @property
    def enabled_assets(self) -> list[str]:
        return [a.name for a in self.assets if a.enabled]

    @classmethod
    def from_config(cls, config: ConfigManager) -> "BotSettings":
        """Build and validate settings.

        Raises:
            ConfigurationError: If a value is out of range or unparseable.
        """
        try:
            polymarket = PolymarketSettings(
                private_key=config.get_str("polymarket.private_key"),
                proxy_wallet=config.get_str("polymarket.proxy_wallet") or None,
                signature_type=config.get_int("polymarket.signature_type", 0),
                api_key=config.get_str("polymarket.api_key"),
                api_secret=config.get_str("polymarket.api_secret"),
                api_passphrase=config.get_str("polymarket.api_passphrase"),
                clob_url=config.get_str("polymarket.clob_url", PolymarketSettings.clob_url),
                gamma_url=config.get_str("polymarket.gamma_url", PolymarketSettings.gamma_url),
                http_proxy=config.get_str("polymarket.http_proxy") or None,
            )
            trading = TradingSettings(
                limit_price=config.get_decimal("trading.limit_price", DEFAULT_LIMIT_PRICE),
                fixed_trade_amount=config.get_decimal(
                    "trading.fixed_trade_amount", DEFAULT_FIXED_TRADE_AMOUNT
                ),
                shares=config.get_decimal("trading.shares", None),
                poll_interval_ms=config.get_int("trading.poll_interval_ms", DEFAULT_POLL_INTERVAL_MS),
                dispatch_window_seconds=config.get_float(
                    "trading.dispatch_window_seconds", DEFAULT_DISPATCH_WINDOW_SECONDS
                ),
                request_timeout_seconds=config.get_float(
                    "trading.request_timeout_seconds", DEFAULT_REQUEST_TIMEOUT_SECONDS
                ),
                order_timeout_seconds=config.get_float(
                    "trading.order_timeout_seconds", DEFAULT_ORDER_TIMEOUT_SECONDS
                ),
                rediscovery_interval_seconds=config.get_float(
                    "trading.rediscovery_interval_seconds", DEFAULT_REDISCOVERY_INTERVAL_SECONDS
                ),
            )
            settings = cls(
                simulation=config.get_bool("janus.simulation", True),
                log_level=config.get_str("janus.log_level", "INFO"),
                log_json=config.get_bool("janus.log_json", False),
                log_file=config.get_str("janus.log_file") or None,
                metrics_port=config.get_int("metrics.port", 0),
                polymarket=polymarket,
                trading=trading,
                assets=_load_assets(config),
            )
        except (ValueError, ArithmeticError) as e:
            raise ConfigurationError("Invalid configuration value", cause=e) from e

        settings.trading.validate()
        return settings


def _load_assets(config: ConfigManager) -> tuple[AssetSpec, ...]:
    """Merge [assets.*] tables over the defaults, keeping default order first."""
    specs: list[AssetSpec] = []
    seen: set[str] = set()
    configured = config.get_section("assets")

    names = [a.name.lower() for a in DEFAULT_ASSETS]
    names += [n.lower() for n in configured if n.lower() not in names]

    defaults = {a.name.lower(): a for a in DEFAULT_ASSETS}
    for name in names:
        if name in seen:
            continue
        seen.add(name)
        base = defaults.get(name, AssetSpec(name.upper(), False, (name,)))
        prefixes = tuple(config.get_list(f"assets.{name}.prefixes", list(base.prefixes)))
        if not prefixes:
            raise ConfigurationError(f"assets.{name}.prefixes must not be empty")
        specs.append(
            AssetSpec(
                name=base.name,
                enabled=config.get_bool(f"assets.{name}.enabled", base.enabled),
                prefixes=prefixes,
                include_previous=config.get_bool(
                    f"assets.{name}.include_previous", base.include_previous
                ),
            )
        )
    return tuple(specs)
