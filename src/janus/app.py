"""
Janus application wiring and startup.

Startup sequence:
1. Load settings and set up logging
2. Log the run banner (mode, price, sizing, assets)
3. Establish the trading session (fatal in live mode)
4. Resolve the initial markets and log their token ids
5. Hand over to the dispatcher loop
"""
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from janus import __version__
from janus.core.clock import PeriodClock
from janus.core.config import ConfigManager
from janus.core.errors import AuthenticationError, ConfigurationError
from janus.core.logging import get_logger, setup_logging
from janus.core.settings import BotSettings
from janus.domain.order import ExecutionMode
from janus.integrations.polymarket.clob import CLOBClient
from janus.integrations.polymarket.gamma import GammaClient
from janus.services.dispatcher import Dispatcher
from janus.services.executor import OrderExecutor
from janus.services.ledger import PositionLedger
from janus.services.market_resolver import MarketResolver
from janus.services.metrics import MetricsEmitter
from janus.services.simulation import SimulatedFillTracker
from janus.services.snapshot import SnapshotBuilder


class JanusApp:
    """Main Janus application.

    Owns the external clients and wires the services around them.

    Usage:
        app = JanusApp(ConfigManager(Path("config/default.toml")))
        await app.run()
    """

    def __init__(
        self,
        config: Optional[ConfigManager] = None,
        clock: Optional[PeriodClock] = None,
    ) -> None:
        """Initialize the application.

        Args:
            config: Configuration manager; defaults to config/default.toml
            clock: Period clock; wall clock by default

        Raises:
            ConfigurationError: If the configuration is invalid.
        """
        if config is None:
            load_dotenv()
            config_path = Path("config/default.toml")
            config = ConfigManager(config_path if config_path.exists() else None)

        self._config = config
        self._settings = BotSettings.from_config(config)

        setup_logging(
            level=self._settings.log_level,
            json_output=self._settings.log_json,
            log_file=self._settings.log_file,
        )
        self._log = get_logger(__name__)

        self._clock = clock or PeriodClock()
        self._metrics = MetricsEmitter()
        trading = self._settings.trading

        self._gamma = GammaClient(
            self._settings.polymarket,
            timeout=trading.request_timeout_seconds,
        )
        self._clob = CLOBClient(
            self._settings.polymarket,
            timeout=trading.request_timeout_seconds,
            order_timeout=trading.order_timeout_seconds,
        )

        self._ledger = PositionLedger()
        self._mode = ExecutionMode.SIMULATED if self._settings.simulation else ExecutionMode.LIVE
        self._executor = OrderExecutor(
            mode=self._mode,
            ledger=self._ledger,
            fixed_trade_amount=trading.fixed_trade_amount,
            gateway=self._clob,
            private_key_configured=self._settings.polymarket.has_private_key,
            metrics=self._metrics,
        )
        fill_tracker = None
        if self._mode == ExecutionMode.SIMULATED:
            fill_tracker = SimulatedFillTracker(self._clob, self._ledger, metrics=self._metrics)
        self._dispatcher = Dispatcher(
            resolver=MarketResolver(self._gamma, clock=self._clock, metrics=self._metrics),
            snapshot_builder=SnapshotBuilder(self._clob, clock=self._clock, metrics=self._metrics),
            executor=self._executor,
            ledger=self._ledger,
            assets=self._settings.assets,
            trading=trading,
            clock=self._clock,
            metrics=self._metrics,
            fill_tracker=fill_tracker,
        )

    @property
    def settings(self) -> BotSettings:
        return self._settings

    @property
    def mode(self) -> ExecutionMode:
        return self._mode

    @property
    def ledger(self) -> PositionLedger:
        return self._ledger

    @property
    def metrics(self) -> MetricsEmitter:
        return self._metrics

    @property
    def dispatcher(self) -> Dispatcher:
        return self._dispatcher

    def _log_banner(self) -> None:
        trading = self._settings.trading
        if trading.shares is not None:
            sizing = f"{trading.shares} shares per order"
        else:
            sizing = f"${trading.fixed_trade_amount} per order"
        self._log.info(
            "janus_starting",
            version=__version__,
            mode=self._mode.value,
            limit_price=str(trading.limit_price),
            sizing=sizing,
            assets=self._settings.enabled_assets,
            dispatch_window_seconds=trading.dispatch_window_seconds,
        )

    async def authenticate(self) -> None:
        """Establish the trading session according to the execution mode.

        Raises:
            ConfigurationError: Live mode without a private key.
            AuthenticationError: Live mode and the venue refused the session.
        """
        has_key = self._settings.polymarket.has_private_key

        if self._mode == ExecutionMode.LIVE:
            if not has_key:
                raise ConfigurationError("polymarket.private_key is required for live trading")
            await self._clob.authenticate()
            return

        if not has_key:
            self._log.info("simulation_without_credentials")
            return

        try:
            await self._clob.authenticate()
        except AuthenticationError as e:
            self._log.warning("simulation_authentication_failed", error=str(e))

    async def start(self) -> None:
        """Connect clients, authenticate and resolve the first markets."""
        self._log_banner()

        if self._settings.metrics_port > 0:
            self._metrics.serve(self._settings.metrics_port)
            self._log.info("metrics_server_started", port=self._settings.metrics_port)

        await self._gamma.connect()
        await self._clob.connect()
        await self.authenticate()

        markets = await self._dispatcher.refresh_markets()
        for asset in self._settings.enabled_assets:
            market = markets[asset]
            up, down = market.up_token, market.down_token
            self._log.info(
                "market_found",
                asset=asset,
                slug=market.slug,
                up_token=up.token_id if up else None,
                down_token=down.token_id if down else None,
                placeholder=market.is_placeholder,
            )
        self._log.info(
            "waiting_for_next_period",
            seconds=int(self._clock.remaining()),
            next_period=self._clock.next_period_start(),
        )

    async def close(self) -> None:
        await self._gamma.close()
        await self._clob.close()

    async def run(self) -> None:
        """Start and run the dispatcher until the process is terminated."""
        try:
            await self.start()
            await self._dispatcher.run()
        finally:
            await self.close()
