"""Dispatcher: the period-synchronized monitoring loop.

Each tick:

    refresh markets (on period change or stale assets)
        -> snapshot, alongside simulated fill checks -> period checks
        -> {idle | dispatch pass} -> sleep

A dispatch pass runs at most once per period and only inside the
dispatch window right after the period starts. A missed window is
never made up; buying deep into a period at the start-of-period
reference price is exactly what the window prevents.
"""

import asyncio
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Awaitable, Callable, Optional, Sequence

from janus.core.clock import PeriodClock
from janus.core.errors import ConfigurationError
from janus.core.logging import get_logger
from janus.core.settings import AssetSpec, TradingSettings
from janus.domain.market import Market, MarketSnapshot
from janus.services.executor import OrderExecutor
from janus.services.ledger import PositionLedger
from janus.services.market_resolver import MarketResolver
from janus.services.metrics import MetricsEmitter
from janus.services.opportunities import build_opportunities
from janus.services.simulation import SimulatedFillTracker
from janus.services.snapshot import SnapshotBuilder

log = get_logger(__name__)


class TickStatus(str, Enum):
    """What a single tick ended with."""

    PERIOD_CLOSED = "period_closed"
    WARMUP = "warmup"
    OUTSIDE_WINDOW = "outside_window"
    ALREADY_DISPATCHED = "already_dispatched"
    NO_OPPORTUNITIES = "no_opportunities"
    DISPATCHED = "dispatched"


@dataclass
class DispatcherState:
    """Loop state carried between ticks."""

    last_seen_period: Optional[int] = None
    last_dispatched_period: Optional[int] = None
    markets_period: Optional[int] = None
    last_resolution_at: Optional[float] = None


@dataclass(frozen=True)
class TickReport:
    """Outcome of one tick, for logging and tests."""

    status: TickStatus
    period_timestamp: Optional[int] = None
    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0


class Dispatcher:
    """Polls snapshots and dispatches one buy per outcome token per period."""

    def __init__(
        self,
        resolver: MarketResolver,
        snapshot_builder: SnapshotBuilder,
        executor: OrderExecutor,
        ledger: PositionLedger,
        assets: Sequence[AssetSpec],
        trading: TradingSettings,
        clock: Optional[PeriodClock] = None,
        metrics: Optional[MetricsEmitter] = None,
        fill_tracker: Optional[SimulatedFillTracker] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._resolver = resolver
        self._snapshots = snapshot_builder
        self._executor = executor
        self._ledger = ledger
        self._assets = tuple(assets)
        self._trading = trading
        self._clock = clock or PeriodClock()
        self._metrics = metrics
        self._fill_tracker = fill_tracker
        self._sleep = sleep
        self._state = DispatcherState()
        self._markets: dict[str, Market] = {
            spec.name: Market.placeholder(spec.name) for spec in self._assets
        }
        self._enabled = frozenset(spec.name for spec in self._assets if spec.enabled)
        self._log = log.bind(component="dispatcher")

    @property
    def state(self) -> DispatcherState:
        return self._state

    @property
    def markets(self) -> dict[str, Market]:
        return dict(self._markets)

    # =========================================================================
    # Market refresh
    # =========================================================================

    def _has_stale_markets(self, period_ts: int) -> bool:
        """An enabled asset holds a placeholder or last period's market."""
        return any(
            self._markets[name].period_timestamp != period_ts
            for name in self._enabled
        )

    def _needs_refresh(self, now: float) -> bool:
        period_ts = self._clock.period_start(now)
        if self._state.markets_period != period_ts:
            return True
        if not self._has_stale_markets(period_ts):
            return False
        # Retry every tick inside the dispatch window, then back off
        if self._clock.elapsed(now) <= self._trading.dispatch_window_seconds:
            return True
        last = self._state.last_resolution_at
        return last is None or now - last >= self._trading.rediscovery_interval_seconds

    async def refresh_markets(self, now: Optional[float] = None) -> dict[str, Market]:
        """Resolve every asset for the current period and swap them in."""
        now = self._clock.now() if now is None else now
        period_ts = self._clock.period_start(now)

        if self._state.markets_period != period_ts:
            self._log.info("discovering_markets", period=period_ts)

        self._markets = await self._resolver.resolve_all(self._assets, now=now)
        self._state.markets_period = period_ts
        self._state.last_resolution_at = now

        for name, market in self._markets.items():
            if name in self._enabled:
                self._log.debug(
                    "market_in_use",
                    asset=name,
                    slug=market.slug,
                    condition_id=market.condition_id,
                    placeholder=market.is_placeholder,
                )
        return self.markets

    async def _check_fills(self, period_ts: int) -> None:
        if self._fill_tracker is None:
            return
        try:
            await self._fill_tracker.check_fills(period_ts)
        except Exception as e:
            self._log.warning("fill_check_failed", period=period_ts, error=str(e))

    # =========================================================================
    # Tick
    # =========================================================================

    def _report(self, status: TickStatus, snapshot: Optional[MarketSnapshot], **counts: int) -> TickReport:
        if self._metrics:
            self._metrics.record_tick(status.value)
        return TickReport(
            status=status,
            period_timestamp=snapshot.period_timestamp if snapshot else None,
            **counts,
        )

    async def tick(self, now: Optional[float] = None) -> TickReport:
        """Run one pass of the state machine.

        Raises:
            ConfigurationError: Live execution without credentials.
        """
        now = self._clock.now() if now is None else now

        if self._needs_refresh(now):
            await self.refresh_markets(now)

        snapshot, _ = await asyncio.gather(
            self._snapshots.build(self._markets, self._enabled, now=now),
            self._check_fills(self._clock.period_start(now)),
        )
        if self._metrics:
            self._metrics.set_current_period(snapshot.period_timestamp)
        self._log.debug(
            "prices",
            period=snapshot.period_timestamp,
            remaining=round(snapshot.remaining_seconds, 1),
            quotes=snapshot.format_prices(),
        )

        if snapshot.is_closed:
            return self._report(TickStatus.PERIOD_CLOSED, snapshot)

        period_ts = snapshot.period_timestamp
        if self._state.last_seen_period is None:
            # Never act on the first observation: startup state may be partial
            self._state.last_seen_period = period_ts
            self._log.info(
                "monitoring_started",
                period=period_ts,
                next_period_in=int(snapshot.remaining_seconds),
            )
            return self._report(TickStatus.WARMUP, snapshot)

        if self._state.last_seen_period != period_ts:
            self._log.info("new_period_detected", period=period_ts)
            self._state.last_seen_period = period_ts

        if snapshot.elapsed_seconds > self._trading.dispatch_window_seconds:
            return self._report(TickStatus.OUTSIDE_WINDOW, snapshot)

        if self._state.last_dispatched_period == period_ts:
            return self._report(TickStatus.ALREADY_DISPATCHED, snapshot)
        # Committed before any order work: one attempt per period
        self._state.last_dispatched_period = period_ts

        limit_price: Decimal = self._trading.limit_price
        opportunities = build_opportunities(snapshot, limit_price)
        if not opportunities:
            return self._report(TickStatus.NO_OPPORTUNITIES, snapshot)

        self._log.info(
            "market_start_detected",
            period=period_ts,
            elapsed=round(snapshot.elapsed_seconds, 2),
            limit_price=str(limit_price),
            opportunities=len(opportunities),
        )

        attempted = succeeded = failed = skipped = 0
        for opportunity in opportunities:
            if self._ledger.has_active_position(opportunity.period_timestamp, opportunity.outcome_type):
                skipped += 1
                continue
            attempted += 1
            try:
                await self._executor.execute_limit_buy(
                    opportunity, limit_price, self._trading.shares
                )
                succeeded += 1
            except ConfigurationError:
                raise
            except Exception as e:
                failed += 1
                self._log.error(
                    "limit_buy_failed",
                    outcome=str(opportunity.outcome_type),
                    token_id=opportunity.token_id,
                    error=str(e),
                )

        self._log.info(
            "dispatch_pass_complete",
            period=period_ts,
            attempted=attempted,
            succeeded=succeeded,
            failed=failed,
            skipped=skipped,
        )
        return self._report(
            TickStatus.DISPATCHED,
            snapshot,
            attempted=attempted,
            succeeded=succeeded,
            failed=failed,
            skipped=skipped,
        )

    async def run(self) -> None:
        """Tick forever at the poll interval.

        Only configuration errors escape; anything else is logged and the
        next tick proceeds.
        """
        interval = self._trading.poll_interval_ms / 1000
        self._log.info("dispatcher_started", poll_interval_ms=self._trading.poll_interval_ms)
        while True:
            try:
                await self.tick()
            except ConfigurationError:
                raise
            except Exception as e:
                self._log.error("tick_failed", error=str(e))
            await self._sleep(interval)
