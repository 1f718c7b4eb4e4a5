"""Snapshot builder: resolved markets + best bids -> MarketSnapshot."""

import asyncio
from decimal import Decimal
from typing import AbstractSet, Mapping, Optional, Protocol

from janus.core.clock import PeriodClock, remaining_until
from janus.core.errors import QuoteUnavailableError
from janus.core.logging import get_logger
from janus.domain.market import AssetQuote, Market, MarketSnapshot
from janus.services.metrics import MetricsEmitter

log = get_logger(__name__)


class QuoteSource(Protocol):
    """Protocol for CLOBClient order-book reads."""

    async def get_best_bid(self, token_id: str) -> Optional[Decimal]:
        """Best bid for a token, None when the book is empty."""
        ...


class SnapshotBuilder:
    """Builds a best-effort point-in-time view across all assets.

    The snapshot's period always comes from the clock. A failed quote for
    one token is logged and left out of that asset's bids; it never
    aborts the rest of the snapshot.
    """

    def __init__(
        self,
        quotes: QuoteSource,
        clock: Optional[PeriodClock] = None,
        metrics: Optional[MetricsEmitter] = None,
    ):
        self._quotes = quotes
        self._clock = clock or PeriodClock()
        self._metrics = metrics
        self._log = log.bind(component="snapshot_builder")

    async def _fetch_bid(self, asset: str, token_id: str) -> tuple[bool, Optional[Decimal]]:
        """(read, best bid) for one token."""
        try:
            return True, await self._quotes.get_best_bid(token_id)
        except QuoteUnavailableError as e:
            self._log.warning("quote_unavailable", asset=asset, token_id=token_id, error=str(e))
            if self._metrics:
                self._metrics.record_quote_failure(asset)
            return False, None

    async def build(
        self,
        markets: Mapping[str, Market],
        enabled: AbstractSet[str],
        now: Optional[float] = None,
    ) -> MarketSnapshot:
        """Fetch bids for every tradable market and assemble the snapshot.

        The period reads as closed (no time remaining) when enabled assets
        have live markets but every one of them belongs to an earlier
        period.

        Args:
            markets: Asset -> current market (placeholders included).
            enabled: Assets trading is enabled for.
            now: Unix time; defaults to the clock.
        """
        now = self._clock.now() if now is None else now
        period_ts = self._clock.period_start(now)
        period_length = self._clock.period_length

        live_periods = {
            market.period_timestamp
            for asset, market in markets.items()
            if asset in enabled and market.is_tradable
        }
        if live_periods and period_ts not in live_periods:
            remaining = 0.0
        else:
            remaining = remaining_until(period_ts, now, period_length)

        fetches = []
        for asset, market in markets.items():
            if not market.is_tradable:
                continue
            for token in market.tokens:
                fetches.append((asset, token.token_id))

        results = await asyncio.gather(
            *(self._fetch_bid(asset, token_id) for asset, token_id in fetches)
        )

        bids: dict[str, dict[str, Optional[Decimal]]] = {asset: {} for asset in markets}
        for (asset, token_id), (read, bid) in zip(fetches, results):
            if read:
                bids[asset][token_id] = bid

        quotes = {
            asset: AssetQuote(
                asset=asset,
                market=market,
                enabled=asset in enabled,
                bids=bids[asset],
            )
            for asset, market in markets.items()
        }

        return MarketSnapshot(
            period_timestamp=period_ts,
            remaining_seconds=remaining,
            elapsed_seconds=period_length - remaining,
            quotes=quotes,
        )
