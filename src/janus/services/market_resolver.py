"""Market resolver for 15-minute up/down markets.

Each period has a fresh market per asset with a predictable slug:

    {prefix}-updown-15m-{period_start}

The resolver tries each configured prefix in priority order and, when
allowed, falls back to the three previous period boundaries to absorb
listing latency around the rollover.
"""

from typing import AbstractSet, Optional, Protocol, Sequence

from janus.core.clock import PERIOD_LENGTH_SECONDS, PeriodClock
from janus.core.errors import MarketLookupError, MarketNotFoundError
from janus.core.logging import get_logger
from janus.core.settings import AssetSpec
from janus.domain.market import Market
from janus.services.metrics import MetricsEmitter

log = get_logger(__name__)

MAX_PREVIOUS_PERIODS = 3


class MarketLookup(Protocol):
    """Protocol for GammaClient to allow testing without full implementation."""

    async def get_market_by_slug(self, slug: str, asset: str = "") -> Market:
        """Look up one market by slug."""
        ...


def market_slug(prefix: str, period_ts: int) -> str:
    return f"{prefix}-updown-15m-{period_ts}"


def candidate_periods(
    period_ts: int,
    include_previous: bool,
    period_length: int = PERIOD_LENGTH_SECONDS,
) -> list[int]:
    """Period boundaries to try for one prefix, current first."""
    periods = [period_ts]
    if include_previous:
        periods += [period_ts - i * period_length for i in range(1, MAX_PREVIOUS_PERIODS + 1)]
    return periods


class MarketResolver:
    """Finds the active market for each tracked asset in the current period."""

    def __init__(
        self,
        lookup: MarketLookup,
        clock: Optional[PeriodClock] = None,
        metrics: Optional[MetricsEmitter] = None,
    ):
        """Initialize the resolver.

        Args:
            lookup: Market lookup collaborator (GammaClient).
            clock: Period clock; wall clock by default.
            metrics: Optional metrics emitter.
        """
        self._lookup = lookup
        self._clock = clock or PeriodClock()
        self._metrics = metrics
        self._log = log.bind(component="market_resolver")

    def _is_acceptable(self, market: Market, claimed: AbstractSet[str]) -> bool:
        return market.is_tradable and market.condition_id not in claimed

    async def resolve(
        self,
        asset: str,
        prefixes: Sequence[str],
        claimed: AbstractSet[str] = frozenset(),
        include_previous: bool = False,
        now: Optional[float] = None,
    ) -> Market:
        """Resolve the current market for one asset.

        ``claimed`` is read only; callers add the returned condition id
        before resolving the next asset.

        Args:
            asset: Asset label, e.g. "BTC".
            prefixes: Slug prefixes in priority order.
            claimed: Condition ids already taken by other assets.
            include_previous: Also try the three previous periods.
            now: Unix time; defaults to the clock.

        Returns:
            First active, open, unclaimed market found.

        Raises:
            MarketNotFoundError: If every prefix and fallback is exhausted.
        """
        period_ts = self._clock.period_start(now)
        periods = candidate_periods(period_ts, include_previous, self._clock.period_length)

        for index, prefix in enumerate(prefixes):
            if index > 0:
                self._log.info("trying_alternate_prefix", asset=asset, prefix=prefix)

            for candidate_ts in periods:
                slug = market_slug(prefix, candidate_ts)
                try:
                    market = await self._lookup.get_market_by_slug(slug, asset=asset)
                except MarketLookupError as e:
                    self._log.debug("slug_lookup_failed", asset=asset, slug=slug, error=str(e))
                    continue

                if self._is_acceptable(market, claimed):
                    self._log.info(
                        "market_resolved",
                        asset=asset,
                        slug=market.slug,
                        condition_id=market.condition_id,
                    )
                    return market

                self._log.debug(
                    "market_rejected",
                    asset=asset,
                    slug=slug,
                    active=market.active,
                    closed=market.closed,
                    claimed=market.condition_id in claimed,
                )

        raise MarketNotFoundError(asset, prefixes)

    async def resolve_all(
        self,
        assets: Sequence[AssetSpec],
        now: Optional[float] = None,
    ) -> dict[str, Market]:
        """Resolve every configured asset for the current period.

        Assets are resolved in order and each hit is claimed before the
        next lookup, so two assets never share a market. Disabled or
        unresolvable assets get a placeholder market.
        """
        claimed: set[str] = set()
        markets: dict[str, Market] = {}

        for spec in assets:
            if not spec.enabled:
                markets[spec.name] = Market.placeholder(spec.name)
                continue

            try:
                market = await self.resolve(
                    spec.name,
                    spec.prefixes,
                    claimed=frozenset(claimed),
                    include_previous=spec.include_previous,
                    now=now,
                )
            except MarketNotFoundError as e:
                self._log.warning("market_resolution_failed", asset=spec.name, error=str(e))
                if self._metrics:
                    self._metrics.record_resolution_failure(spec.name)
                market = Market.placeholder(spec.name)
            else:
                claimed.add(market.condition_id)

            markets[spec.name] = market

        return markets
