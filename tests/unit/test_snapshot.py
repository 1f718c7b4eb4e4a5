"""Unit tests for SnapshotBuilder."""
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from janus.core.errors import QuoteUnavailableError
from janus.domain.market import Market, OutcomeToken
from janus.services.snapshot import SnapshotBuilder

PERIOD_TS = 1737158400


def make_market(prefix: str = "btc", period_ts: int = PERIOD_TS) -> Market:
    return Market(
        condition_id=f"cond-{prefix}-{period_ts}",
        slug=f"{prefix}-updown-15m-{period_ts}",
        asset=prefix.upper(),
        tokens=(
            OutcomeToken(f"{prefix}-up", "Up"),
            OutcomeToken(f"{prefix}-down", "Down"),
        ),
    )


def make_quotes(bids: dict) -> MagicMock:
    """CLOBClient stand-in; a bid that is an exception is raised."""

    async def get_best_bid(token_id: str):
        value = bids.get(token_id)
        if isinstance(value, Exception):
            raise value
        return value

    quotes = MagicMock()
    quotes.get_best_bid = AsyncMock(side_effect=get_best_bid)
    return quotes


class TestSnapshotBuilder:
    """Tests for SnapshotBuilder.build."""

    @pytest.mark.asyncio
    async def test_collects_bids_and_timing(self, clock):
        quotes = make_quotes({"btc-up": Decimal("0.48"), "btc-down": Decimal("0.52")})
        builder = SnapshotBuilder(quotes, clock=clock)
        markets = {"BTC": make_market(), "XRP": Market.placeholder("XRP")}

        snapshot = await builder.build(markets, {"BTC"}, now=PERIOD_TS + 1.5)

        assert snapshot.period_timestamp == PERIOD_TS
        assert snapshot.remaining_seconds == pytest.approx(898.5)
        assert snapshot.elapsed_seconds == pytest.approx(1.5)
        assert not snapshot.is_closed
        assert snapshot.quotes["BTC"].bid_for("btc-up") == Decimal("0.48")
        assert snapshot.quotes["BTC"].enabled is True
        assert snapshot.quotes["XRP"].enabled is False
        assert snapshot.quotes["XRP"].bids == {}

    @pytest.mark.asyncio
    async def test_placeholders_are_not_quoted(self, clock):
        quotes = make_quotes({})
        builder = SnapshotBuilder(quotes, clock=clock)

        await builder.build({"XRP": Market.placeholder("XRP")}, set(), now=PERIOD_TS + 1)

        quotes.get_best_bid.assert_not_called()

    @pytest.mark.asyncio
    async def test_partial_quote_failure(self, clock, metrics):
        """One failed read leaves that bid missing and keeps the rest."""
        quotes = make_quotes(
            {
                "btc-up": QuoteUnavailableError("btc-up", cause=TimeoutError()),
                "btc-down": Decimal("0.52"),
                "eth-up": Decimal("0.40"),
                "eth-down": Decimal("0.61"),
            }
        )
        builder = SnapshotBuilder(quotes, clock=clock, metrics=metrics)
        markets = {"BTC": make_market("btc"), "ETH": make_market("eth")}

        snapshot = await builder.build(markets, {"BTC", "ETH"}, now=PERIOD_TS + 1)

        assert not snapshot.quotes["BTC"].has_quote("btc-up")
        assert snapshot.quotes["BTC"].bid_for("btc-up") is None
        assert snapshot.quotes["BTC"].bid_for("btc-down") == Decimal("0.52")
        assert snapshot.quotes["ETH"].bid_for("eth-up") == Decimal("0.40")
        assert 'janus_quote_failures_total{asset="BTC"} 1.0' in metrics.get_metrics()

    @pytest.mark.asyncio
    async def test_stale_market_reads_closed(self, clock):
        """Only last period's market is live: no time remains for it."""
        quotes = make_quotes({"btc-up": Decimal("0.99"), "btc-down": Decimal("0.01")})
        builder = SnapshotBuilder(quotes, clock=clock)

        snapshot = await builder.build(
            {"BTC": make_market(period_ts=PERIOD_TS - 900)}, {"BTC"}, now=PERIOD_TS + 1
        )

        assert snapshot.period_timestamp == PERIOD_TS
        assert snapshot.remaining_seconds == 0
        assert snapshot.is_closed
        assert not snapshot.quotes["BTC"].is_current(PERIOD_TS)

    @pytest.mark.asyncio
    async def test_clock_period_without_live_markets(self, clock):
        builder = SnapshotBuilder(make_quotes({}), clock=clock)

        snapshot = await builder.build(
            {"BTC": Market.placeholder("BTC")}, {"BTC"}, now=PERIOD_TS + 10
        )

        assert snapshot.period_timestamp == PERIOD_TS
        assert snapshot.remaining_seconds == pytest.approx(890)
        assert snapshot.format_prices() == "no tradable markets"

    @pytest.mark.asyncio
    async def test_empty_book_is_a_quote(self, clock, metrics):
        """A book with no bids was still read; only failures go missing."""
        quotes = make_quotes({"btc-up": None, "btc-down": None})
        builder = SnapshotBuilder(quotes, clock=clock, metrics=metrics)

        snapshot = await builder.build({"BTC": make_market()}, {"BTC"}, now=PERIOD_TS + 0.3)

        quote = snapshot.quotes["BTC"]
        assert quote.has_quote("btc-up") and quote.has_quote("btc-down")
        assert quote.bid_for("btc-up") is None
        assert "janus_quote_failures_total{" not in metrics.get_metrics()

    @pytest.mark.asyncio
    async def test_period_comes_from_clock_regardless_of_asset_order(self, clock):
        """One asset on last period's market does not close the period for the rest."""
        quotes = make_quotes(
            {
                "btc-up": Decimal("0.99"),
                "btc-down": Decimal("0.01"),
                "eth-up": Decimal("0.48"),
                "eth-down": Decimal("0.51"),
            }
        )
        builder = SnapshotBuilder(quotes, clock=clock)
        stale_btc = make_market("btc", period_ts=PERIOD_TS - 900)
        current_eth = make_market("eth")

        for markets in (
            {"BTC": stale_btc, "ETH": current_eth},
            {"ETH": current_eth, "BTC": stale_btc},
        ):
            snapshot = await builder.build(markets, {"BTC", "ETH"}, now=PERIOD_TS + 1)

            assert snapshot.period_timestamp == PERIOD_TS
            assert snapshot.remaining_seconds == pytest.approx(899)
            assert not snapshot.quotes["BTC"].is_current(PERIOD_TS)
            assert snapshot.quotes["ETH"].is_current(PERIOD_TS)
