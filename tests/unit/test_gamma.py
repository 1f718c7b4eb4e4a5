"""
Unit tests for GammaClient.

The HTTP layer is mocked with patch.object on the underlying httpx client.
"""
import json
from unittest.mock import MagicMock, patch

import httpx
import pytest

from janus.core.errors import MarketLookupError
from janus.integrations.polymarket.gamma import GammaClient, GammaClientError
from janus.integrations.polymarket.types import PolymarketSettings

SLUG = "btc-updown-15m-1737158400"


def make_market_data(**overrides) -> dict:
    data = {
        "conditionId": "0xcond",
        "slug": SLUG,
        "question": "Bitcoin Up or Down - January 18, 12:00AM-12:15AM ET",
        "clobTokenIds": json.dumps(["111", "222"]),
        "outcomes": json.dumps(["Up", "Down"]),
        "active": True,
        "closed": False,
    }
    data.update(overrides)
    return data


def make_response(status_code: int = 200, payload=None) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    response.raise_for_status = MagicMock()
    return response


@pytest.fixture
def settings():
    return PolymarketSettings(gamma_url="https://gamma-api.polymarket.com/")


class TestGammaClientConnection:
    """Tests for connection handling."""

    @pytest.mark.asyncio
    async def test_context_manager(self, settings):
        async with GammaClient(settings) as client:
            assert client._client is not None
            assert str(client._client.base_url).rstrip("/") == "https://gamma-api.polymarket.com"
        assert client._client is None

    def test_ensure_connected_raises_when_disconnected(self, settings):
        client = GammaClient(settings)
        with pytest.raises(GammaClientError, match="not connected"):
            client._ensure_connected()


class TestGetMarketBySlug:
    """Tests for slug lookup."""

    @pytest.mark.asyncio
    async def test_list_response(self, settings):
        client = GammaClient(settings)
        await client.connect()

        with patch.object(client._client, "get") as mock_get:
            mock_get.return_value = make_response(payload=[make_market_data()])
            market = await client.get_market_by_slug(SLUG, asset="btc")

            mock_get.assert_called_once_with("/markets", params={"slug": SLUG, "limit": 1})

        assert market.condition_id == "0xcond"
        assert market.asset == "BTC"
        assert market.slug == SLUG
        assert market.is_tradable
        assert market.up_token.token_id == "111"
        assert market.down_token.token_id == "222"
        assert market.period_timestamp == 1737158400

        await client.close()

    @pytest.mark.asyncio
    async def test_closed_market_is_returned_as_closed(self, settings):
        """Filtering is the resolver's job; the client just reports state."""
        client = GammaClient(settings)
        await client.connect()

        with patch.object(client._client, "get") as mock_get:
            mock_get.return_value = make_response(payload=[make_market_data(closed=True)])
            market = await client.get_market_by_slug(SLUG)

        assert market.closed is True
        assert not market.is_tradable
        await client.close()

    @pytest.mark.asyncio
    async def test_not_found(self, settings):
        client = GammaClient(settings)
        await client.connect()

        with patch.object(client._client, "get") as mock_get:
            mock_get.return_value = make_response(status_code=404)
            with pytest.raises(MarketLookupError) as exc_info:
                await client.get_market_by_slug(SLUG)

        assert exc_info.value.slug == SLUG
        await client.close()

    @pytest.mark.asyncio
    async def test_empty_list(self, settings):
        client = GammaClient(settings)
        await client.connect()

        with patch.object(client._client, "get") as mock_get:
            mock_get.return_value = make_response(payload=[])
            with pytest.raises(MarketLookupError):
                await client.get_market_by_slug(SLUG)

        await client.close()

    @pytest.mark.asyncio
    async def test_transport_error_is_retried_then_raised(self, settings):
        client = GammaClient(settings)
        await client.connect()

        with patch.object(client._client, "get") as mock_get:
            mock_get.side_effect = httpx.ConnectError("connection refused")
            with pytest.raises(MarketLookupError):
                await client.get_market_by_slug(SLUG)

            assert mock_get.call_count == 2

        await client.close()

    @pytest.mark.asyncio
    async def test_server_error_is_retried(self, settings):
        client = GammaClient(settings)
        await client.connect()
        failing = make_response(status_code=503)
        failing.raise_for_status.side_effect = httpx.HTTPStatusError(
            "503", request=MagicMock(), response=MagicMock()
        )

        with patch.object(client._client, "get") as mock_get:
            mock_get.side_effect = [failing, make_response(payload=[make_market_data()])]
            market = await client.get_market_by_slug(SLUG)

            assert mock_get.call_count == 2

        assert market.slug == SLUG
        await client.close()

    @pytest.mark.asyncio
    async def test_client_error_is_not_retried(self, settings):
        client = GammaClient(settings)
        await client.connect()
        failing = make_response(status_code=422)
        failing.raise_for_status.side_effect = httpx.HTTPStatusError(
            "422", request=MagicMock(), response=MagicMock()
        )

        with patch.object(client._client, "get") as mock_get:
            mock_get.return_value = failing
            with pytest.raises(MarketLookupError):
                await client.get_market_by_slug(SLUG)

            assert mock_get.call_count == 1

        await client.close()

    @pytest.mark.asyncio
    async def test_malformed_payload(self, settings):
        client = GammaClient(settings)
        await client.connect()

        with patch.object(client._client, "get") as mock_get:
            mock_get.return_value = make_response(payload=[{"slug": SLUG}])
            with pytest.raises(MarketLookupError):
                await client.get_market_by_slug(SLUG)

        await client.close()


class TestParseMarket:
    """Tests for parse_market."""

    def test_accepts_decoded_lists(self, settings):
        client = GammaClient(settings)
        market = client.parse_market(
            make_market_data(clobTokenIds=["1", "2"], outcomes=["Up", "Down"]),
            asset="eth",
        )
        assert [t.token_id for t in market.tokens] == ["1", "2"]
        assert market.asset == "ETH"

    def test_missing_slug_falls_back_to_requested(self, settings):
        client = GammaClient(settings)
        data = make_market_data()
        del data["slug"]
        market = client.parse_market(data, slug=SLUG)
        assert market.slug == SLUG
