"""Polymarket Gamma API client for market lookup.

The Gamma API provides market metadata by slug. It is separate from the
CLOB API which serves order books and accepts orders.
"""

import json
from typing import Optional

import httpx
from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from janus.core.errors import MarketLookupError, NetworkError, is_retryable
from janus.core.logging import get_logger
from janus.domain.market import Market, OutcomeToken
from janus.integrations.polymarket.types import PolymarketSettings

log = get_logger(__name__)

# Lookups run at period rollover inside the dispatch window, keep retries short
RETRY_ATTEMPTS = 2
RETRY_WAIT_MIN = 0.1
RETRY_WAIT_MAX = 0.5

DEFAULT_TIMEOUT_SECONDS = 0.8


class GammaClientError(Exception):
    """Error from Gamma API client."""

    pass


class GammaClient:
    """Async HTTP client for Polymarket Gamma API.

    Only slug lookup is needed: 15-minute markets have predictable slugs,
    so no listing or search endpoint is used.
    """

    def __init__(
        self,
        settings: PolymarketSettings,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        """Initialize the Gamma client.

        Args:
            settings: Polymarket connection settings.
            timeout: HTTP request timeout in seconds.
        """
        self._base_url = settings.gamma_url.rstrip("/")
        self._timeout = timeout
        self._proxy = settings.http_proxy
        self._client: Optional[httpx.AsyncClient] = None
        self._log = log.bind(component="gamma_client")

    async def connect(self) -> None:
        """Initialize the HTTP client."""
        if self._client is not None:
            return

        transport = None
        if self._proxy:
            transport = httpx.AsyncHTTPTransport(proxy=self._proxy)

        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )
        self._log.info("gamma_client_connected", base_url=self._base_url)

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            self._log.info("gamma_client_closed")

    async def __aenter__(self) -> "GammaClient":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _ensure_connected(self) -> httpx.AsyncClient:
        """Ensure client is connected and return it."""
        if self._client is None:
            raise GammaClientError("Client not connected. Call connect() first.")
        return self._client

    @retry(
        stop=stop_after_attempt(RETRY_ATTEMPTS),
        wait=wait_exponential(multiplier=0.1, min=RETRY_WAIT_MIN, max=RETRY_WAIT_MAX),
        retry=retry_if_exception(is_retryable),
        reraise=True,
    )
    async def _fetch_by_slug(self, client: httpx.AsyncClient, slug: str) -> Optional[dict]:
        try:
            response = await client.get("/markets", params={"slug": slug, "limit": 1})
        except httpx.TransportError as e:
            raise NetworkError(f"Gamma unreachable for {slug}", cause=e) from e

        if response.status_code == 404:
            return None
        try:
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            if response.status_code >= 500:
                raise NetworkError(f"Gamma returned {response.status_code} for {slug}", cause=e) from e
            raise MarketLookupError(slug, cause=e) from e
        except ValueError as e:
            raise MarketLookupError(slug, cause=e) from e

        if not data:
            return None
        return data[0] if isinstance(data, list) else data

    async def get_market_by_slug(self, slug: str, asset: str = "") -> Market:
        """Look up a market by slug.

        Transport failures and 5xx responses are retried briefly.

        Args:
            slug: Market slug (e.g., "btc-updown-15m-1737158400").
            asset: Asset label stored on the returned Market.

        Returns:
            Parsed Market.

        Raises:
            MarketLookupError: If the market does not exist or the request fails.
        """
        client = self._ensure_connected()
        try:
            raw = await self._fetch_by_slug(client, slug)
        except NetworkError as e:
            raise MarketLookupError(slug, cause=e) from e

        if raw is None:
            raise MarketLookupError(slug)

        try:
            return self.parse_market(raw, asset=asset, slug=slug)
        except (json.JSONDecodeError, KeyError, TypeError) as e:
            self._log.warning("parse_error_market", slug=slug, error=str(e))
            raise MarketLookupError(slug, cause=e) from e

    def parse_market(self, data: dict, asset: str = "", slug: str = "") -> Market:
        """Parse a Gamma market dictionary into a Market.

        ``clobTokenIds`` and ``outcomes`` arrive as JSON-encoded strings.
        """
        clob_token_ids = data.get("clobTokenIds") or "[]"
        outcomes = data.get("outcomes") or "[]"
        if isinstance(clob_token_ids, str):
            clob_token_ids = json.loads(clob_token_ids)
        if isinstance(outcomes, str):
            outcomes = json.loads(outcomes)

        tokens = tuple(
            OutcomeToken(token_id=str(token_id), outcome=str(outcome))
            for token_id, outcome in zip(clob_token_ids, outcomes)
        )

        return Market(
            condition_id=data["conditionId"],
            slug=data.get("slug") or slug,
            asset=asset.upper(),
            question=data.get("question", ""),
            active=bool(data.get("active", False)),
            closed=bool(data.get("closed", False)),
            tokens=tokens,
        )
