"""Polymarket CLOB client for order-book reads and order submission.

This client wraps the synchronous py-clob-client library with asyncio
support (thread pool), per-call timeouts and Janus error types.
"""

import asyncio
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from typing import Any, Optional

from py_clob_client.client import ClobClient
from py_clob_client.clob_types import ApiCreds, OrderArgs, OrderType, PartialCreateOrderOptions
from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from janus.core.errors import (
    AuthenticationError,
    NetworkError,
    OrderStateUnknownError,
    OrderSubmissionError,
    QuoteUnavailableError,
    is_retryable,
)
from janus.core.logging import get_logger
from janus.domain.order import OrderAck
from janus.integrations.polymarket.types import OrderSide, PolymarketSettings, TimeInForce

log = get_logger(__name__)

POLYGON_CHAIN_ID = 137
TICK_SIZE = "0.01"

DEFAULT_TIMEOUT_SECONDS = 0.8
DEFAULT_ORDER_TIMEOUT_SECONDS = 5.0

# Session setup happens once at startup; allow a slower retry there
AUTH_RETRY_ATTEMPTS = 3


class CLOBClientError(Exception):
    """Base error from CLOB API client."""

    pass


class CLOBClient:
    """Async client for the Polymarket CLOB (Central Limit Order Book).

    Order-book reads need no credentials. Order submission needs an
    authenticated session, established by ``authenticate()`` from the
    configured API credentials or derived from the private key.
    """

    def __init__(
        self,
        settings: PolymarketSettings,
        executor: Optional[ThreadPoolExecutor] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        order_timeout: float = DEFAULT_ORDER_TIMEOUT_SECONDS,
    ):
        """Initialize the CLOB client.

        Args:
            settings: Polymarket connection settings including credentials.
            executor: Optional thread pool for async execution.
            timeout: Timeout for order-book reads in seconds.
            order_timeout: Timeout for signing plus submission in seconds.
        """
        self._settings = settings
        self._executor = executor or ThreadPoolExecutor(max_workers=4)
        self._timeout = timeout
        self._order_timeout = order_timeout
        self._client: Optional[ClobClient] = None
        self._authenticated = False
        self._log = log.bind(component="clob_client")

    @property
    def is_authenticated(self) -> bool:
        return self._authenticated

    async def connect(self) -> None:
        """Create the underlying py-clob-client instance.

        Safe to call more than once.
        """
        if self._client is not None:
            return

        def create_client() -> ClobClient:
            kwargs: dict[str, Any] = {
                "host": self._settings.clob_url.rstrip("/"),
                "chain_id": POLYGON_CHAIN_ID,
            }
            if self._settings.has_private_key:
                kwargs.update(
                    key=self._settings.private_key,
                    signature_type=self._settings.signature_type,
                    funder=self._settings.proxy_wallet,
                )
            return ClobClient(**kwargs)

        self._client = await self._run_sync(create_client)
        self._log.info("clob_client_connected", url=self._settings.clob_url)

    async def close(self) -> None:
        """Drop the client and release the thread pool."""
        self._client = None
        self._authenticated = False
        self._executor.shutdown(wait=False)
        self._log.info("clob_client_closed")

    async def __aenter__(self) -> "CLOBClient":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _ensure_connected(self) -> ClobClient:
        if self._client is None:
            raise CLOBClientError("Client not connected. Call connect() first.")
        return self._client

    async def _run_sync(self, func, *args, **kwargs):
        """Run a synchronous function in the thread pool."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            self._executor, lambda: func(*args, **kwargs)
        )

    # =========================================================================
    # Session
    # =========================================================================

    async def authenticate(self) -> None:
        """Establish an authenticated (L2) trading session.

        Uses configured API credentials when complete. Otherwise derives the
        existing key for the wallet, and creates one if none exists.

        Raises:
            AuthenticationError: If no private key is configured or the venue
                refuses every credential path.
        """
        if self._authenticated:
            return
        if not self._settings.has_private_key:
            raise AuthenticationError("private_key is required to authenticate")

        await self.connect()
        client = self._ensure_connected()

        try:
            creds = await self._resolve_api_creds(client)
            await self._run_sync(client.set_api_creds, creds)
            await self._run_sync(client.get_ok)
        except AuthenticationError:
            raise
        except Exception as e:
            raise AuthenticationError("CLOB authentication failed", cause=e) from e

        self._authenticated = True
        self._log.info(
            "clob_authenticated",
            funder=self._settings.proxy_wallet or "eoa",
            signature_type=self._settings.signature_type,
        )

    @retry(
        stop=stop_after_attempt(AUTH_RETRY_ATTEMPTS),
        wait=wait_exponential(multiplier=1, min=1, max=4),
        retry=retry_if_exception(is_retryable),
        reraise=True,
    )
    async def _resolve_api_creds(self, client: ClobClient) -> ApiCreds:
        if self._settings.has_api_credentials:
            return ApiCreds(
                api_key=self._settings.api_key,
                api_secret=self._settings.api_secret,
                api_passphrase=self._settings.api_passphrase,
            )

        # Derive first: creating fails when the wallet already has a key
        try:
            creds = await self._run_sync(client.derive_api_key)
            if creds is not None and creds.api_key:
                self._log.info("clob_api_key_derived")
                return creds
        except (ConnectionError, TimeoutError) as e:
            raise NetworkError("CLOB unreachable while deriving API key", cause=e) from e
        except Exception as e:
            self._log.debug("clob_api_key_derive_failed", error=str(e))

        try:
            creds = await self._run_sync(client.create_api_key)
        except Exception as e:
            raise AuthenticationError(
                "CLOB API key failed: derive and create both failed. "
                "Set polymarket.api_key, api_secret and api_passphrase.",
                cause=e,
            ) from e
        if creds is None or not creds.api_key:
            raise AuthenticationError("CLOB API key creation returned no credentials")
        self._log.info("clob_api_key_created")
        return creds

    # =========================================================================
    # Order book
    # =========================================================================

    async def _read_levels(self, token_id: str, side: str) -> list[tuple[Decimal, Decimal]]:
        """Resting (price, size) levels on one side of a token's book."""
        client = self._ensure_connected()
        try:
            raw_book = await asyncio.wait_for(
                self._run_sync(client.get_order_book, token_id),
                timeout=self._timeout,
            )
        except Exception as e:
            raise QuoteUnavailableError(token_id, cause=e) from e

        levels = (
            raw_book.get(side)
            if isinstance(raw_book, dict)
            else getattr(raw_book, side, None)
        )
        return [(price, size) for price, size in self._parse_levels(levels) if size > 0]

    async def get_best_bid(self, token_id: str) -> Optional[Decimal]:
        """Highest bid for a token.

        Args:
            token_id: The token's ID (string to preserve precision).

        Returns:
            Best bid price, or None when the book has no bids.

        Raises:
            QuoteUnavailableError: If the book cannot be read in time.
        """
        bids = await self._read_levels(token_id, "bids")
        return max(price for price, _ in bids) if bids else None

    async def get_best_ask(self, token_id: str) -> Optional[Decimal]:
        """Lowest ask for a token, or None when the book has no asks.

        Raises:
            QuoteUnavailableError: If the book cannot be read in time.
        """
        asks = await self._read_levels(token_id, "asks")
        return min(price for price, _ in asks) if asks else None

    def _parse_levels(self, levels) -> list[tuple[Decimal, Decimal]]:
        """Parse (price, size) levels from dict or object responses."""
        result = []
        for level in levels or []:
            if isinstance(level, dict):
                price, size = level.get("price", 0), level.get("size", 0)
            else:
                price, size = getattr(level, "price", 0), getattr(level, "size", 0)
            result.append((Decimal(str(price)), Decimal(str(size))))
        return result

    # =========================================================================
    # Orders
    # =========================================================================

    async def submit_limit_order(
        self,
        token_id: str,
        side: OrderSide,
        price: Decimal,
        size: Decimal,
        time_in_force: TimeInForce = TimeInForce.GTC,
    ) -> OrderAck:
        """Sign and post a limit order.

        Price and size must already be rounded to the venue tick.

        Raises:
            OrderSubmissionError: If not authenticated, signing or posting
                fails, or the venue does not return an order id.
        """
        if not self._authenticated:
            raise OrderSubmissionError("CLOB session not authenticated", token_id=token_id)
        client = self._ensure_connected()

        order_args = OrderArgs(
            token_id=token_id,
            price=float(price),
            size=float(size),
            side=side.value,
        )
        options = PartialCreateOrderOptions(tick_size=TICK_SIZE, neg_risk=False)

        def create_and_post():
            signed = client.create_order(order_args, options)
            return client.post_order(signed, getattr(OrderType, time_in_force.value))

        try:
            response = await asyncio.wait_for(
                self._run_sync(create_and_post),
                timeout=self._order_timeout,
            )
        except asyncio.TimeoutError as e:
            # The worker thread keeps running and may still post the order
            self._log.error(
                "order_submission_state_unknown",
                token_id=token_id,
                side=side.value,
                price=str(price),
                size=str(size),
                timeout=self._order_timeout,
            )
            raise OrderStateUnknownError(
                f"No response within {self._order_timeout}s; order may still be posted",
                token_id=token_id,
                cause=e,
            ) from e
        except Exception as e:
            self._log.error(
                "order_failed",
                token_id=token_id,
                side=side.value,
                error=str(e),
            )
            raise OrderSubmissionError(f"Order failed: {e}", token_id=token_id, cause=e) from e

        ack = self._parse_ack(response)
        if not ack.order_id:
            error_msg = response.get("errorMsg") if isinstance(response, dict) else None
            raise OrderSubmissionError(
                f"Order rejected: {error_msg or response}", token_id=token_id
            )

        self._log.info(
            "order_posted",
            order_id=ack.order_id,
            status=ack.status,
            token_id=token_id,
            price=str(price),
            size=str(size),
        )
        return ack

    def _parse_ack(self, response: Any) -> OrderAck:
        if isinstance(response, dict):
            order_id = response.get("orderID") or response.get("id") or ""
            status = response.get("status") or "unknown"
        else:
            order_id = getattr(response, "orderID", None) or getattr(response, "id", "") or ""
            status = getattr(response, "status", None) or "unknown"
        return OrderAck(order_id=str(order_id), status=str(status))
