"""Polymarket-specific types.

Connection settings and the enums shared by the Gamma and CLOB clients.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class OrderSide(str, Enum):
    """Side of an order (buy or sell)."""

    BUY = "BUY"
    SELL = "SELL"


class TimeInForce(str, Enum):
    """Order time-in-force policies."""

    GTC = "GTC"  # Good-till-cancelled
    FOK = "FOK"  # Fill-or-kill (all or nothing)
    GTD = "GTD"  # Good-till-date


@dataclass(frozen=True)
class PolymarketSettings:
    """Configuration settings for Polymarket connections.

    Attributes:
        private_key: Polygon wallet private key for signing orders.
        proxy_wallet: Optional Polymarket proxy wallet address (order funder).
        signature_type: Signature type (0=EOA, 1=Magic, 2=Browser).
        api_key: CLOB API key; derived or created from the key when empty.
        api_secret: CLOB API secret.
        api_passphrase: CLOB API passphrase.
        clob_url: CLOB HTTP API base URL.
        gamma_url: Gamma API base URL for market lookup.
        http_proxy: Optional HTTP proxy for routing Gamma requests.
    """

    private_key: str = ""
    proxy_wallet: Optional[str] = None
    signature_type: int = 0  # 0=EOA by default

    api_key: str = ""
    api_secret: str = ""
    api_passphrase: str = ""

    clob_url: str = "https://clob.polymarket.com/"
    gamma_url: str = "https://gamma-api.polymarket.com"

    http_proxy: Optional[str] = None

    @property
    def has_private_key(self) -> bool:
        return bool(self.private_key)

    @property
    def has_api_credentials(self) -> bool:
        return bool(self.api_key and self.api_secret and self.api_passphrase)
