# Polymarket Integration Layer
# Gamma market lookup and CLOB order-book / order submission

from janus.integrations.polymarket.types import (
    OrderSide,
    PolymarketSettings,
    TimeInForce,
)

from janus.integrations.polymarket.gamma import (
    GammaClient,
    GammaClientError,
)

from janus.integrations.polymarket.clob import (
    CLOBClient,
    CLOBClientError,
)

__all__ = [
    # Enums
    "OrderSide",
    "TimeInForce",
    # Settings
    "PolymarketSettings",
    # Clients
    "GammaClient",
    "CLOBClient",
    # Errors
    "GammaClientError",
    "CLOBClientError",
]
