"""Domain models - markets, snapshots, opportunities, positions."""

from janus.domain.market import (
    OUTCOME_DOWN,
    OUTCOME_UP,
    AssetQuote,
    Market,
    MarketSnapshot,
    OutcomeToken,
)
from janus.domain.order import (
    BuyOpportunity,
    ExecutionMode,
    OrderAck,
    OrderType,
    OutcomeType,
    Position,
    PositionKey,
)

__all__ = [
    # Market
    "OUTCOME_UP",
    "OUTCOME_DOWN",
    "OutcomeToken",
    "Market",
    "AssetQuote",
    "MarketSnapshot",
    # Order
    "OrderType",
    "ExecutionMode",
    "OutcomeType",
    "BuyOpportunity",
    "PositionKey",
    "Position",
    "OrderAck",
]
