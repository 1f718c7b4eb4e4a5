"""
Order domain models.

Opportunities are transient intents; Positions record that a buy was
dispatched for a (period, token) pair.
"""
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import NamedTuple, Optional


class OrderType(str, Enum):
    """How an opportunity should be executed."""
    LIMIT = "LIMIT"
    MARKET = "MARKET"


class ExecutionMode(str, Enum):
    """Execution mode, fixed for the lifetime of a run."""
    SIMULATED = "SIMULATED"
    LIVE = "LIVE"


@dataclass(frozen=True)
class OutcomeType:
    """Asset + outcome tag, e.g. BTC Up."""
    asset: str
    outcome: str

    def __str__(self) -> str:
        return f"{self.asset} {self.outcome}"


@dataclass(frozen=True)
class BuyOpportunity:
    """A candidate buy for one outcome token in the current period."""
    token_id: str
    market_id: str
    outcome_type: OutcomeType
    price: Decimal
    period_timestamp: int
    elapsed_seconds: float
    remaining_seconds: float
    observed_bid: Optional[Decimal] = None
    order_type: OrderType = OrderType.LIMIT


class PositionKey(NamedTuple):
    """Ledger key: one position per token per period."""
    period_timestamp: int
    token_id: str


@dataclass
class Position:
    """A dispatched buy.

    Only the fill fields and ``closed`` change after creation. Simulated
    buys start unfilled and fill once the ask reaches the limit price.
    """
    token_id: str
    market_id: str
    outcome_type: OutcomeType
    period_timestamp: int
    price: Decimal
    size: Decimal
    order_id: Optional[str] = None
    simulated: bool = False
    filled: bool = False
    fill_price: Optional[Decimal] = None
    closed: bool = False

    @property
    def key(self) -> PositionKey:
        return PositionKey(self.period_timestamp, self.token_id)

    @property
    def cost(self) -> Decimal:
        return self.price * self.size


@dataclass(frozen=True)
class OrderAck:
    """Venue acknowledgment of a submitted order."""
    order_id: str
    status: str
