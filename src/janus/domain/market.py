"""
Market domain models.

A Market is one period's up/down contract for one asset. Markets are
immutable; every new period produces fresh instances from a new lookup.
"""
import re
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Mapping, Optional

OUTCOME_UP = "Up"
OUTCOME_DOWN = "Down"

_SLUG_TIMESTAMP = re.compile(r"-(\d+)$")


@dataclass(frozen=True)
class OutcomeToken:
    """One tradable side of a binary market."""
    token_id: str
    outcome: str  # "Up" or "Down"


@dataclass(frozen=True)
class Market:
    """A single period's 15-minute up/down market for one asset."""
    condition_id: str
    slug: str
    asset: str
    question: str = ""
    active: bool = True
    closed: bool = False
    tokens: tuple[OutcomeToken, ...] = ()

    @classmethod
    def placeholder(cls, asset: str) -> "Market":
        """Permanently inactive stand-in for a disabled or unresolvable asset."""
        name = asset.lower()
        return cls(
            condition_id=f"dummy_{name}_fallback",
            slug=f"{name}-updown-15m-fallback",
            asset=asset.upper(),
            question=f"{asset.upper()} Trading Disabled",
            active=False,
            closed=True,
        )

    @property
    def is_tradable(self) -> bool:
        return self.active and not self.closed

    @property
    def is_placeholder(self) -> bool:
        return self.condition_id.startswith("dummy_") and self.condition_id.endswith("_fallback")

    @property
    def period_timestamp(self) -> Optional[int]:
        """Period start encoded in the slug, e.g. btc-updown-15m-1737158400."""
        match = _SLUG_TIMESTAMP.search(self.slug)
        return int(match.group(1)) if match else None

    def token_for(self, outcome: str) -> Optional[OutcomeToken]:
        for token in self.tokens:
            if token.outcome.lower() == outcome.lower():
                return token
        return None

    @property
    def up_token(self) -> Optional[OutcomeToken]:
        return self.token_for(OUTCOME_UP)

    @property
    def down_token(self) -> Optional[OutcomeToken]:
        return self.token_for(OUTCOME_DOWN)


@dataclass(frozen=True)
class AssetQuote:
    """Best bids for one asset's market at snapshot time.

    ``bids`` maps token id to best bid. A token that is present with
    ``None`` has an empty book; a token that is absent could not be read
    this tick.
    """
    asset: str
    market: Market
    enabled: bool
    bids: Mapping[str, Optional[Decimal]] = field(default_factory=dict)

    def bid_for(self, token_id: str) -> Optional[Decimal]:
        return self.bids.get(token_id)

    def has_quote(self, token_id: str) -> bool:
        """Whether the token's book was read, empty or not."""
        return token_id in self.bids

    def is_current(self, period_timestamp: int) -> bool:
        """Whether the market belongs to the given period."""
        return self.market.period_timestamp == period_timestamp


@dataclass(frozen=True)
class MarketSnapshot:
    """Point-in-time view across all tracked assets for one period."""
    period_timestamp: int
    remaining_seconds: float
    elapsed_seconds: float
    quotes: Mapping[str, AssetQuote] = field(default_factory=dict)

    @property
    def is_closed(self) -> bool:
        return self.remaining_seconds <= 0

    def format_prices(self) -> str:
        """One-line summary of bids per asset for the tick log."""
        parts = []
        for asset, quote in self.quotes.items():
            if not quote.market.is_tradable:
                continue
            sides = []
            for token in quote.market.tokens:
                if not quote.has_quote(token.token_id):
                    shown = "n/a"
                else:
                    bid = quote.bid_for(token.token_id)
                    shown = bid if bid is not None else "-"
                sides.append(f"{token.outcome} {shown}")
            label = asset if quote.is_current(self.period_timestamp) else f"{asset} (stale)"
            parts.append(f"{label}: " + " / ".join(sides))
        return " | ".join(parts) if parts else "no tradable markets"
