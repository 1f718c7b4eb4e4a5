"""Turns a snapshot into buy opportunities.

Every enabled asset's outcome tokens whose book was read become one
opportunity each at the configured limit price, including tokens whose
book has no bids yet. The observed bid rides along for logging only.
Markets left over from an earlier period are skipped. Deduplication
against open positions belongs to the dispatcher.
"""

from decimal import Decimal

from janus.domain.market import MarketSnapshot
from janus.domain.order import BuyOpportunity, OrderType, OutcomeType


def build_opportunities(snapshot: MarketSnapshot, limit_price: Decimal) -> list[BuyOpportunity]:
    opportunities = []
    for asset, quote in snapshot.quotes.items():
        if not quote.enabled or not quote.market.is_tradable:
            continue
        if not quote.is_current(snapshot.period_timestamp):
            continue
        for token in quote.market.tokens:
            if not quote.has_quote(token.token_id):
                continue
            opportunities.append(
                BuyOpportunity(
                    token_id=token.token_id,
                    market_id=quote.market.condition_id,
                    outcome_type=OutcomeType(asset, token.outcome),
                    price=limit_price,
                    period_timestamp=snapshot.period_timestamp,
                    elapsed_seconds=snapshot.elapsed_seconds,
                    remaining_seconds=snapshot.remaining_seconds,
                    observed_bid=quote.bid_for(token.token_id),
                    order_type=OrderType.LIMIT,
                )
            )
    return opportunities
