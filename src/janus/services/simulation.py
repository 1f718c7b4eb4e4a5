"""Simulated fills for paper-traded limit buys.

A simulated buy rests like a real GTC bid: it fills only once someone
is willing to sell at or below the limit, i.e. when the best ask is
positive and no higher than the position's price. Only the current
period's positions are checked; earlier periods' markets have closed.
"""

import asyncio
from decimal import Decimal
from typing import Optional, Protocol

from janus.core.errors import QuoteUnavailableError
from janus.core.logging import get_logger
from janus.domain.order import Position
from janus.services.ledger import PositionLedger
from janus.services.metrics import MetricsEmitter

log = get_logger(__name__)


class AskSource(Protocol):
    """Protocol for CLOBClient ask reads."""

    async def get_best_ask(self, token_id: str) -> Optional[Decimal]:
        ...


class SimulatedFillTracker:
    """Marks pending simulated positions filled from live asks."""

    def __init__(
        self,
        quotes: AskSource,
        ledger: PositionLedger,
        metrics: Optional[MetricsEmitter] = None,
    ):
        self._quotes = quotes
        self._ledger = ledger
        self._metrics = metrics
        self._log = log.bind(component="simulated_fills")

    async def _best_ask(self, position: Position) -> Optional[Decimal]:
        try:
            return await self._quotes.get_best_ask(position.token_id)
        except QuoteUnavailableError as e:
            self._log.debug("ask_unavailable", token_id=position.token_id, error=str(e))
            return None

    async def check_fills(self, period_timestamp: int) -> list[Position]:
        """Fill every pending simulated buy whose ask crossed its limit.

        Returns:
            Positions filled by this call.
        """
        pending = self._ledger.pending_simulated(period_timestamp)
        if not pending:
            return []

        asks = await asyncio.gather(*(self._best_ask(p) for p in pending))

        filled = []
        for position, ask in zip(pending, asks):
            if ask is None or ask <= 0 or ask > position.price:
                continue
            self._ledger.mark_filled(position.key, position.price)
            self._log.info(
                "simulated_fill",
                outcome=str(position.outcome_type),
                token_id=position.token_id,
                ask=str(ask),
                limit_price=str(position.price),
                size=str(position.size),
            )
            if self._metrics:
                self._metrics.record_simulated_fill(position.outcome_type.asset)
            filled.append(position)
        return filled
