"""Position ledger: which (period, token) pairs already have a buy.

Append-only for the process lifetime. Each period has a distinct
timestamp, so old entries never collide with new ones. Only the
dispatcher's single loop writes here, so no locking is needed.
"""

from decimal import Decimal
from typing import Optional

from janus.core.logging import get_logger
from janus.domain.order import BuyOpportunity, OutcomeType, Position, PositionKey

log = get_logger(__name__)


class PositionLedger:
    """In-memory record of dispatched buys."""

    def __init__(self) -> None:
        self._positions: dict[PositionKey, Position] = {}
        self._log = log.bind(component="position_ledger")

    def __len__(self) -> int:
        return len(self._positions)

    def has_active_position(self, period_timestamp: int, outcome_type: OutcomeType) -> bool:
        """True iff a non-closed position exists for this period and outcome."""
        return any(
            p.period_timestamp == period_timestamp
            and p.outcome_type == outcome_type
            and not p.closed
            for p in self._positions.values()
        )

    def record(
        self,
        opportunity: BuyOpportunity,
        price: Decimal,
        size: Decimal,
        order_id: Optional[str] = None,
        simulated: bool = False,
    ) -> Position:
        """Insert a position for the opportunity's (period, token).

        Callers check ``has_active_position`` first; the ledger does not
        re-validate.
        """
        position = Position(
            token_id=opportunity.token_id,
            market_id=opportunity.market_id,
            outcome_type=opportunity.outcome_type,
            period_timestamp=opportunity.period_timestamp,
            price=price,
            size=size,
            order_id=order_id,
            simulated=simulated,
        )
        self._positions[position.key] = position
        self._log.info(
            "position_recorded",
            outcome=str(position.outcome_type),
            token_id=position.token_id,
            period=position.period_timestamp,
            size=str(size),
            simulated=simulated,
        )
        return position

    def get(self, key: PositionKey) -> Optional[Position]:
        return self._positions.get(key)

    def mark_closed(self, key: PositionKey) -> bool:
        """Flag a position as sold/redeemed. Returns False if unknown."""
        position = self._positions.get(key)
        if position is None:
            return False
        position.closed = True
        return True

    def positions_for_period(self, period_timestamp: int) -> list[Position]:
        return [p for p in self._positions.values() if p.period_timestamp == period_timestamp]

    def pending_simulated(self, period_timestamp: int) -> list[Position]:
        """Simulated buys in the period still waiting for a fill."""
        return [
            p
            for p in self.positions_for_period(period_timestamp)
            if p.simulated and not p.filled and not p.closed
        ]

    def mark_filled(self, key: PositionKey, fill_price: Decimal) -> bool:
        """Flag a position as filled at ``fill_price``. Returns False if unknown."""
        position = self._positions.get(key)
        if position is None:
            return False
        position.filled = True
        position.fill_price = fill_price
        self._log.info(
            "position_filled",
            outcome=str(position.outcome_type),
            token_id=position.token_id,
            period=position.period_timestamp,
            fill_price=str(fill_price),
            simulated=position.simulated,
        )
        return True
