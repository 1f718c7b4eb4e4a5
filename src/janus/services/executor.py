"""Order executor for limit buys, simulated or live.

The mode is fixed for the run. Simulated execution only records an
unfilled position; fills are decided later against the live ask.
Live execution signs and posts a GTC limit buy and records a position
only after the venue acknowledges it with an order id.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Protocol

from janus.core.errors import ConfigurationError, OrderStateUnknownError, OrderSubmissionError
from janus.core.logging import get_logger
from janus.domain.order import BuyOpportunity, ExecutionMode, OrderAck, Position
from janus.integrations.polymarket.types import OrderSide, TimeInForce
from janus.services.ledger import PositionLedger
from janus.services.metrics import MetricsEmitter

log = get_logger(__name__)

PRICE_TICK = Decimal("0.01")
SIZE_STEP = Decimal("0.01")


class OrderGateway(Protocol):
    """Protocol for CLOBClient session and submission."""

    async def authenticate(self) -> None:
        ...

    async def submit_limit_order(
        self,
        token_id: str,
        side: OrderSide,
        price: Decimal,
        size: Decimal,
        time_in_force: TimeInForce = TimeInForce.GTC,
    ) -> OrderAck:
        ...


def order_size(
    limit_price: Decimal,
    fixed_trade_amount: Decimal,
    shares: Optional[Decimal] = None,
) -> Decimal:
    """Shares to buy: explicit count if configured, else amount / price."""
    if shares is not None:
        return shares
    return fixed_trade_amount / limit_price


class OrderExecutor:
    """Places (or simulates) one limit buy per opportunity."""

    def __init__(
        self,
        mode: ExecutionMode,
        ledger: PositionLedger,
        fixed_trade_amount: Decimal,
        gateway: Optional[OrderGateway] = None,
        private_key_configured: bool = False,
        metrics: Optional[MetricsEmitter] = None,
    ):
        """Initialize the executor.

        Args:
            mode: SIMULATED or LIVE, fixed for the run.
            ledger: Ledger positions are recorded into.
            fixed_trade_amount: USD per order when no share count is set.
            gateway: Order submission collaborator, required for LIVE.
            private_key_configured: Whether signing credentials exist.
            metrics: Optional metrics emitter.
        """
        self._mode = mode
        self._ledger = ledger
        self._fixed_trade_amount = fixed_trade_amount
        self._gateway = gateway
        self._private_key_configured = private_key_configured
        self._metrics = metrics
        self._log = log.bind(component="order_executor", mode=mode.value)

    @property
    def mode(self) -> ExecutionMode:
        return self._mode

    def _record_metric(self, status: str) -> None:
        if self._metrics:
            self._metrics.record_order(self._mode.value.lower(), status)

    async def execute_limit_buy(
        self,
        opportunity: BuyOpportunity,
        limit_price: Decimal,
        shares: Optional[Decimal] = None,
    ) -> Position:
        """Buy the opportunity's token at ``limit_price``.

        Returns:
            The recorded Position.

        Raises:
            ConfigurationError: LIVE mode without signing credentials.
            OrderSubmissionError: The order was not acknowledged; nothing
                is recorded.
        """
        size = order_size(limit_price, self._fixed_trade_amount, shares)

        self._log.info(
            "placing_limit_buy",
            outcome=str(opportunity.outcome_type),
            token_id=opportunity.token_id,
            limit_price=str(limit_price),
            size=f"{size:.2f}",
            investment=f"{size * limit_price:.2f}",
            observed_bid=str(opportunity.observed_bid),
        )

        if self._mode == ExecutionMode.SIMULATED:
            self._log.info("simulated_order_not_placed", token_id=opportunity.token_id)
            self._record_metric("simulated")
            return self._ledger.record(opportunity, limit_price, size, simulated=True)

        return await self._execute_live(opportunity, limit_price, size)

    async def _execute_live(
        self,
        opportunity: BuyOpportunity,
        limit_price: Decimal,
        size: Decimal,
    ) -> Position:
        if not self._private_key_configured or self._gateway is None:
            raise ConfigurationError("private_key required for live trading")

        await self._gateway.authenticate()

        price = limit_price.quantize(PRICE_TICK, rounding=ROUND_HALF_UP)
        rounded_size = size.quantize(SIZE_STEP, rounding=ROUND_HALF_UP)
        if rounded_size <= 0:
            self._record_metric("rejected")
            raise OrderSubmissionError(
                f"Order size {size} rounds to zero", token_id=opportunity.token_id
            )

        try:
            ack = await self._gateway.submit_limit_order(
                token_id=opportunity.token_id,
                side=OrderSide.BUY,
                price=price,
                size=rounded_size,
                time_in_force=TimeInForce.GTC,
            )
        except OrderStateUnknownError:
            self._record_metric("state_unknown")
            raise
        except OrderSubmissionError:
            self._record_metric("failed")
            raise

        self._log.info(
            "limit_buy_placed",
            outcome=str(opportunity.outcome_type),
            order_id=ack.order_id,
            status=ack.status,
        )
        self._record_metric("placed")
        return self._ledger.record(opportunity, price, rounded_size, order_id=ack.order_id)
