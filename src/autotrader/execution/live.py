"""Live order gateway via exchange client.

Delegates orders to the ExchangeClient (ccxt wrapper). All monetary
values are converted through Decimal(str(value)) to avoid float
precision loss. Exchange errors surface as GatewayRejected.
"""

import time
from decimal import Decimal

from autotrader.exceptions import GatewayRejected
from autotrader.exchange.client import ExchangeClient
from autotrader.execution.gateway import OrderGateway
from autotrader.logging import get_logger
from autotrader.models import OrderRequest, OrderResult

logger = get_logger(__name__)


class LiveGateway(OrderGateway):
    """Real order gateway that delegates to an exchange client.

    Args:
        exchange_client: The exchange client to place real orders through.
    """

    def __init__(self, exchange_client: ExchangeClient) -> None:
        self._exchange_client = exchange_client

    async def submit(self, request: OrderRequest) -> OrderResult:
        """Place a real order and parse the ccxt result.

        Raises:
            GatewayRejected: If the exchange raises, or reports no fill.
        """
        market_symbol = self._exchange_client.market_symbol(request.symbol)
        try:
            result = await self._exchange_client.create_order(
                symbol=market_symbol,
                order_type=request.order_type.value,
                side=request.side.value,
                amount=float(request.quantity),
            )
        except Exception as exc:
            logger.warning(
                "live_order_rejected",
                symbol=market_symbol,
                side=request.side.value,
                error=str(exc),
            )
            raise GatewayRejected(f"Exchange refused {request.side.value} {market_symbol}: {exc}") from exc

        order_id = str(result.get("id", ""))
        filled_qty = Decimal(str(result.get("filled") or 0))
        average_price = result.get("average") or result.get("price")
        filled_price = Decimal(str(average_price)) if average_price else Decimal("0")

        if filled_qty <= 0 or filled_price <= 0:
            raise GatewayRejected(
                f"Order {order_id} for {market_symbol} not filled "
                f"(status={result.get('status')})"
            )

        timestamp = result.get("timestamp")
        ts = float(timestamp) / 1000.0 if timestamp else time.time()

        logger.info(
            "live_order_filled",
            order_id=order_id,
            symbol=market_symbol,
            side=request.side.value,
            quantity=str(filled_qty),
            fill_price=str(filled_price),
        )

        return OrderResult(
            order_id=order_id,
            symbol=request.symbol,
            side=request.side,
            filled_qty=filled_qty,
            filled_price=filled_price,
            timestamp=ts,
            is_simulated=False,
        )
