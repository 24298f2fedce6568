"""Simulation gateway with an internal fill model.

Every market order fills completely and instantly at the last tick price
carried on the request. No slippage or fees are applied, which keeps the
ledger arithmetic exact.
"""

from uuid import uuid4

from autotrader.exceptions import GatewayRejected
from autotrader.execution.gateway import OrderGateway
from autotrader.logging import get_logger
from autotrader.models import OrderRequest, OrderResult

logger = get_logger(__name__)


class SimulatedGateway(OrderGateway):
    """Fills orders at ``request.reference_price``. All results have is_simulated=True."""

    async def submit(self, request: OrderRequest) -> OrderResult:
        if request.reference_price is None or request.reference_price <= 0:
            raise GatewayRejected(f"No reference price for simulated fill of {request.symbol}")
        if request.quantity <= 0:
            raise GatewayRejected(f"Non-positive quantity {request.quantity} for {request.symbol}")

        order_id = f"sim_{uuid4().hex[:12]}"

        logger.info(
            "simulated_order_filled",
            order_id=order_id,
            symbol=request.symbol,
            side=request.side.value,
            quantity=str(request.quantity),
            fill_price=str(request.reference_price),
        )

        return OrderResult(
            order_id=order_id,
            symbol=request.symbol,
            side=request.side,
            filled_qty=request.quantity,
            filled_price=request.reference_price,
            is_simulated=True,
        )
