"""Abstract order execution gateway.

Defines the contract for order execution. Both SimulatedGateway and
LiveGateway implement this ABC, so the scheduler runs identically in
simulation and live mode without branching on the gateway type.
"""

from abc import ABC, abstractmethod

from autotrader.models import OrderRequest, OrderResult


class OrderGateway(ABC):
    """Abstract base class for order gateways.

    The concrete gateway is injected at startup based on TradingSettings.mode.
    """

    @abstractmethod
    async def submit(self, request: OrderRequest) -> OrderResult:
        """Execute an order and return the fill.

        Args:
            request: Order parameters (symbol, side, quantity, type).

        Returns:
            OrderResult with the filled quantity and price.

        Raises:
            GatewayRejected: If the order is refused or cannot be filled.
        """
        ...
