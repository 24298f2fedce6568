"""Order execution gateways (simulated and live)."""

from autotrader.execution.gateway import OrderGateway
from autotrader.execution.live import LiveGateway
from autotrader.execution.simulated import SimulatedGateway

__all__ = ["LiveGateway", "OrderGateway", "SimulatedGateway"]
