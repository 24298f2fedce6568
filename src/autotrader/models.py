"""Shared data models for the trading agent.

CRITICAL: All monetary values use Decimal. Never use float for prices, sizes, or P&L.
"""

import time
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

# Every cash amount the ledger books is a multiple of this step, so sums of
# costs and P&L stay exact within the default 28-digit Decimal context.
MONEY_QUANTUM = Decimal("0.000000000001")


def to_money(value: Decimal) -> Decimal:
    """Round a cash amount to MONEY_QUANTUM."""
    return value.quantize(MONEY_QUANTUM)


class OrderSide(str, Enum):
    """Order direction."""

    BUY = "buy"
    SELL = "sell"


class OrderType(str, Enum):
    """Order type."""

    MARKET = "market"
    LIMIT = "limit"


class PositionSide(str, Enum):
    """Position direction."""

    LONG = "long"
    SHORT = "short"

    @property
    def opening_side(self) -> OrderSide:
        return OrderSide.BUY if self is PositionSide.LONG else OrderSide.SELL

    @property
    def closing_side(self) -> OrderSide:
        return OrderSide.SELL if self is PositionSide.LONG else OrderSide.BUY


class TradeMode(str, Enum):
    """Whether fills come from the internal fill model or an exchange."""

    SIMULATION = "simulation"
    LIVE = "live"


@dataclass(frozen=True)
class MarketTick:
    """Single price observation for one symbol, as produced by the feed."""

    symbol: str
    price: Decimal
    change_24h_pct: Decimal
    volume: Decimal
    timestamp: float  # Unix seconds

    def __post_init__(self) -> None:
        if self.price <= 0:
            raise ValueError(f"Tick price must be positive, got {self.price} for {self.symbol}")


@dataclass
class Position:
    """An open position. Owned and mutated exclusively by AccountLedger."""

    id: str
    symbol: str
    side: PositionSide
    size: Decimal
    entry_price: Decimal
    current_price: Decimal
    unrealized_pnl: Decimal
    opened_at: float

    @property
    def cost(self) -> Decimal:
        """Cash reserved when the position was opened."""
        return to_money(self.size * self.entry_price)

    @property
    def unrealized_pnl_pct(self) -> Decimal:
        """Unrealized P&L as a percentage of the entry cost."""
        if self.cost == 0:
            return Decimal("0")
        return self.unrealized_pnl / self.cost * Decimal("100")


@dataclass(frozen=True)
class TradeRecord:
    """Immutable record of an executed fill (opening or closing)."""

    id: str
    symbol: str
    side: OrderSide
    price: Decimal
    amount: Decimal
    confidence: Decimal
    timestamp: float
    mode: TradeMode
    realized_profit: Decimal | None = None  # only on closing trades
    reason: str = "signal"

    @property
    def is_closing(self) -> bool:
        return self.realized_profit is not None


@dataclass
class OrderRequest:
    """Request to place an order through a gateway."""

    symbol: str
    side: OrderSide
    quantity: Decimal
    order_type: OrderType = OrderType.MARKET
    reference_price: Decimal | None = None  # last tick price, used by simulated fills


@dataclass
class OrderResult:
    """Result of a filled order."""

    order_id: str
    symbol: str
    side: OrderSide
    filled_qty: Decimal
    filled_price: Decimal
    timestamp: float = field(default_factory=time.time)
    is_simulated: bool = False
