"""Virtual account ledger: cash balance, open positions, realized P&L.

The ledger is the only mutable shared state in the agent. Every mutation
runs under one asyncio.Lock and is computed on local values first, then
committed in a single step, so no partial application is observable.

Conservation law, verified on every open and close:

    balance + sum(size * entry_price) == initial_balance + realized_profit - realized_loss

Both long and short positions reserve ``size * entry_price`` of cash on
open; closing returns that cost plus the signed realized P&L. Costs and
P&L are rounded to ``MONEY_QUANTUM`` before they are booked, which keeps
the check above exact. A partial close shrinks the position in place and
releases the difference between the old and the new cost.
"""

import asyncio
import time
from collections.abc import Callable
from dataclasses import dataclass, replace
from decimal import Decimal
from uuid import uuid4

from autotrader.exceptions import (
    DuplicatePosition,
    InsufficientBalance,
    InvariantViolation,
    PositionNotFound,
)
from autotrader.ledger.stats import trade_stats
from autotrader.logging import get_logger
from autotrader.models import (
    MarketTick,
    Position,
    PositionSide,
    TradeMode,
    TradeRecord,
    to_money,
)

logger = get_logger(__name__)

_ZERO = Decimal("0")


@dataclass(frozen=True)
class LedgerSnapshot:
    """Point-in-time copy of the ledger for risk checks and readers."""

    balance: Decimal
    initial_balance: Decimal
    realized_profit: Decimal
    realized_loss: Decimal
    positions: tuple[Position, ...]

    @property
    def equity(self) -> Decimal:
        """Cash plus the marked value of every open position."""
        return self.balance + sum(
            (p.cost + p.unrealized_pnl for p in self.positions), _ZERO
        )

    @property
    def drawdown_pct(self) -> Decimal:
        """Decline of equity from the initial balance, in percent (0 if up)."""
        if self.initial_balance <= 0:
            return _ZERO
        drop = self.initial_balance - self.equity
        return max(drop / self.initial_balance * Decimal("100"), _ZERO)

    def position_for(self, symbol: str) -> Position | None:
        return next((p for p in self.positions if p.symbol == symbol), None)


def _realized_pnl(position: Position, exit_price: Decimal, size: Decimal | None = None) -> Decimal:
    size = position.size if size is None else size
    if position.side is PositionSide.LONG:
        return to_money((exit_price - position.entry_price) * size)
    return to_money((position.entry_price - exit_price) * size)


class AccountLedger:
    """Owns the virtual account and applies fills atomically.

    Args:
        initial_balance: Starting cash.
        mode: Recorded on every TradeRecord.
        clock: Time source (Unix seconds), injectable for tests.
    """

    def __init__(
        self,
        initial_balance: Decimal,
        mode: TradeMode = TradeMode.SIMULATION,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if initial_balance <= 0:
            raise ValueError("initial_balance must be positive")
        self._initial_balance = initial_balance
        self._balance = initial_balance
        self._realized_profit = _ZERO
        self._realized_loss = _ZERO
        self._positions: dict[str, Position] = {}
        self._trades: list[TradeRecord] = []
        self._mode = mode
        self._clock = clock
        self._lock = asyncio.Lock()

    # ---- mutations ----

    async def open_position(
        self,
        symbol: str,
        side: PositionSide,
        size: Decimal,
        price: Decimal,
        confidence: Decimal = _ZERO,
        reason: str = "signal",
    ) -> Position:
        """Open a new position, reserving ``size * price`` of cash.

        Args:
            symbol: Symbol to open.
            side: LONG or SHORT.
            size: Positive quantity.
            price: Fill price.
            confidence: Signal confidence recorded on the trade.
            reason: Why the position was opened.

        Returns:
            A copy of the opened Position.

        Raises:
            ValueError: If size or price is not positive.
            DuplicatePosition: If a position is already open for symbol.
            InsufficientBalance: If the cost exceeds the cash balance.
            InvariantViolation: If the resulting state breaks conservation.
        """
        if size <= 0 or price <= 0:
            raise ValueError(f"size and price must be positive (size={size}, price={price})")

        async with self._lock:
            if any(p.symbol == symbol for p in self._positions.values()):
                raise DuplicatePosition(f"Position already open for {symbol}")

            cost = to_money(size * price)
            if cost > self._balance:
                raise InsufficientBalance(
                    f"Cost {cost} for {symbol} exceeds balance {self._balance}"
                )

            now = self._clock()
            position = Position(
                id=uuid4().hex[:16],
                symbol=symbol,
                side=side,
                size=size,
                entry_price=price,
                current_price=price,
                unrealized_pnl=_ZERO,
                opened_at=now,
            )
            new_balance = self._balance - cost
            new_positions = {**self._positions, position.id: position}
            self._verify(new_balance, new_positions, self._realized_profit, self._realized_loss)

            trade = TradeRecord(
                id=uuid4().hex[:16],
                symbol=symbol,
                side=side.opening_side,
                price=price,
                amount=size,
                confidence=confidence,
                timestamp=now,
                mode=self._mode,
                reason=reason,
            )

            self._balance = new_balance
            self._positions = new_positions
            self._trades.append(trade)

        logger.info(
            "position_opened",
            position_id=position.id,
            symbol=symbol,
            side=side.value,
            size=str(size),
            price=str(price),
            cost=str(cost),
            balance=str(new_balance),
        )
        return replace(position)

    async def close_position(
        self,
        position_id: str,
        exit_price: Decimal,
        confidence: Decimal = _ZERO,
        reason: str = "signal",
        size: Decimal | None = None,
    ) -> TradeRecord:
        """Close an open position at ``exit_price`` and realize its P&L.

        Args:
            position_id: ID of the open position.
            exit_price: Fill price for the closing trade.
            confidence: Signal confidence recorded on the trade.
            reason: Why the position was closed (signal, stop_loss, take_profit).
            size: Quantity actually filled. Defaults to the whole position;
                anything smaller closes part of it and keeps the rest open.

        Returns:
            The closing TradeRecord (realized_profit set).

        Raises:
            ValueError: If exit_price or size is not positive, or size
                exceeds the open size.
            PositionNotFound: If position_id is not open.
            InvariantViolation: If the resulting state breaks conservation.
        """
        if exit_price <= 0:
            raise ValueError(f"exit_price must be positive, got {exit_price}")
        if size is not None and size <= 0:
            raise ValueError(f"size must be positive, got {size}")

        async with self._lock:
            position = self._positions.get(position_id)
            if position is None:
                raise PositionNotFound(f"No open position with id {position_id}")

            closed_size = position.size if size is None else size
            if closed_size > position.size:
                raise ValueError(
                    f"Cannot close {closed_size} of {position.symbol}, only {position.size} open"
                )

            pnl = _realized_pnl(position, exit_price, closed_size)
            new_positions = {
                pid: p for pid, p in self._positions.items() if pid != position_id
            }
            released = position.cost
            if closed_size < position.size:
                remaining = replace(position, size=position.size - closed_size)
                remaining.unrealized_pnl = _realized_pnl(remaining, remaining.current_price)
                new_positions[position_id] = remaining
                released = position.cost - remaining.cost

            new_balance = self._balance + released + pnl
            new_profit = self._realized_profit + (pnl if pnl > 0 else _ZERO)
            new_loss = self._realized_loss + (-pnl if pnl < 0 else _ZERO)
            self._verify(new_balance, new_positions, new_profit, new_loss)

            trade = TradeRecord(
                id=uuid4().hex[:16],
                symbol=position.symbol,
                side=position.side.closing_side,
                price=exit_price,
                amount=closed_size,
                confidence=confidence,
                timestamp=self._clock(),
                mode=self._mode,
                realized_profit=pnl,
                reason=reason,
            )

            self._balance = new_balance
            self._realized_profit = new_profit
            self._realized_loss = new_loss
            self._positions = new_positions
            self._trades.append(trade)

        logger.info(
            "position_closed",
            position_id=position_id,
            symbol=position.symbol,
            side=position.side.value,
            size=str(closed_size),
            remaining=str(position.size - closed_size),
            exit_price=str(exit_price),
            realized_pnl=str(pnl),
            reason=reason,
            balance=str(new_balance),
        )
        return trade

    async def mark_to_market(self, tick: MarketTick) -> Position | None:
        """Update current price and unrealized P&L of the tick's symbol.

        Never changes balance or the number of positions.

        Returns:
            A copy of the updated Position, or None if none is open.
        """
        async with self._lock:
            position = next(
                (p for p in self._positions.values() if p.symbol == tick.symbol), None
            )
            if position is None:
                return None
            position.current_price = tick.price
            position.unrealized_pnl = _realized_pnl(position, tick.price)
            return replace(position)

    # ---- invariant ----

    def _verify(
        self,
        balance: Decimal,
        positions: dict[str, Position],
        realized_profit: Decimal,
        realized_loss: Decimal,
    ) -> None:
        held = sum((p.cost for p in positions.values()), _ZERO)
        expected = self._initial_balance + realized_profit - realized_loss
        if balance + held != expected:
            raise InvariantViolation(
                f"Conservation broken: balance {balance} + held {held} "
                f"!= {expected} (initial {self._initial_balance}, "
                f"profit {realized_profit}, loss {realized_loss})"
            )

    def verify_invariant(self) -> None:
        """Check the conservation law on the committed state.

        Raises:
            InvariantViolation: If it does not hold.
        """
        self._verify(
            self._balance, self._positions, self._realized_profit, self._realized_loss
        )

    # ---- read-only accessors ----

    @property
    def balance(self) -> Decimal:
        return self._balance

    @property
    def initial_balance(self) -> Decimal:
        return self._initial_balance

    @property
    def realized_profit(self) -> Decimal:
        return self._realized_profit

    @property
    def realized_loss(self) -> Decimal:
        return self._realized_loss

    @property
    def mode(self) -> TradeMode:
        return self._mode

    def snapshot(self) -> LedgerSnapshot:
        """Return a frozen copy of the current ledger state."""
        return LedgerSnapshot(
            balance=self._balance,
            initial_balance=self._initial_balance,
            realized_profit=self._realized_profit,
            realized_loss=self._realized_loss,
            positions=tuple(replace(p) for p in self._positions.values()),
        )

    def equity(self) -> Decimal:
        return self.snapshot().equity

    def get_open_positions(self) -> list[Position]:
        """Return copies of all open positions."""
        return [replace(p) for p in self._positions.values()]

    def get_position(self, position_id: str) -> Position | None:
        position = self._positions.get(position_id)
        return replace(position) if position is not None else None

    def get_position_for_symbol(self, symbol: str) -> Position | None:
        position = next(
            (p for p in self._positions.values() if p.symbol == symbol), None
        )
        return replace(position) if position is not None else None

    def get_trades(self, limit: int | None = None) -> list[TradeRecord]:
        """Return trade history, oldest first; ``limit`` keeps the newest N."""
        if limit is None:
            return list(self._trades)
        return self._trades[-limit:] if limit > 0 else []

    def count_opens_since(self, since: float) -> int:
        """Number of opening trades at or after ``since`` (Unix seconds)."""
        return sum(1 for t in self._trades if not t.is_closing and t.timestamp >= since)

    def get_trade_stats(self) -> dict:
        """Aggregate statistics over closing trades (see ledger.stats)."""
        return trade_stats(self._trades)

    def dump(self) -> dict:
        """Full ledger state as strings, for critical-error logging."""
        return {
            "balance": str(self._balance),
            "initial_balance": str(self._initial_balance),
            "realized_profit": str(self._realized_profit),
            "realized_loss": str(self._realized_loss),
            "positions": [
                {
                    "id": p.id,
                    "symbol": p.symbol,
                    "side": p.side.value,
                    "size": str(p.size),
                    "entry_price": str(p.entry_price),
                    "current_price": str(p.current_price),
                    "unrealized_pnl": str(p.unrealized_pnl),
                }
                for p in self._positions.values()
            ],
            "trade_count": len(self._trades),
        }
