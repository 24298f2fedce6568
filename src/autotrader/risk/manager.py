"""Pre-trade and exit risk engine.

Entry checks run in a fixed order and the first failure rejects:
  1. Trading window
  2. Max open positions (diversification)
  3. One position per symbol
  4. Max drawdown from the initial balance
  5. Max opening trades per UTC day
  6. Sizing: min(order amount, position-size cap, risk-per-trade cap),
     rejected below the minimum viable notional

Exit checks enforce stop-loss / take-profit on every open position and
gate signal-driven exits: they pass only when a threshold is crossed or
the decision urgency is high.

Uses RiskSettings for all thresholds. Rejections raise RiskRejected with
a machine-readable reason code.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, time, timezone
from decimal import ROUND_DOWN, Decimal
from enum import Enum
from typing import TYPE_CHECKING

from autotrader.config import RiskSettings
from autotrader.exceptions import RiskRejected
from autotrader.logging import get_logger
from autotrader.models import MarketTick, Position, PositionSide
from autotrader.signals.models import Action, Decision, Urgency

if TYPE_CHECKING:
    from autotrader.ledger.ledger import LedgerSnapshot

logger = get_logger(__name__)

#: Order sizes are rounded down to this step.
_SIZE_STEP = Decimal("0.00000001")

_HUNDRED = Decimal("100")


class ExitReason(str, Enum):
    """Why a position is being closed."""

    STOP_LOSS = "stop_loss"
    TAKE_PROFIT = "take_profit"
    SIGNAL = "signal"


@dataclass(frozen=True)
class ApprovedOrder:
    """An entry that passed every risk check."""

    symbol: str
    side: PositionSide
    notional: Decimal  # approved cash value, possibly reduced
    size: Decimal  # notional / price rounded down to _SIZE_STEP
    price: Decimal  # reference price the size was computed from
    downsized: bool


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RiskManager:
    """Validates candidate entries and exits against RiskSettings.

    Args:
        settings: Frozen risk limits.
        order_amount: Configured notional per entry before caps.
        clock: Returns the current aware datetime; injectable for tests.
    """

    def __init__(
        self,
        settings: RiskSettings,
        order_amount: Decimal,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._settings = settings
        self._order_amount = order_amount
        self._clock = clock

    @property
    def settings(self) -> RiskSettings:
        return self._settings

    def is_within_trading_window(self, now: datetime | None = None) -> bool:
        """Whether ``now`` (UTC) falls inside the configured window.

        Always True when the window is disabled. A window whose start is
        after its end wraps past midnight.
        """
        if not self._settings.trading_window_enabled:
            return True
        current: time = (now or self._clock()).astimezone(timezone.utc).time()
        start = self._settings.trading_window_start
        end = self._settings.trading_window_end
        if start <= end:
            return start <= current <= end
        return current >= start or current <= end

    def check_entry(
        self,
        decision: Decision,
        tick: MarketTick,
        snapshot: LedgerSnapshot,
        trades_today: int = 0,
    ) -> ApprovedOrder:
        """Validate a buy (or, with allow_short, sell) decision that opens exposure.

        Args:
            decision: The actionable decision for tick.symbol.
            tick: Current tick; its price is the sizing reference.
            snapshot: Ledger snapshot taken this cycle.
            trades_today: Opening trades already made this UTC day.

        Returns:
            The approved order with its final notional and size.

        Raises:
            RiskRejected: With the reason code of the first failing check.
        """
        s = self._settings
        symbol = tick.symbol

        if decision.action is Action.BUY:
            side = PositionSide.LONG
        elif decision.action is Action.SELL and s.allow_short:
            side = PositionSide.SHORT
        else:
            raise RiskRejected("no_entry_for_action", f"{decision.action.value} on {symbol}")

        # 1. Trading window
        if not self.is_within_trading_window():
            raise RiskRejected(
                "outside_trading_window",
                f"{s.trading_window_start}-{s.trading_window_end} UTC",
            )

        # 2. Diversification
        if len(snapshot.positions) >= s.max_open_positions:
            raise RiskRejected(
                "max_open_positions", f"{len(snapshot.positions)}/{s.max_open_positions}"
            )

        # 3. One position per symbol
        if snapshot.position_for(symbol) is not None:
            raise RiskRejected("position_exists", symbol)

        # 4. Drawdown
        drawdown = snapshot.drawdown_pct
        if drawdown > s.max_drawdown_pct:
            raise RiskRejected(
                "max_drawdown", f"{drawdown.quantize(Decimal('0.01'))}% > {s.max_drawdown_pct}%"
            )

        # 5. Daily trade cap
        if trades_today >= s.max_daily_trades:
            raise RiskRejected("max_daily_trades", f"{trades_today}/{s.max_daily_trades}")

        # 6. Sizing
        balance = snapshot.balance
        position_cap = balance * s.max_position_size_pct / _HUNDRED
        risk_cap = balance * s.max_risk_per_trade_pct / s.stop_loss_pct
        notional = min(self._order_amount, position_cap, risk_cap)

        size = (notional / tick.price).quantize(_SIZE_STEP, rounding=ROUND_DOWN)
        if notional < s.min_order_notional or size * tick.price < s.min_order_notional:
            raise RiskRejected(
                "below_min_notional", f"{notional} < {s.min_order_notional}"
            )

        order = ApprovedOrder(
            symbol=symbol,
            side=side,
            notional=notional,
            size=size,
            price=tick.price,
            downsized=notional < self._order_amount,
        )

        if order.downsized:
            logger.info(
                "order_downsized",
                symbol=symbol,
                requested=str(self._order_amount),
                approved=str(notional),
                position_cap=str(position_cap),
                risk_cap=str(risk_cap),
            )
        return order

    def check_forced_exit(self, position: Position) -> ExitReason | None:
        """Stop-loss / take-profit check on a marked-to-market position."""
        pnl_pct = position.unrealized_pnl_pct
        if pnl_pct <= -self._settings.stop_loss_pct:
            return ExitReason.STOP_LOSS
        if pnl_pct >= self._settings.take_profit_pct:
            return ExitReason.TAKE_PROFIT
        return None

    def check_signal_exit(self, position: Position, decision: Decision) -> ExitReason:
        """Validate a strategy-driven close of ``position``.

        Approved when stop-loss or take-profit is already crossed, or when
        the decision urgency is high (bypassing the thresholds).

        Raises:
            RiskRejected: "exit_thresholds_not_met" otherwise.
        """
        forced = self.check_forced_exit(position)
        if forced is not None:
            return forced
        if decision.urgency is Urgency.HIGH:
            return ExitReason.SIGNAL
        raise RiskRejected(
            "exit_thresholds_not_met",
            f"{position.symbol} pnl {position.unrealized_pnl_pct.quantize(Decimal('0.01'))}%"
            f" urgency {decision.urgency.value}",
        )
