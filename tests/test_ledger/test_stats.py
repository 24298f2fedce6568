"""Tests for trade statistics over closing trades."""

from decimal import Decimal

from autotrader.ledger.stats import max_drawdown, trade_stats, win_rate
from autotrader.models import OrderSide, TradeMode, TradeRecord


def _trade(profit: str | None, ts: float) -> TradeRecord:
    return TradeRecord(
        id=f"t{ts}",
        symbol="BTC",
        side=OrderSide.SELL if profit is not None else OrderSide.BUY,
        price=Decimal("100"),
        amount=Decimal("1"),
        confidence=Decimal("70"),
        timestamp=ts,
        mode=TradeMode.SIMULATION,
        realized_profit=Decimal(profit) if profit is not None else None,
    )


def test_empty_history() -> None:
    assert win_rate([]) is None
    assert max_drawdown([]) is None
    stats = trade_stats([])
    assert stats["total_trades"] == 0
    assert stats["total_profit"] == Decimal("0")


def test_opening_trades_are_ignored() -> None:
    trades = [_trade(None, 1), _trade("5", 2), _trade(None, 3)]
    assert win_rate(trades) == Decimal("1.000")
    assert trade_stats(trades)["total_trades"] == 1


def test_win_rate_rounds_to_three_places() -> None:
    trades = [_trade("1", 1), _trade("-1", 2), _trade("-1", 3)]
    assert win_rate(trades) == Decimal("0.333")


def test_max_drawdown_of_cumulative_pnl() -> None:
    """Cumulative 10, -20, -15, -25: peak 10, trough -25."""
    trades = [_trade("10", 1), _trade("-30", 2), _trade("5", 3), _trade("-10", 4)]
    assert max_drawdown(trades) == Decimal("35")


def test_break_even_is_not_profitable() -> None:
    stats = trade_stats([_trade("0", 1), _trade("2.5", 2)])
    assert stats["profitable_trades"] == 1
    assert stats["total_profit"] == Decimal("2.5")
