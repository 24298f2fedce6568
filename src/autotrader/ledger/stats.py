"""Performance statistics over closed trades.

Pure Decimal analytics: win_rate, max_drawdown, trade_stats.
All functions accept a list of TradeRecord and ignore opening trades.
"""

from decimal import ROUND_HALF_UP, Decimal

from autotrader.models import TradeRecord


def _closed(trades: list[TradeRecord]) -> list[TradeRecord]:
    return [t for t in trades if t.realized_profit is not None]


def win_rate(trades: list[TradeRecord]) -> Decimal | None:
    """Fraction of closing trades with positive realized profit.

    Returns:
        Win rate rounded to 3 places, or None if no closing trades.
    """
    closed = _closed(trades)
    if not closed:
        return None

    wins = sum(1 for t in closed if t.realized_profit > Decimal("0"))
    rate = Decimal(wins) / Decimal(len(closed))
    return rate.quantize(Decimal("0.001"), rounding=ROUND_HALF_UP)


def max_drawdown(trades: list[TradeRecord]) -> Decimal | None:
    """Largest peak-to-trough decline in cumulative realized P&L.

    Returns:
        Max drawdown as a non-negative Decimal, or None if no closing trades.
    """
    closed = sorted(_closed(trades), key=lambda t: t.timestamp)
    if not closed:
        return None

    cumulative = Decimal("0")
    peak = Decimal("0")
    max_dd = Decimal("0")

    for trade in closed:
        cumulative += trade.realized_profit
        if cumulative > peak:
            peak = cumulative
        dd = peak - cumulative
        if dd > max_dd:
            max_dd = dd

    return max_dd


def trade_stats(trades: list[TradeRecord]) -> dict:
    """Summary used by status readers.

    Returns:
        Dict with total_trades (closing trades), profitable_trades,
        total_profit (net realized), win_rate and max_drawdown.
    """
    closed = _closed(trades)
    return {
        "total_trades": len(closed),
        "profitable_trades": sum(1 for t in closed if t.realized_profit > Decimal("0")),
        "total_profit": sum((t.realized_profit for t in closed), Decimal("0")),
        "win_rate": win_rate(trades),
        "max_drawdown": max_drawdown(trades),
    }
