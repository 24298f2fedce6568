"""Account ledger -- balance, positions, realized P&L and trade history."""

from autotrader.ledger.ledger import AccountLedger, LedgerSnapshot
from autotrader.ledger.stats import max_drawdown, trade_stats, win_rate

__all__ = ["AccountLedger", "LedgerSnapshot", "max_drawdown", "trade_stats", "win_rate"]
