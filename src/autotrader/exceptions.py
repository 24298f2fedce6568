"""Custom exceptions for the trading agent.

Everything except InvariantViolation is recovered at the scheduler's
cycle boundary. InvariantViolation halts the scheduler.
"""


class TradingError(Exception):
    """Base exception for all trading agent errors."""


class FeedUnavailable(TradingError):
    """Raised when the market data provider fails or returns stale data."""


class InsufficientHistory(TradingError):
    """Raised when a symbol's tick history is too short for indicators."""


class RiskRejected(TradingError):
    """Raised when a candidate order fails a risk check.

    Args:
        reason: Machine-readable reason code (e.g. "max_open_positions").
        detail: Optional human-readable context.
    """

    def __init__(self, reason: str, detail: str = "") -> None:
        self.reason = reason
        self.detail = detail
        super().__init__(f"{reason}: {detail}" if detail else reason)


class GatewayRejected(TradingError):
    """Raised when the order gateway refuses or fails to fill an order."""


class LedgerError(TradingError):
    """Base for recoverable ledger operation failures (no state changed)."""


class InsufficientBalance(LedgerError):
    """Raised when opening a position would cost more than the cash balance."""


class DuplicatePosition(LedgerError):
    """Raised when a position is already open for the symbol."""


class PositionNotFound(LedgerError):
    """Raised when closing or looking up an id that is not open."""


class InvariantViolation(TradingError):
    """Raised when the ledger conservation law does not hold.

    Indicates a bug, not an environmental condition.
    """
