"""Signal decision models."""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class Action(str, Enum):
    """What the strategy wants to do with a symbol."""

    BUY = "buy"
    SELL = "sell"
    HOLD = "hold"


class Urgency(str, Enum):
    """How strongly a decision should override exit thresholds."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class Decision:
    """Output of a strategy for one symbol in one cycle."""

    symbol: str
    action: Action
    confidence: Decimal  # 0-100
    urgency: Urgency = Urgency.LOW
    reason: str = ""

    @classmethod
    def hold(cls, symbol: str, reason: str = "") -> "Decision":
        return cls(symbol=symbol, action=Action.HOLD, confidence=Decimal("0"), reason=reason)

    @property
    def is_actionable(self) -> bool:
        return self.action is not Action.HOLD
