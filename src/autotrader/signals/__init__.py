"""Strategy variants and the signal generator that dispatches to them."""

from autotrader.signals.generator import SignalGenerator
from autotrader.signals.models import Action, Decision, Urgency
from autotrader.signals.strategies import (
    STRATEGIES,
    BreakoutStrategy,
    MeanReversionStrategy,
    MomentumStrategy,
    ScalpingStrategy,
    Strategy,
    TrendFollowingStrategy,
)

__all__ = [
    "Action",
    "BreakoutStrategy",
    "Decision",
    "MeanReversionStrategy",
    "MomentumStrategy",
    "STRATEGIES",
    "ScalpingStrategy",
    "SignalGenerator",
    "Strategy",
    "TrendFollowingStrategy",
    "Urgency",
]
