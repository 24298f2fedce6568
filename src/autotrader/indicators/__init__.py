"""Technical indicators computed from bounded per-symbol tick history."""

from autotrader.indicators.calculations import (
    compute_ema,
    compute_macd,
    compute_momentum,
    compute_rsi,
    compute_signal_strength,
    compute_sma,
    compute_volatility,
)
from autotrader.indicators.engine import IndicatorEngine
from autotrader.indicators.history import TickHistory
from autotrader.indicators.models import IndicatorSnapshot, TrendClassification

__all__ = [
    "IndicatorEngine",
    "IndicatorSnapshot",
    "TickHistory",
    "TrendClassification",
    "compute_ema",
    "compute_macd",
    "compute_momentum",
    "compute_rsi",
    "compute_signal_strength",
    "compute_sma",
    "compute_volatility",
]
