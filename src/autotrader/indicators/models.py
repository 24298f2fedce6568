"""Indicator data models."""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class TrendClassification(str, Enum):
    """Overall trend derived from momentum, MACD and RSI agreement."""

    BULLISH = "bullish"
    BEARISH = "bearish"
    SIDEWAYS = "sideways"


@dataclass(frozen=True)
class IndicatorSnapshot:
    """Indicators for one symbol, recomputed each cycle from its tick history."""

    symbol: str
    price: Decimal
    rsi: Decimal  # 0-100
    macd: Decimal
    macd_signal: Decimal
    macd_histogram: Decimal
    macd_rising: bool  # histogram increased since the previous tick
    short_ma: Decimal
    long_ma: Decimal
    volatility: Decimal  # std-dev / mean, percent
    momentum: Decimal  # percent change over the momentum window
    trend: TrendClassification
    signal_strength: Decimal  # 0-100
