"""Indicator engine: tick history -> IndicatorSnapshot.

Computation is pure and synchronous; the scheduler calls it once per
symbol per cycle with the history copied from the poller's snapshot.
"""

from collections.abc import Sequence
from decimal import Decimal

from autotrader.config import StrategySettings
from autotrader.exceptions import InsufficientHistory
from autotrader.indicators.calculations import (
    compute_macd,
    compute_momentum,
    compute_rsi,
    compute_signal_strength,
    compute_sma,
    compute_volatility,
)
from autotrader.indicators.models import IndicatorSnapshot, TrendClassification
from autotrader.logging import get_logger
from autotrader.models import MarketTick

logger = get_logger(__name__)


class IndicatorEngine:
    """Derives RSI, MACD, moving averages, volatility, momentum and trend.

    Args:
        settings: Strategy settings holding all indicator windows and
            the RSI thresholds used for trend classification.
    """

    def __init__(self, settings: StrategySettings) -> None:
        self._settings = settings

    @property
    def required_history(self) -> int:
        return self._settings.required_history

    def compute(self, symbol: str, history: Sequence[MarketTick]) -> IndicatorSnapshot:
        """Compute an IndicatorSnapshot from a symbol's tick history.

        Args:
            symbol: The symbol the history belongs to.
            history: Ticks ordered oldest first; the last one is current.

        Returns:
            The snapshot.

        Raises:
            InsufficientHistory: If fewer ticks than the longest window
                requires are available (the "not ready" result).
        """
        s = self._settings
        if len(history) < s.required_history:
            raise InsufficientHistory(
                f"{symbol}: have {len(history)} ticks, need {s.required_history}"
            )

        prices = [t.price for t in history]

        rsi = compute_rsi(prices, s.rsi_period)
        macd = compute_macd(prices, s.macd_fast, s.macd_slow, s.macd_signal)
        short_ma = compute_sma(prices, s.short_window)
        long_ma = compute_sma(prices, s.long_window)
        volatility = compute_volatility(prices, s.volatility_window)
        momentum = compute_momentum(prices, s.momentum_window)

        if (
            rsi is None
            or macd is None
            or short_ma is None
            or long_ma is None
            or volatility is None
            or momentum is None
        ):
            raise InsufficientHistory(f"{symbol}: indicator window not computable")

        macd_value, macd_signal, histogram, prev_histogram = macd
        price = prices[-1]

        snapshot = IndicatorSnapshot(
            symbol=symbol,
            price=price,
            rsi=rsi,
            macd=macd_value,
            macd_signal=macd_signal,
            macd_histogram=histogram,
            macd_rising=histogram > prev_histogram,
            short_ma=short_ma,
            long_ma=long_ma,
            volatility=volatility,
            momentum=momentum,
            trend=self.classify_trend(rsi, histogram, momentum),
            signal_strength=compute_signal_strength(rsi, histogram, momentum, price),
        )

        logger.debug(
            "indicators_computed",
            symbol=symbol,
            rsi=str(rsi),
            macd_histogram=str(histogram),
            momentum=str(momentum),
            volatility=str(volatility),
            trend=snapshot.trend.value,
        )
        return snapshot

    def classify_trend(
        self, rsi: Decimal, histogram: Decimal, momentum: Decimal
    ) -> TrendClassification:
        """Bullish when momentum and MACD agree upward and RSI is not overbought.

        Bearish is the symmetric condition; anything else is sideways.
        """
        if momentum > 0 and histogram > 0 and rsi < self._settings.rsi_overbought:
            return TrendClassification.BULLISH
        if momentum < 0 and histogram < 0 and rsi > self._settings.rsi_oversold:
            return TrendClassification.BEARISH
        return TrendClassification.SIDEWAYS
