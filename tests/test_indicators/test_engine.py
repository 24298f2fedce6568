"""Tests for IndicatorEngine.

Verifies:
- InsufficientHistory below the longest indicator window
- Snapshot fields on a known price path
- Determinism (same history -> same snapshot)
- Trend classification rules
"""

from decimal import Decimal

import pytest

from autotrader.config import StrategySettings
from autotrader.exceptions import InsufficientHistory
from autotrader.indicators.engine import IndicatorEngine
from autotrader.indicators.models import TrendClassification
from autotrader.models import MarketTick


def _history(prices: list[Decimal], symbol: str = "BTC") -> list[MarketTick]:
    return [
        MarketTick(
            symbol=symbol,
            price=price,
            change_24h_pct=Decimal("0"),
            volume=Decimal("1000"),
            timestamp=float(i),
        )
        for i, price in enumerate(prices)
    ]


@pytest.fixture
def engine(strategy_settings: StrategySettings) -> IndicatorEngine:
    return IndicatorEngine(strategy_settings)


def test_required_history_defaults_to_macd_warmup(engine: IndicatorEngine) -> None:
    """slow 26 + signal 9 is the longest default window."""
    assert engine.required_history == 35


def test_short_history_raises(engine: IndicatorEngine) -> None:
    history = _history([Decimal(100 + i) for i in range(34)])
    with pytest.raises(InsufficientHistory):
        engine.compute("BTC", history)


def test_rising_series_snapshot(engine: IndicatorEngine) -> None:
    prices = [Decimal(100 + i) for i in range(40)]
    snapshot = engine.compute("BTC", _history(prices))

    assert snapshot.symbol == "BTC"
    assert snapshot.price == Decimal("139")
    assert snapshot.rsi == Decimal("100.00")
    assert snapshot.momentum > 0
    assert snapshot.macd > 0
    assert snapshot.short_ma > snapshot.long_ma
    assert snapshot.volatility > 0
    assert Decimal("0") <= snapshot.signal_strength <= Decimal("100")
    # RSI at 100 is overbought, so the rise is not classified bullish
    assert snapshot.trend is TrendClassification.SIDEWAYS


def test_flat_series_is_sideways(engine: IndicatorEngine) -> None:
    snapshot = engine.compute("ETH", _history([Decimal("2500")] * 40, symbol="ETH"))

    assert snapshot.rsi == Decimal("50.00")
    assert snapshot.momentum == Decimal("0")
    assert snapshot.volatility == Decimal("0")
    assert snapshot.macd_histogram == Decimal("0")
    assert snapshot.macd_rising is False
    assert snapshot.trend is TrendClassification.SIDEWAYS
    assert snapshot.signal_strength == Decimal("0")


def test_compute_is_deterministic(engine: IndicatorEngine) -> None:
    prices = [Decimal(100) + Decimal(i % 7) - Decimal(i % 3) for i in range(60)]
    history = _history(prices)
    assert engine.compute("BTC", history) == engine.compute("BTC", history)


class TestClassifyTrend:
    @pytest.mark.parametrize(
        ("rsi", "histogram", "momentum", "expected"),
        [
            ("55", "1", "1", TrendClassification.BULLISH),
            ("45", "-1", "-1", TrendClassification.BEARISH),
            ("75", "1", "1", TrendClassification.SIDEWAYS),
            ("25", "-1", "-1", TrendClassification.SIDEWAYS),
            ("55", "-1", "1", TrendClassification.SIDEWAYS),
            ("50", "0", "0", TrendClassification.SIDEWAYS),
        ],
    )
    def test_rules(
        self,
        engine: IndicatorEngine,
        rsi: str,
        histogram: str,
        momentum: str,
        expected: TrendClassification,
    ) -> None:
        result = engine.classify_trend(Decimal(rsi), Decimal(histogram), Decimal(momentum))
        assert result is expected
