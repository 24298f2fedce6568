"""Strategy variants mapping indicators to buy/sell/hold decisions.

Each variant implements a single ``decide`` function. Selection goes
through the STRATEGIES registry keyed by StrategyVariant, never through
string comparisons at call sites. All variants are deterministic: the
same snapshot, tick and settings always produce the same Decision.
"""

from abc import ABC, abstractmethod
from decimal import Decimal

from autotrader.config import StrategySettings, StrategyVariant
from autotrader.indicators.calculations import clamp
from autotrader.indicators.models import IndicatorSnapshot, TrendClassification
from autotrader.models import MarketTick
from autotrader.signals.models import Action, Decision, Urgency

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")
_CONFIDENCE_QUANTIZE = Decimal("0.01")


def _confidence(value: Decimal) -> Decimal:
    return clamp(value, _ZERO, _HUNDRED).quantize(_CONFIDENCE_QUANTIZE)


def _urgency(distance: Decimal, medium: Decimal, high: Decimal) -> Urgency:
    if distance >= high:
        return Urgency.HIGH
    if distance >= medium:
        return Urgency.MEDIUM
    return Urgency.LOW


class Strategy(ABC):
    """Interface shared by all strategy variants."""

    variant: StrategyVariant

    @abstractmethod
    def decide(
        self,
        snapshot: IndicatorSnapshot,
        tick: MarketTick,
        settings: StrategySettings,
    ) -> Decision:
        """Return the raw decision before the confidence threshold is applied."""
        ...


class TrendFollowingStrategy(Strategy):
    """Ride established trends.

    Buy when the trend is bullish and RSI is below overbought; sell when
    bearish and RSI is above oversold. Urgency grows with RSI distance
    from 50.
    """

    variant = StrategyVariant.TREND_FOLLOWING

    def decide(
        self,
        snapshot: IndicatorSnapshot,
        tick: MarketTick,
        settings: StrategySettings,
    ) -> Decision:
        confidence = _confidence(Decimal("50") + snapshot.signal_strength / Decimal("2"))
        urgency = _urgency(abs(snapshot.rsi - Decimal("50")), Decimal("12.5"), Decimal("25"))

        if (
            snapshot.trend is TrendClassification.BULLISH
            and snapshot.rsi < settings.rsi_overbought
        ):
            return Decision(tick.symbol, Action.BUY, confidence, urgency, "trend_bullish")
        if (
            snapshot.trend is TrendClassification.BEARISH
            and snapshot.rsi > settings.rsi_oversold
        ):
            return Decision(tick.symbol, Action.SELL, confidence, urgency, "trend_bearish")
        return Decision.hold(tick.symbol, "trend_sideways")


class MeanReversionStrategy(Strategy):
    """Fade RSI extremes: buy oversold, sell overbought."""

    variant = StrategyVariant.MEAN_REVERSION

    def decide(
        self,
        snapshot: IndicatorSnapshot,
        tick: MarketTick,
        settings: StrategySettings,
    ) -> Decision:
        rsi = snapshot.rsi
        if rsi < settings.rsi_oversold:
            depth = settings.rsi_oversold - rsi
            confidence = _confidence(
                Decimal("60") + depth / settings.rsi_oversold * Decimal("40")
            )
            urgency = _urgency(depth, Decimal("5"), Decimal("15"))
            return Decision(tick.symbol, Action.BUY, confidence, urgency, "rsi_oversold")
        if rsi > settings.rsi_overbought:
            depth = rsi - settings.rsi_overbought
            confidence = _confidence(
                Decimal("60") + depth / (_HUNDRED - settings.rsi_overbought) * Decimal("40")
            )
            urgency = _urgency(depth, Decimal("5"), Decimal("15"))
            return Decision(tick.symbol, Action.SELL, confidence, urgency, "rsi_overbought")
        return Decision.hold(tick.symbol, "rsi_neutral")


class MomentumStrategy(Strategy):
    """Follow strong moves confirmed by RSI side and MACD direction."""

    variant = StrategyVariant.MOMENTUM

    def decide(
        self,
        snapshot: IndicatorSnapshot,
        tick: MarketTick,
        settings: StrategySettings,
    ) -> Decision:
        threshold = settings.momentum_threshold_pct
        ratio = abs(snapshot.momentum) / threshold if threshold > 0 else _ZERO
        confidence = _confidence(Decimal("50") + min(ratio, Decimal("5")) * Decimal("10"))
        urgency = _urgency(ratio, Decimal("2"), Decimal("3"))

        if (
            snapshot.momentum > threshold
            and snapshot.rsi > Decimal("50")
            and snapshot.macd_rising
        ):
            return Decision(tick.symbol, Action.BUY, confidence, urgency, "momentum_up")
        if (
            snapshot.momentum < -threshold
            and snapshot.rsi < Decimal("50")
            and not snapshot.macd_rising
        ):
            return Decision(tick.symbol, Action.SELL, confidence, urgency, "momentum_down")
        return Decision.hold(tick.symbol, "momentum_weak")


class BreakoutStrategy(Strategy):
    """Trade expansions where volatility and momentum both clear thresholds."""

    variant = StrategyVariant.BREAKOUT

    def decide(
        self,
        snapshot: IndicatorSnapshot,
        tick: MarketTick,
        settings: StrategySettings,
    ) -> Decision:
        vol_threshold = settings.breakout_volatility_pct
        mom_threshold = settings.breakout_momentum_pct
        move = abs(snapshot.momentum)

        if snapshot.volatility < vol_threshold or move < mom_threshold:
            return Decision.hold(tick.symbol, "no_breakout")

        one = Decimal("1")
        mom_excess = min(move / mom_threshold - one, one) if mom_threshold > 0 else one
        vol_excess = (
            min(snapshot.volatility / vol_threshold - one, one) if vol_threshold > 0 else one
        )
        confidence = _confidence(
            Decimal("60") + mom_excess * Decimal("20") + vol_excess * Decimal("20")
        )
        urgency = Urgency.HIGH if move >= mom_threshold * Decimal("2") else Urgency.MEDIUM

        if snapshot.momentum > 0:
            return Decision(tick.symbol, Action.BUY, confidence, urgency, "breakout_up")
        return Decision(tick.symbol, Action.SELL, confidence, urgency, "breakout_down")


class ScalpingStrategy(Strategy):
    """Short-horizon trades inside a narrow volatility band.

    Fires often with deliberately low confidence (capped at 75).
    """

    variant = StrategyVariant.SCALPING

    _MAX_CONFIDENCE = Decimal("75")

    def decide(
        self,
        snapshot: IndicatorSnapshot,
        tick: MarketTick,
        settings: StrategySettings,
    ) -> Decision:
        in_band = (
            settings.scalping_band_low_pct
            <= snapshot.volatility
            <= settings.scalping_band_high_pct
        )
        if not in_band or abs(snapshot.momentum) < settings.scalping_momentum_pct:
            return Decision.hold(tick.symbol, "outside_scalping_band")

        confidence = _confidence(
            min(Decimal("40") + snapshot.signal_strength / Decimal("2"), self._MAX_CONFIDENCE)
        )
        if snapshot.momentum > 0:
            return Decision(tick.symbol, Action.BUY, confidence, Urgency.LOW, "scalp_up")
        return Decision(tick.symbol, Action.SELL, confidence, Urgency.LOW, "scalp_down")


STRATEGIES: dict[StrategyVariant, Strategy] = {
    strategy.variant: strategy
    for strategy in (
        TrendFollowingStrategy(),
        MeanReversionStrategy(),
        MomentumStrategy(),
        BreakoutStrategy(),
        ScalpingStrategy(),
    )
}
