"""Signal generator: dispatches to the configured strategy variant.

Applies the global confidence threshold after the strategy decides, so a
low-confidence buy or sell degrades to hold regardless of variant.
"""

from autotrader.config import StrategySettings, StrategyVariant
from autotrader.indicators.models import IndicatorSnapshot
from autotrader.logging import get_logger
from autotrader.models import MarketTick
from autotrader.signals.models import Decision
from autotrader.signals.strategies import STRATEGIES, Strategy

logger = get_logger(__name__)

#: Hold reason when an actionable decision is suppressed by min_confidence.
BELOW_CONFIDENCE = "below_confidence_threshold"


class SignalGenerator:
    """Produces one Decision per (snapshot, tick) for the configured variant.

    Args:
        settings: Frozen strategy settings selecting the variant and
            holding its thresholds.
    """

    def __init__(self, settings: StrategySettings) -> None:
        self._settings = settings
        self._strategy: Strategy = STRATEGIES[settings.variant]

    @property
    def strategy(self) -> Strategy:
        return self._strategy

    @property
    def variant(self) -> StrategyVariant:
        return self._settings.variant

    def generate(self, snapshot: IndicatorSnapshot, tick: MarketTick) -> Decision:
        """Evaluate the strategy and apply the confidence threshold.

        Args:
            snapshot: Indicators for the tick's symbol.
            tick: The tick for the current cycle.

        Returns:
            The strategy's decision, or hold if its confidence is below
            ``min_confidence``.
        """
        decision = self._strategy.decide(snapshot, tick, self._settings)

        if decision.is_actionable and decision.confidence < self._settings.min_confidence:
            logger.debug(
                "signal_below_confidence",
                symbol=tick.symbol,
                action=decision.action.value,
                confidence=str(decision.confidence),
                threshold=str(self._settings.min_confidence),
            )
            return Decision.hold(tick.symbol, BELOW_CONFIDENCE)

        if decision.is_actionable:
            logger.info(
                "signal_generated",
                symbol=tick.symbol,
                variant=self._settings.variant.value,
                action=decision.action.value,
                confidence=str(decision.confidence),
                urgency=decision.urgency.value,
                reason=decision.reason,
            )
        return decision
