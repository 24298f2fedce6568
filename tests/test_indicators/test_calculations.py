"""Tests for the pure indicator math.

All test values use Decimal (project convention). Tests cover EMA, SMA,
RSI, MACD, volatility, momentum and signal strength, including the
"too short" edge cases that must return None.
"""

from decimal import Decimal

from autotrader.indicators.calculations import (
    clamp,
    compute_ema,
    compute_macd,
    compute_momentum,
    compute_rsi,
    compute_signal_strength,
    compute_sma,
    compute_volatility,
)


def _prices(*values: str | int) -> list[Decimal]:
    return [Decimal(str(v)) for v in values]


class TestComputeEma:
    def test_empty_list_returns_empty(self) -> None:
        assert compute_ema([], span=3) == []

    def test_known_values_span_3(self) -> None:
        """alpha = 0.5: 1, 1.5, 2.25, 3.125, 4.0625."""
        result = compute_ema(_prices(1, 2, 3, 4, 5), span=3)
        assert result == _prices("1", "1.5", "2.25", "3.125", "4.0625")

    def test_constant_series_is_constant(self) -> None:
        result = compute_ema([Decimal("42")] * 10, span=5)
        assert all(v == Decimal("42") for v in result)


class TestComputeSma:
    def test_mean_of_last_window(self) -> None:
        assert compute_sma(_prices(1, 2, 3, 4), 2) == Decimal("3.5")

    def test_too_short_returns_none(self) -> None:
        assert compute_sma(_prices(1, 2), 3) is None


class TestComputeRsi:
    def test_only_gains_is_100(self) -> None:
        prices = [Decimal(100 + i) for i in range(15)]
        assert compute_rsi(prices, 14) == Decimal("100.00")

    def test_only_losses_is_0(self) -> None:
        prices = [Decimal(100 - i) for i in range(15)]
        assert compute_rsi(prices, 14) == Decimal("0.00")

    def test_flat_is_50(self) -> None:
        assert compute_rsi([Decimal("10")] * 15, 14) == Decimal("50.00")

    def test_equal_gain_and_loss_is_50(self) -> None:
        assert compute_rsi(_prices(10, 11, 10), 2) == Decimal("50.00")

    def test_needs_period_plus_one_values(self) -> None:
        prices = [Decimal(100 + i) for i in range(14)]
        assert compute_rsi(prices, 14) is None

    def test_always_within_bounds(self) -> None:
        prices = _prices(100, 103, 99, 104, 98, 105, 97, 106, 101, 102, 100, 99, 103, 98, 104)
        rsi = compute_rsi(prices, 14)
        assert rsi is not None
        assert Decimal("0") <= rsi <= Decimal("100")


class TestComputeMacd:
    def test_constant_prices_give_zero(self) -> None:
        macd = compute_macd([Decimal("50")] * 35, fast=12, slow=26, signal=9)
        assert macd is not None
        line, signal, histogram, prev = macd
        assert line == 0
        assert signal == 0
        assert histogram == 0
        assert prev == 0

    def test_needs_slow_plus_signal_values(self) -> None:
        assert compute_macd([Decimal("50")] * 34, fast=12, slow=26, signal=9) is None

    def test_rising_series_has_positive_macd(self) -> None:
        prices = [Decimal(100 + i) for i in range(40)]
        macd = compute_macd(prices, fast=12, slow=26, signal=9)
        assert macd is not None
        assert macd[0] > 0

    def test_falling_series_has_negative_macd(self) -> None:
        prices = [Decimal(200 - i) for i in range(40)]
        macd = compute_macd(prices, fast=12, slow=26, signal=9)
        assert macd is not None
        assert macd[0] < 0


class TestComputeVolatility:
    def test_flat_is_zero(self) -> None:
        assert compute_volatility([Decimal("10")] * 20, 20) == Decimal("0")

    def test_known_value(self) -> None:
        """mean 10, population std-dev 1 -> 10%."""
        assert compute_volatility(_prices(9, 11), 2) == Decimal("10.0000")

    def test_window_below_two_returns_none(self) -> None:
        assert compute_volatility(_prices(9, 11), 1) is None

    def test_too_short_returns_none(self) -> None:
        assert compute_volatility(_prices(9, 11), 3) is None


class TestComputeMomentum:
    def test_percent_change_over_window(self) -> None:
        assert compute_momentum(_prices(100, 105, 110), 2) == Decimal("10.0000")

    def test_negative_move(self) -> None:
        assert compute_momentum(_prices(200, 150, 100), 2) == Decimal("-50.0000")

    def test_needs_window_plus_one_values(self) -> None:
        assert compute_momentum(_prices(100, 105), 2) is None


class TestSignalStrength:
    def test_neutral_inputs_are_zero(self) -> None:
        strength = compute_signal_strength(
            Decimal("50"), Decimal("0"), Decimal("0"), Decimal("100")
        )
        assert strength == Decimal("0")

    def test_components_are_capped_at_100(self) -> None:
        strength = compute_signal_strength(
            Decimal("100"), Decimal("50"), Decimal("20"), Decimal("100")
        )
        assert strength == Decimal("100")

    def test_weighted_blend(self) -> None:
        """rsi 70 -> 40 * 0.4 = 16; momentum 5% -> 50 * 0.3 = 15."""
        strength = compute_signal_strength(
            Decimal("70"), Decimal("0"), Decimal("5"), Decimal("100")
        )
        assert strength == Decimal("31.00")


def test_clamp() -> None:
    assert clamp(Decimal("150"), Decimal("0"), Decimal("100")) == Decimal("100")
    assert clamp(Decimal("-5"), Decimal("0"), Decimal("100")) == Decimal("0")
    assert clamp(Decimal("42"), Decimal("0"), Decimal("100")) == Decimal("42")
