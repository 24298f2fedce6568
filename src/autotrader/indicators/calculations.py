"""Pure indicator math over ordered price series (oldest first).

Every function returns None when the series is too short instead of
producing a misleading value. Uses Decimal arithmetic with quantize to
prevent precision explosion.

CRITICAL: All computations use Decimal. Never use float.
"""

from decimal import Decimal

#: Precision limit for EMA intermediate results (12 decimal places).
_EMA_QUANTIZE = Decimal("0.000000000001")

_HUNDRED = Decimal("100")
_ZERO = Decimal("0")


def compute_ema(values: list[Decimal], span: int) -> list[Decimal]:
    """Compute Exponential Moving Average over a list of Decimal values.

    Uses the standard recursive formula:
        alpha = 2 / (span + 1)
        EMA_t = alpha * value_t + (1 - alpha) * EMA_{t-1}

    First EMA value = first input value (standard initialization).

    Args:
        values: Ordered list of Decimal values (oldest first).
        span: Number of periods for EMA smoothing.

    Returns:
        List of EMA values, same length as input. Empty list if input is empty.
    """
    if not values:
        return []

    alpha = Decimal("2") / (Decimal(span) + Decimal("1"))
    one_minus_alpha = Decimal("1") - alpha

    ema = [values[0].quantize(_EMA_QUANTIZE)]
    for v in values[1:]:
        next_ema = (alpha * v + one_minus_alpha * ema[-1]).quantize(_EMA_QUANTIZE)
        ema.append(next_ema)

    return ema


def compute_sma(values: list[Decimal], window: int) -> Decimal | None:
    """Simple mean of the last ``window`` values."""
    if window <= 0 or len(values) < window:
        return None
    recent = values[-window:]
    return sum(recent, _ZERO) / Decimal(window)


def compute_rsi(prices: list[Decimal], period: int) -> Decimal | None:
    """Relative Strength Index over the last ``period`` price changes.

    RSI = 100 - 100 / (1 + avg_gain / avg_loss), clamped to [0, 100].
    A window with no losses is 100; a completely flat window is 50.

    Args:
        prices: Ordered prices (oldest first). Needs ``period + 1`` values.
        period: Number of price changes to average.

    Returns:
        RSI quantized to 2 places, or None if history is too short.
    """
    if period <= 0 or len(prices) < period + 1:
        return None

    window = prices[-(period + 1):]
    gains = _ZERO
    losses = _ZERO
    for prev, cur in zip(window, window[1:]):
        change = cur - prev
        if change > 0:
            gains += change
        else:
            losses -= change

    avg_gain = gains / Decimal(period)
    avg_loss = losses / Decimal(period)

    if avg_loss == 0:
        rsi = _HUNDRED if avg_gain > 0 else Decimal("50")
    else:
        rs = avg_gain / avg_loss
        rsi = _HUNDRED - _HUNDRED / (Decimal("1") + rs)

    return clamp(rsi, _ZERO, _HUNDRED).quantize(Decimal("0.01"))


def compute_macd(
    prices: list[Decimal], fast: int, slow: int, signal: int
) -> tuple[Decimal, Decimal, Decimal, Decimal] | None:
    """MACD line, signal line, histogram and the previous histogram value.

    MACD = EMA(fast) - EMA(slow). The signal line is the EMA of the MACD
    line computed from the point where the slow EMA has warmed up.

    Args:
        prices: Ordered prices (oldest first). Needs ``slow + signal`` values.
        fast: Fast EMA span.
        slow: Slow EMA span.
        signal: Signal line EMA span.

    Returns:
        Tuple (macd, signal, histogram, previous_histogram) or None.
    """
    if len(prices) < slow + signal:
        return None

    ema_fast = compute_ema(prices, fast)
    ema_slow = compute_ema(prices, slow)
    macd_line = [f - s for f, s in zip(ema_fast, ema_slow)][slow - 1:]
    signal_line = compute_ema(macd_line, signal)

    histogram = macd_line[-1] - signal_line[-1]
    prev_histogram = macd_line[-2] - signal_line[-2]
    return macd_line[-1], signal_line[-1], histogram, prev_histogram


def compute_volatility(prices: list[Decimal], window: int) -> Decimal | None:
    """Population standard deviation over mean of the last ``window`` prices, in percent."""
    if window < 2 or len(prices) < window:
        return None

    recent = prices[-window:]
    n = Decimal(window)
    mean = sum(recent, _ZERO) / n
    if mean == 0:
        return None
    variance = sum(((p - mean) ** 2 for p in recent), _ZERO) / n
    return (variance.sqrt() / mean * _HUNDRED).quantize(Decimal("0.0001"))


def compute_momentum(prices: list[Decimal], window: int) -> Decimal | None:
    """Percent price change across the last ``window`` ticks."""
    if window <= 0 or len(prices) < window + 1:
        return None
    base = prices[-(window + 1)]
    if base == 0:
        return None
    return ((prices[-1] - base) / base * _HUNDRED).quantize(Decimal("0.0001"))


def compute_signal_strength(
    rsi: Decimal, histogram: Decimal, momentum: Decimal, price: Decimal
) -> Decimal:
    """Blend RSI extremity, MACD histogram magnitude and momentum into 0-100.

    Components (each scaled to 0-100):
        rsi:      |rsi - 50| * 2
        macd:     |histogram| / price as percent, 1% of price = 100
        momentum: |momentum| * 10, a 10% move = 100

    Weighted 40/30/30.
    """
    rsi_part = abs(rsi - Decimal("50")) * Decimal("2")
    macd_part = (
        min(abs(histogram) / price * Decimal("10000"), _HUNDRED) if price > 0 else _ZERO
    )
    momentum_part = min(abs(momentum) * Decimal("10"), _HUNDRED)

    score = (
        Decimal("0.4") * rsi_part
        + Decimal("0.3") * macd_part
        + Decimal("0.3") * momentum_part
    )
    return clamp(score, _ZERO, _HUNDRED).quantize(Decimal("0.01"))


def clamp(value: Decimal, low: Decimal, high: Decimal) -> Decimal:
    return max(low, min(high, value))
