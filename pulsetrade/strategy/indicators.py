"""Technical indicators — SMA, EMA, RSI, MACD, ATR, volatility. Pure functions, no I/O.

Insufficient history is never an error here: each function returns a neutral
sentinel (0.0 for price-scale values, 50.0 for RSI) that callers read as
"indicator unavailable".
"""

import math
from dataclasses import dataclass
from typing import Literal, Sequence

from pulsetrade.strategy.models import Candle


AtrMethod = Literal["ema", "simple"]

MACD_FAST = 12
MACD_SLOW = 26
MACD_SIGNAL = 9


@dataclass(frozen=True)
class MACDResult:
    """MACD line, signal line and histogram at the latest bar."""

    macd: float
    signal: float
    histogram: float


MACD_UNAVAILABLE = MACDResult(macd=0.0, signal=0.0, histogram=0.0)


# ── Moving averages ──────────────────────────────────────────────────────


def calculate_sma(series: Sequence[float], period: int) -> float:
    """Mean of the last *period* values of *series*.

    Returns ``0.0`` when fewer than *period* values are available.
    """
    if period <= 0 or len(series) < period:
        return 0.0
    window = series[-period:]
    return sum(window) / period


def calculate_ema_series(series: Sequence[float], period: int) -> list[float]:
    """Calculate an Exponential Moving Average series.

    Uses the standard EMA formula:
        ``EMA_today = value × k + EMA_yesterday × (1 - k)``
    where ``k = 2 / (period + 1)``.

    The first EMA value is seeded with the SMA of the first *period* values.

    Returns a list the same length as *series*.  Entries before the seed
    period are ``float('nan')``.  An all-nan list is returned when fewer
    than *period* values are supplied.
    """
    ema: list[float] = [float("nan")] * len(series)
    if period <= 0 or len(series) < period:
        return ema

    k = 2.0 / (period + 1)
    ema[period - 1] = sum(series[:period]) / period

    for i in range(period, len(series)):
        ema[i] = series[i] * k + ema[i - 1] * (1 - k)

    return ema


def calculate_ema(series: Sequence[float], period: int) -> float:
    """Latest EMA value of *series*, or ``0.0`` if the seed can't be formed.

    With exactly *period* values the result equals ``calculate_sma``.
    """
    if period <= 0 or len(series) < period:
        return 0.0
    return calculate_ema_series(series, period)[-1]


# ── RSI ──────────────────────────────────────────────────────────────────


def calculate_rsi(closes: Sequence[float], period: int = 14) -> float:
    """Relative Strength Index over the trailing *period* price changes.

    Algorithm:
        1. delta = close[i] - close[i-1] for the last *period* steps.
        2. avg_gain / avg_loss = mean of positive / |negative| deltas.
        3. RSI = 100 - 100 / (1 + avg_gain / avg_loss)

    Edge cases:
        - fewer than ``period + 1`` closes → 50 (neutral)
        - avg_loss == 0 → 100
        - avg_gain == 0 → 0
    """
    if period <= 0 or len(closes) < period + 1:
        return 50.0

    window = closes[-(period + 1):]
    gains = 0.0
    losses = 0.0
    for i in range(1, len(window)):
        delta = window[i] - window[i - 1]
        if delta > 0:
            gains += delta
        else:
            losses -= delta

    avg_gain = gains / period
    avg_loss = losses / period

    if avg_loss == 0:
        return 100.0
    if avg_gain == 0:
        return 0.0

    rs = avg_gain / avg_loss
    return 100.0 - 100.0 / (1.0 + rs)


# ── MACD ─────────────────────────────────────────────────────────────────


def calculate_macd(closes: Sequence[float]) -> MACDResult:
    """MACD(12, 26, 9) at the latest close.

    ``macd = EMA12 - EMA26``.  The signal line is the 9-period EMA of the
    MACD line history, which starts at the 26th close (the first bar where
    both EMAs exist).  ``histogram = macd - signal``.

    Requires at least 26 closes; returns ``MACD_UNAVAILABLE`` (all zeros)
    otherwise.  While fewer than 9 MACD points exist (26–33 closes) the
    signal line is the mean of the points available.
    """
    if len(closes) < MACD_SLOW:
        return MACD_UNAVAILABLE

    fast = calculate_ema_series(closes, MACD_FAST)
    slow = calculate_ema_series(closes, MACD_SLOW)
    macd_line = [fast[i] - slow[i] for i in range(MACD_SLOW - 1, len(closes))]

    macd = macd_line[-1]
    if len(macd_line) >= MACD_SIGNAL:
        signal = calculate_ema(macd_line, MACD_SIGNAL)
    else:
        signal = sum(macd_line) / len(macd_line)

    return MACDResult(macd=macd, signal=signal, histogram=macd - signal)


# ── ATR ──────────────────────────────────────────────────────────────────


def true_ranges(candles: Sequence[Candle]) -> list[float]:
    """True range for every bar that has a previous close.

    ``TR = max(high - low, |high - prev_close|, |low - prev_close|)``
    """
    ranges: list[float] = []
    for i in range(1, len(candles)):
        high = candles[i].high
        low = candles[i].low
        prev_close = candles[i - 1].close
        ranges.append(
            max(
                high - low,
                abs(high - prev_close),
                abs(low - prev_close),
            )
        )
    return ranges


def calculate_atr(
    candles: Sequence[Candle],
    period: int = 14,
    method: AtrMethod = "ema",
) -> float:
    """Average True Range over *period* bars.

    *method* selects the smoothing:
        - ``"ema"``: *period*-length EMA of the true-range series
          (seeded with the SMA of the first *period* ranges).
        - ``"simple"``: plain mean of the last *period* true ranges.

    Requires ``period + 1`` candles (a previous close for each range).
    Returns ``0.0`` otherwise.
    """
    if method not in ("ema", "simple"):
        raise ValueError(f"method must be 'ema' or 'simple', got '{method}'")

    ranges = true_ranges(candles)
    if period <= 0 or len(ranges) < period:
        return 0.0

    if method == "simple":
        return calculate_sma(ranges, period)
    return calculate_ema(ranges, period)


# ── Volatility ───────────────────────────────────────────────────────────


def calculate_volatility(candles: Sequence[Candle]) -> float:
    """Standard deviation of log returns over the whole window, in percent.

    Population standard deviation of ``ln(close[i] / close[i-1])``, × 100.
    Returns ``0.0`` for fewer than two candles or a constant-price series.
    """
    if len(candles) < 2:
        return 0.0

    returns = [
        math.log(candles[i].close / candles[i - 1].close)
        for i in range(1, len(candles))
    ]
    mean = sum(returns) / len(returns)
    variance = sum((r - mean) ** 2 for r in returns) / len(returns)
    return math.sqrt(variance) * 100.0
