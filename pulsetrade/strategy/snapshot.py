"""Indicator snapshot — one consistent bundle of current indicator values.

Builds every indicator against the full supplied history and derives the
trend and momentum classifications from them:

- ``classify_trend()``: EMA crossover confirmed by price above/below both SMAs.
- ``classify_momentum()``: MACD histogram against a strong and a weak
  threshold, tempered by the direction of the latest price change.
"""

from typing import Sequence

from pulsetrade.strategy.indicators import (
    MACD_SLOW,
    calculate_atr,
    calculate_ema,
    calculate_macd,
    calculate_rsi,
    calculate_sma,
)
from pulsetrade.strategy.models import (
    NEUTRAL_SNAPSHOT,
    Candle,
    IndicatorSnapshot,
    Momentum,
    Trend,
)
from pulsetrade.strategy.thresholds import AnalysisThresholds

TREND_MIN_CANDLES = 50


def classify_trend(
    price: float,
    ema12: float,
    ema26: float,
    sma20: float,
    sma50: float,
) -> Trend:
    """Classify trend direction from EMA ordering and price position.

    Rules:
        - **Bullish**: EMA12 > EMA26 AND price > SMA20 AND price > SMA50.
        - **Bearish**: EMA12 < EMA26 AND price < SMA20 AND price < SMA50.
        - **Sideways**: everything else.

    Callers decide ``"UNDEFINED"`` themselves when the inputs are sentinels.
    """
    if ema12 > ema26 and price > sma20 and price > sma50:
        return "BULLISH"
    if ema12 < ema26 and price < sma20 and price < sma50:
        return "BEARISH"
    return "SIDEWAYS"


def classify_momentum(
    histogram: float,
    price_change: float,
    strong_threshold: float,
    weak_threshold: float,
) -> Momentum:
    """Classify momentum from the MACD histogram and the last price change.

    A histogram beyond *strong_threshold* is STRONG in its direction, unless
    the latest candle moved against it, which drops it one level.  Beyond
    *weak_threshold* it is UP/DOWN, and a counter-move drops it to NEUTRAL.
    """
    if histogram > strong_threshold:
        return "STRONG_UP" if price_change >= 0 else "UP"
    if histogram > weak_threshold:
        return "UP" if price_change >= 0 else "NEUTRAL"
    if histogram < -strong_threshold:
        return "STRONG_DOWN" if price_change <= 0 else "DOWN"
    if histogram < -weak_threshold:
        return "DOWN" if price_change <= 0 else "NEUTRAL"
    return "NEUTRAL"


def build_snapshot(
    candles: Sequence[Candle],
    thresholds: AnalysisThresholds,
) -> IndicatorSnapshot:
    """Compute every indicator for the latest candle of *candles*.

    Args:
        candles: Candle history, oldest-first.
        thresholds: Instrument calibration (RSI/ATR periods, momentum
            thresholds).

    Returns:
        ``IndicatorSnapshot``.  An empty history yields ``NEUTRAL_SNAPSHOT``.
        ``trend`` is ``"UNDEFINED"`` below 50 candles and ``momentum`` is
        ``"UNDEFINED"`` below 26 (MACD unavailable).
    """
    if not candles:
        return NEUTRAL_SNAPSHOT

    closes = [c.close for c in candles]
    volumes = [c.volume for c in candles]
    price = closes[-1]
    price_change = closes[-1] - closes[-2] if len(closes) > 1 else 0.0

    sma20 = calculate_sma(closes, 20)
    sma50 = calculate_sma(closes, 50)
    ema12 = calculate_ema(closes, 12)
    ema26 = calculate_ema(closes, 26)
    rsi = calculate_rsi(closes, thresholds.rsi_period)
    macd = calculate_macd(closes)
    atr = calculate_atr(candles, thresholds.atr_period, thresholds.atr_method)

    if len(candles) < TREND_MIN_CANDLES:
        trend: Trend = "UNDEFINED"
    else:
        trend = classify_trend(price, ema12, ema26, sma20, sma50)

    if len(candles) < MACD_SLOW:
        momentum: Momentum = "UNDEFINED"
    else:
        momentum = classify_momentum(
            macd.histogram,
            price_change,
            thresholds.momentum_strong_threshold,
            thresholds.momentum_weak_threshold,
        )

    return IndicatorSnapshot(
        sma20=sma20,
        sma50=sma50,
        ema12=ema12,
        ema26=ema26,
        rsi=rsi,
        macd=macd.macd,
        macd_signal=macd.signal,
        macd_histogram=macd.histogram,
        atr=atr,
        current_volume=volumes[-1],
        average_volume=sum(volumes) / len(volumes),
        trend=trend,
        momentum=momentum,
        current_price=price,
        price_change=price_change,
    )
