"""Signal scoring — additive rule system, pure functions, no I/O.

Each rule inspects the indicator snapshot and contributes a signed integer
to a running score, recording a label when it fires.  The final score maps
symmetrically onto BUY/SELL/HOLD and a strength tier:

    score >=  score_very_strong   → BUY  VERY_STRONG
    score >=  score_strong        → BUY  STRONG
    score >=  score_moderate      → BUY  MODERATE
    |score| < score_moderate      → HOLD WEAK
    (mirrored for SELL)

The win probability is the tier's base value scaled by a *historical
accuracy* multiplier.  That multiplier is a fixed heuristic (base 0.75,
nudged up in extreme RSI zones and on large MACD histograms, capped at
0.95); it has never been fitted or backtested against outcomes.
"""

import time
from typing import Optional, Sequence

from pulsetrade.risk.sl_tp import calculate_levels
from pulsetrade.strategy.models import (
    Action,
    Candle,
    IndicatorSnapshot,
    Strength,
    TradingSignal,
)
from pulsetrade.strategy.thresholds import AnalysisThresholds


TIER_CONFIDENCE: dict[str, int] = {
    "MODERATE": 65,
    "STRONG": 80,
    "VERY_STRONG": 90,
}

HOLD_CONFIDENCE = 25
HOLD_PROBABILITY = 50
INSUFFICIENT_DATA_REASON = "Insufficient data"


# ── Rules ────────────────────────────────────────────────────────────────


def score_indicators(
    snapshot: IndicatorSnapshot,
    thresholds: AnalysisThresholds,
) -> tuple[int, list[str]]:
    """Run every scoring rule against *snapshot*.

    Returns ``(score, reasons)`` where *reasons* lists the label of each
    rule that fired, in evaluation order.
    """
    score = 0
    reasons: list[str] = []
    t = thresholds

    # RSI
    rsi = snapshot.rsi
    if rsi < t.rsi_oversold:
        score += 3
        reasons.append(f"RSI deep oversold ({rsi:.1f})")
    elif rsi < t.rsi_approaching_oversold:
        score += 1
        reasons.append(f"RSI approaching oversold ({rsi:.1f})")
    elif rsi > t.rsi_overbought:
        score -= 3
        reasons.append(f"RSI deep overbought ({rsi:.1f})")
    elif rsi > t.rsi_approaching_overbought:
        score -= 1
        reasons.append(f"RSI approaching overbought ({rsi:.1f})")

    # MACD
    hist = snapshot.macd_histogram
    if hist > t.macd_threshold and snapshot.macd > snapshot.macd_signal:
        score += 2
        reasons.append("MACD bullish crossover")
    elif hist > 0:
        score += 1
        reasons.append("MACD histogram mildly positive")
    elif hist < -t.macd_threshold and snapshot.macd < snapshot.macd_signal:
        score -= 2
        reasons.append("MACD bearish crossover")
    elif hist < 0:
        score -= 1
        reasons.append("MACD histogram mildly negative")

    # Price vs SMA20
    if snapshot.current_price > snapshot.sma20:
        score += 2
        reasons.append("Price above SMA20")
    else:
        score -= 2
        reasons.append("Price below SMA20")

    # EMA crossover
    if snapshot.ema12 > snapshot.ema26:
        score += 2
        reasons.append("EMA12 above EMA26")
    else:
        score -= 2
        reasons.append("EMA12 below EMA26")

    # Trend confirmation
    if snapshot.trend == "BULLISH":
        score += 2
        reasons.append("Bullish trend confirmed")
    elif snapshot.trend == "BEARISH":
        score -= 2
        reasons.append("Bearish trend confirmed")

    # Volume spike amplifies whichever side is already winning
    spike = snapshot.current_volume > snapshot.average_volume * t.volume_multiplier
    if spike and score > 0:
        score += 1
        reasons.append("Volume spike confirms buyers")
    elif spike and score < 0:
        score -= 1
        reasons.append("Volume spike confirms sellers")

    return score, reasons


def map_score(score: int, thresholds: AnalysisThresholds) -> tuple[Action, Strength]:
    """Map a final score onto an action and strength tier (symmetric)."""
    magnitude = abs(score)
    if magnitude < thresholds.score_moderate:
        return "HOLD", "WEAK"

    action: Action = "BUY" if score > 0 else "SELL"
    if magnitude >= thresholds.score_very_strong:
        return action, "VERY_STRONG"
    if magnitude >= thresholds.score_strong:
        return action, "STRONG"
    return action, "MODERATE"


def historical_accuracy(
    snapshot: IndicatorSnapshot,
    thresholds: AnalysisThresholds,
) -> float:
    """Heuristic accuracy multiplier for the win probability.

    Starts at ``base_accuracy`` and adds ``accuracy_step`` when RSI sits in
    a deep oversold/overbought zone and again when the MACD histogram
    magnitude exceeds ``accuracy_histogram_threshold``.  Capped at
    ``max_accuracy``.  Static, not learned.
    """
    accuracy = thresholds.base_accuracy
    if snapshot.rsi < thresholds.rsi_oversold or snapshot.rsi > thresholds.rsi_overbought:
        accuracy += thresholds.accuracy_step
    if abs(snapshot.macd_histogram) > thresholds.accuracy_histogram_threshold:
        accuracy += thresholds.accuracy_step
    return min(accuracy, thresholds.max_accuracy)


# ── Signal ───────────────────────────────────────────────────────────────


def _now_ms() -> int:
    return int(time.time() * 1000)


def insufficient_data_signal(
    candles: Sequence[Candle],
    thresholds: AnalysisThresholds,
    timestamp: Optional[int] = None,
) -> TradingSignal:
    """Fixed low-confidence HOLD pinned to the latest close."""
    last_close = candles[-1].close if candles else 0.0
    price = round(last_close, thresholds.price_decimals)
    return TradingSignal(
        action="HOLD",
        confidence=HOLD_CONFIDENCE,
        probability=HOLD_PROBABILITY,
        strength="WEAK",
        reason=INSUFFICIENT_DATA_REASON,
        timestamp=timestamp if timestamp is not None else _now_ms(),
        entry_price=price,
        stop_loss=price,
        take_profit=price,
    )


def score_signal(
    candles: Sequence[Candle],
    snapshot: IndicatorSnapshot,
    thresholds: AnalysisThresholds,
    timestamp: Optional[int] = None,
) -> TradingSignal:
    """Score the latest candle and build a ``TradingSignal``.

    Below ``thresholds.min_history`` candles the result is the fixed
    insufficient-data HOLD.  Otherwise every rule is applied, the score is
    mapped to action/strength, and entry/SL/TP are bracketed around the
    latest close using ATR.

    Args:
        candles: Candle history, oldest-first.
        snapshot: Indicators built from the same *candles*.
        thresholds: Instrument calibration.
        timestamp: Signal time in epoch ms.  Defaults to the wall clock.

    Returns:
        ``TradingSignal``.  Never raises for a non-empty ordered history.
    """
    if timestamp is None:
        timestamp = _now_ms()

    if len(candles) < thresholds.min_history:
        return insufficient_data_signal(candles, thresholds, timestamp)

    score, reasons = score_indicators(snapshot, thresholds)
    action, strength = map_score(score, thresholds)

    if action == "HOLD":
        confidence = HOLD_CONFIDENCE
        probability = HOLD_PROBABILITY
        summary = "No clear direction"
    else:
        confidence = TIER_CONFIDENCE[strength]
        accuracy = historical_accuracy(snapshot, thresholds)
        probability = min(100, max(0, round(confidence * accuracy)))
        summary = f"{strength.replace('_', ' ').title()} {action.lower()} signal"

    levels = calculate_levels(
        entry_price=candles[-1].close,
        action=action,
        atr=snapshot.atr,
        atr_multiplier=thresholds.atr_multiplier,
        risk_reward_ratio=thresholds.risk_reward_ratio,
        fallback_range_pct=thresholds.fallback_range_pct,
        decimals=thresholds.price_decimals,
    )

    return TradingSignal(
        action=action,
        confidence=confidence,
        probability=probability,
        strength=strength,
        reason=f"{summary} (score {score:+d}): {'; '.join(reasons)}",
        timestamp=timestamp,
        entry_price=levels.entry_price,
        stop_loss=levels.stop_loss,
        take_profit=levels.take_profit,
    )
