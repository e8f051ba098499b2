"""Per-instrument analysis thresholds.

Histogram, volume and volatility thresholds only mean something relative to
an instrument's price scale: a MACD histogram of 0.00005 is a strong move for
a pair quoted near 1.0 and pure noise for an asset quoted in the thousands.
Every magic number the scorer and snapshot builder use lives here, grouped by
instrument category.
"""

from dataclasses import dataclass, replace

from pulsetrade.strategy.indicators import AtrMethod


@dataclass(frozen=True)
class AnalysisThresholds:
    """Calibration for one instrument category."""

    price_decimals: int

    # MACD histogram: scoring rule and momentum classification
    macd_threshold: float
    momentum_strong_threshold: float
    momentum_weak_threshold: float
    accuracy_histogram_threshold: float

    # Realized volatility (percent) buckets
    volatility_high: float
    volatility_low: float

    # RSI zones
    rsi_period: int = 14
    rsi_oversold: float = 35.0
    rsi_approaching_oversold: float = 45.0
    rsi_overbought: float = 65.0
    rsi_approaching_overbought: float = 55.0

    # Volume spike confirmation
    volume_multiplier: float = 2.0

    # Stop-loss / take-profit
    atr_period: int = 14
    atr_method: AtrMethod = "ema"
    atr_multiplier: float = 1.5
    risk_reward_ratio: float = 1.5
    fallback_range_pct: float = 0.0002  # used when ATR is 0

    # Score → action mapping
    min_history: int = 50
    score_moderate: int = 4
    score_strong: int = 7
    score_very_strong: int = 10

    # Heuristic win-probability multiplier (not backtested)
    base_accuracy: float = 0.75
    accuracy_step: float = 0.1
    max_accuracy: float = 0.95

    def __post_init__(self) -> None:
        if self.atr_method not in ("ema", "simple"):
            raise ValueError(
                f"atr_method must be 'ema' or 'simple', got '{self.atr_method}'"
            )
        if not 0 < self.score_moderate <= self.score_strong <= self.score_very_strong:
            raise ValueError(
                "score thresholds must satisfy "
                "0 < score_moderate <= score_strong <= score_very_strong"
            )
        if self.volatility_low > self.volatility_high:
            raise ValueError("volatility_low must not exceed volatility_high")
        if self.rsi_oversold > self.rsi_approaching_oversold or (
            self.rsi_approaching_overbought > self.rsi_overbought
        ):
            raise ValueError("RSI zones are out of order")


# ── Instrument categories ────────────────────────────────────────────────

INSTRUMENT_THRESHOLDS: dict[str, AnalysisThresholds] = {
    # EUR/USD, GBP/USD, EURUSDT ... quoted near 1.0
    "forex_major": AnalysisThresholds(
        price_decimals=5,
        macd_threshold=0.00001,
        momentum_strong_threshold=0.00005,
        momentum_weak_threshold=0.0,
        accuracy_histogram_threshold=0.00003,
        volatility_high=0.05,
        volatility_low=0.02,
    ),
    # USD/JPY and crosses, quoted near 100-200
    "forex_jpy": AnalysisThresholds(
        price_decimals=3,
        macd_threshold=0.001,
        momentum_strong_threshold=0.005,
        momentum_weak_threshold=0.0,
        accuracy_histogram_threshold=0.003,
        volatility_high=0.05,
        volatility_low=0.02,
    ),
    # XAU/USD, quoted in the thousands with two decimals
    "metal": AnalysisThresholds(
        price_decimals=2,
        macd_threshold=0.05,
        momentum_strong_threshold=0.3,
        momentum_weak_threshold=0.0,
        accuracy_histogram_threshold=0.2,
        volatility_high=0.15,
        volatility_low=0.05,
        fallback_range_pct=0.0005,
    ),
    # BTC/USDT and other large-cap coins
    "crypto": AnalysisThresholds(
        price_decimals=2,
        macd_threshold=5.0,
        momentum_strong_threshold=20.0,
        momentum_weak_threshold=0.0,
        accuracy_histogram_threshold=15.0,
        volatility_high=0.5,
        volatility_low=0.2,
        volume_multiplier=2.5,
        fallback_range_pct=0.001,
    ),
}


def get_thresholds(category: str, **overrides) -> AnalysisThresholds:
    """Look up the thresholds for *category*, optionally overriding fields.

    Raises ``KeyError`` if the category is not registered.
    """
    if category not in INSTRUMENT_THRESHOLDS:
        raise KeyError(
            f"Unknown instrument category '{category}'. "
            f"Available: {', '.join(INSTRUMENT_THRESHOLDS.keys())}"
        )
    base = INSTRUMENT_THRESHOLDS[category]
    if overrides:
        return replace(base, **overrides)
    return base
