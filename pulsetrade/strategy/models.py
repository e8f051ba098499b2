"""Analysis data models — typed representations for the analysis pipeline."""

from dataclasses import dataclass
from typing import Literal


Trend = Literal["BULLISH", "BEARISH", "SIDEWAYS", "UNDEFINED"]
Momentum = Literal["STRONG_UP", "UP", "NEUTRAL", "DOWN", "STRONG_DOWN", "UNDEFINED"]
Action = Literal["BUY", "SELL", "HOLD"]
Strength = Literal["WEAK", "MODERATE", "STRONG", "VERY_STRONG"]
Volatility = Literal["HIGH", "MEDIUM", "LOW"]


@dataclass(frozen=True)
class Candle:
    """A single OHLCV bar, oldest-first in any sequence."""

    timestamp: int  # epoch milliseconds (bar open time)
    open: float
    high: float
    low: float
    close: float
    volume: float


@dataclass(frozen=True)
class IndicatorSnapshot:
    """Current-value indicator bundle derived from one candle history."""

    sma20: float
    sma50: float
    ema12: float
    ema26: float
    rsi: float
    macd: float
    macd_signal: float
    macd_histogram: float
    atr: float
    current_volume: float
    average_volume: float
    trend: Trend
    momentum: Momentum
    current_price: float = 0.0
    price_change: float = 0.0  # close[-1] - close[-2]


@dataclass(frozen=True)
class TradingSignal:
    """A scored trading decision with bracketing prices."""

    action: Action
    confidence: int  # 0-100
    probability: int  # 0-100, heuristic win probability
    strength: Strength
    reason: str
    timestamp: int  # epoch milliseconds (wall clock)
    entry_price: float
    stop_loss: float
    take_profit: float


@dataclass(frozen=True)
class MarketAnalysis:
    """Top-level output of one analysis cycle."""

    trend: Trend
    momentum: Momentum
    volatility: Volatility
    signals: tuple[TradingSignal, ...]
    indicators: IndicatorSnapshot
    volatility_pct: float = 0.0

    @property
    def signal(self) -> TradingSignal:
        """The current (most recent) signal."""
        return self.signals[-1]


NEUTRAL_SNAPSHOT = IndicatorSnapshot(
    sma20=0.0,
    sma50=0.0,
    ema12=0.0,
    ema26=0.0,
    rsi=50.0,
    macd=0.0,
    macd_signal=0.0,
    macd_histogram=0.0,
    atr=0.0,
    current_volume=0.0,
    average_volume=0.0,
    trend="UNDEFINED",
    momentum="UNDEFINED",
)
