"""Market analyzer — the public entry point of the analysis core.

``analyze()`` is a synchronous, side-effect-free recomputation over the
supplied history: snapshot → score → signal → ``MarketAnalysis``.  The only
impure read is the wall clock for the signal timestamp.

``enhance()`` is the single place where the optional advisor is consulted.
The snapshot builder and the scorer know nothing about it.
"""

import logging
import time
from dataclasses import replace
from typing import Callable, Optional, Sequence

from pulsetrade.strategy.base import AdvisorProtocol
from pulsetrade.strategy.indicators import calculate_volatility
from pulsetrade.strategy.models import Candle, MarketAnalysis, Volatility
from pulsetrade.strategy.scoring import score_signal
from pulsetrade.strategy.snapshot import build_snapshot
from pulsetrade.strategy.thresholds import AnalysisThresholds

logger = logging.getLogger("pulsetrade")


def classify_volatility(volatility_pct: float, high: float, low: float) -> Volatility:
    """Bucket realized volatility: HIGH above *high*, LOW below *low*."""
    if volatility_pct > high:
        return "HIGH"
    if volatility_pct < low:
        return "LOW"
    return "MEDIUM"


class MarketAnalyzer:
    """Runs the indicator → score → signal pipeline for one instrument.

    Args:
        thresholds: Instrument calibration.
        advisor: Optional advisory service used by ``enhance()``.
        advisor_cooldown_seconds: Minimum gap between advisor calls.
        clock: Wall-clock source in seconds (injectable for tests).
    """

    def __init__(
        self,
        thresholds: AnalysisThresholds,
        advisor: Optional[AdvisorProtocol] = None,
        advisor_cooldown_seconds: float = 60.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._thresholds = thresholds
        self._advisor = advisor
        self._advisor_cooldown = advisor_cooldown_seconds
        self._clock = clock
        self._last_advisor_call: Optional[float] = None

    @property
    def thresholds(self) -> AnalysisThresholds:
        return self._thresholds

    @property
    def has_advisor(self) -> bool:
        return self._advisor is not None

    # ── Core ─────────────────────────────────────────────────────────────

    def analyze(self, candles: Sequence[Candle]) -> MarketAnalysis:
        """Analyze *candles* (oldest-first) and return a ``MarketAnalysis``.

        Same candles in, same analysis out (apart from the signal
        timestamp).  Never raises for a non-empty, chronologically ordered
        history.
        """
        t = self._thresholds
        snapshot = build_snapshot(candles, t)
        signal = score_signal(
            candles, snapshot, t, timestamp=int(self._clock() * 1000)
        )
        volatility_pct = calculate_volatility(candles)

        return MarketAnalysis(
            trend=snapshot.trend,
            momentum=snapshot.momentum,
            volatility=classify_volatility(
                volatility_pct, t.volatility_high, t.volatility_low
            ),
            signals=(signal,),
            indicators=snapshot,
            volatility_pct=volatility_pct,
        )

    # ── Optional advisory step ───────────────────────────────────────────

    def _advisor_cooling_down(self, now: float) -> bool:
        if self._last_advisor_call is None:
            return False
        return now - self._last_advisor_call < self._advisor_cooldown

    def can_consult_advisor(self, analysis: MarketAnalysis) -> bool:
        """True when ``enhance(analysis)`` would actually call the advisor."""
        if self._advisor is None or analysis.signal.action == "HOLD":
            return False
        return not self._advisor_cooling_down(self._clock())

    async def enhance(
        self,
        candles: Sequence[Candle],
        analysis: MarketAnalysis,
    ) -> MarketAnalysis:
        """Offer the current BUY/SELL signal to the advisor.

        Returns *analysis* unchanged when there is no advisor, the signal
        is HOLD, the advisor is cooling down, the advisor returns ``None``
        or the advisor raises.  Otherwise returns a new ``MarketAnalysis``
        whose only signal is the advisor's.
        """
        if not self.can_consult_advisor(analysis):
            return analysis

        signal = analysis.signal
        self._last_advisor_call = self._clock()
        try:
            replacement = await self._advisor.enhance(
                candles, analysis.indicators, signal
            )
        except Exception as exc:
            logger.warning(
                "Advisor failed (%s) — keeping technical %s signal",
                exc, signal.action,
            )
            return analysis

        if replacement is None:
            return analysis

        logger.info(
            "Advisor replaced %s/%s with %s/%s (confidence %d%%)",
            signal.action, signal.strength,
            replacement.action, replacement.strength, replacement.confidence,
        )
        return replace(analysis, signals=(replacement,))
