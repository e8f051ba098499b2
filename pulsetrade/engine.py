"""PulseTrade — analysis engine (orchestration loop).

Connects the candle feed, the market analyzer and the alert notifier into a
single polling loop.  Every cycle recomputes the analysis from the freshly
fetched history; nothing carries over between cycles except the cooldown
bookkeeping of the advisor and notifier.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

from pulsetrade.api.routers import update_analysis, update_engine_status
from pulsetrade.config import Config
from pulsetrade.feed.binance_client import BinanceClient
from pulsetrade.notify.telegram import TelegramNotifier
from pulsetrade.strategy.analyzer import MarketAnalyzer

logger = logging.getLogger("pulsetrade")


class AnalysisEngine:
    """Runs one fetch → analyze → enhance → notify cycle per call.

    Args:
        config: Application configuration.
        feed: A ``BinanceClient`` (or compatible duck-type / mock).
        analyzer: The ``MarketAnalyzer`` for the configured instrument.
        notifier: Optional ``TelegramNotifier``.
    """

    def __init__(
        self,
        config: Config,
        feed: BinanceClient,
        analyzer: MarketAnalyzer,
        notifier: Optional[TelegramNotifier] = None,
    ) -> None:
        self._config = config
        self._feed = feed
        self._analyzer = analyzer
        self._notifier = notifier
        self._running: bool = False
        self._cycle_count: int = 0
        self._last_enhanced_candle: Optional[int] = None

    # ── Lifecycle ────────────────────────────────────────────────────────

    def start(self) -> None:
        """Mark the engine as running and publish its initial status."""
        self._running = True
        update_engine_status(
            running=True,
            symbol=self._config.symbol,
            interval=self._config.candle_interval,
            instrument_category=self._config.instrument_category,
            advisor_enabled=self._analyzer.has_advisor,
            telegram_enabled=self._notifier is not None and self._notifier.enabled,
            started_at=datetime.now(timezone.utc).isoformat(),
        )

    def stop(self) -> None:
        """Signal the engine to stop after the current cycle."""
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    # ── Polling loop ─────────────────────────────────────────────────────

    async def run(
        self,
        poll_interval: int | None = None,
        max_cycles: int = 0,
    ) -> list[dict]:
        """Run the analysis loop until stopped.

        Args:
            poll_interval: Seconds between cycles. Defaults to the config.
            max_cycles: Stop after this many cycles (0 = unlimited).

        Returns:
            List of per-cycle result dicts.
        """
        if poll_interval is None:
            poll_interval = self._config.poll_interval_seconds
        if not self._running:
            self.start()

        results: list[dict] = []
        cycle = 0

        while self._running:
            cycle += 1
            try:
                result = await self.run_once()
            except Exception as exc:
                logger.error("Cycle %d error: %s", cycle, exc)
                result = {"action": "error", "reason": str(exc)}
                update_engine_status(last_error=str(exc))
            results.append(result)
            logger.info("Cycle %d: %s", cycle, result.get("action", "unknown"))

            if max_cycles > 0 and cycle >= max_cycles:
                break

            # Interruptible sleep — checks _running every second
            for _ in range(poll_interval):
                if not self._running:
                    break
                await asyncio.sleep(1)

        self._running = False
        update_engine_status(running=False)
        return results

    # ── Single cycle ─────────────────────────────────────────────────────

    async def run_once(self) -> dict:
        """Execute one analysis cycle.

        Returns a dict describing the outcome:

        - ``{"action": "skipped", "reason": "no_candles"}``
        - ``{"action": "BUY" | "SELL" | "HOLD", "strength": ..., ...}``
        """
        candles = await self._feed.fetch_configured_candles()
        now_iso = datetime.now(timezone.utc).isoformat()
        self._cycle_count += 1

        if not candles:
            update_engine_status(
                cycle_count=self._cycle_count, last_cycle_at=now_iso,
            )
            return {"action": "skipped", "reason": "no_candles"}

        analysis = self._analyzer.analyze(candles)

        # Advisor at most once per candle; a skipped call does not use it up
        last_candle = candles[-1].timestamp
        enhanced = False
        if (
            last_candle != self._last_enhanced_candle
            and self._analyzer.can_consult_advisor(analysis)
        ):
            self._last_enhanced_candle = last_candle
            enhanced_analysis = await self._analyzer.enhance(candles, analysis)
            enhanced = enhanced_analysis is not analysis
            analysis = enhanced_analysis

        signal = analysis.signal
        alerted = False
        if self._notifier is not None:
            alerted = await self._notifier.send_alert(signal)

        update_analysis(analysis)
        update_engine_status(
            cycle_count=self._cycle_count,
            last_cycle_at=now_iso,
            last_candle_time=last_candle,
            last_error=None,
        )

        return {
            "action": signal.action,
            "strength": signal.strength,
            "confidence": signal.confidence,
            "probability": signal.probability,
            "trend": analysis.trend,
            "momentum": analysis.momentum,
            "volatility": analysis.volatility,
            "enhanced": enhanced,
            "alerted": alerted,
        }
