"""Advisor protocol — the optional signal-enhancement collaborator.

An advisor (typically a generative-model service) looks at the same history
and the core's signal and may return a replacement signal.  The replacement
is used whole, never merged field by field.
"""

from __future__ import annotations

from typing import Optional, Protocol, Sequence, runtime_checkable

from pulsetrade.strategy.models import Candle, IndicatorSnapshot, TradingSignal


@runtime_checkable
class AdvisorProtocol(Protocol):
    """Interface that any advisory service must satisfy."""

    async def enhance(
        self,
        candles: Sequence[Candle],
        indicators: IndicatorSnapshot,
        signal: TradingSignal,
    ) -> Optional[TradingSignal]:
        """Return a replacement signal, or None to keep *signal* as-is."""
        ...
