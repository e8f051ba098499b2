"""Internal API routers — /status, /analysis, /signals/history endpoints.

No business logic. Serves the shared state the engine publishes each cycle.
"""

import logging
from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Query

from pulsetrade.strategy.models import MarketAnalysis

logger = logging.getLogger("pulsetrade")
router = APIRouter()

# ── Shared state (updated by the engine) ─────────────────────────────────

_DEFAULT_STATUS: dict = {
    "running": False,
    "symbol": None,
    "interval": None,
    "instrument_category": None,
    "advisor_enabled": False,
    "telegram_enabled": False,
    "started_at": None,
    "cycle_count": 0,
    "last_cycle_at": None,
    "last_candle_time": None,
    "last_error": None,
}

_MAX_HISTORY = 50

_status: dict = {**_DEFAULT_STATUS}
_latest_analysis: Optional[dict] = None
_signal_history: list[dict] = []


def reset_state() -> None:
    """Restore the initial, empty state (engine restart and tests)."""
    global _latest_analysis  # noqa: PLW0603
    _status.clear()
    _status.update(_DEFAULT_STATUS)
    _latest_analysis = None
    _signal_history.clear()


def update_engine_status(**fields) -> None:
    """Update individual fields of the engine status dict."""
    _status.update(fields)


def analysis_to_dict(analysis: MarketAnalysis) -> dict:
    """JSON-ready representation of a ``MarketAnalysis``."""
    data = asdict(analysis)
    data["signals"] = list(data["signals"])
    return data


def update_analysis(analysis: MarketAnalysis) -> None:
    """Publish the latest analysis and log its signal.

    Consecutive identical signals (same action, strength and entry) are
    recorded once in the history.
    """
    global _latest_analysis  # noqa: PLW0603
    _latest_analysis = analysis_to_dict(analysis)

    signal = _latest_analysis["signals"][-1]
    if _signal_history:
        prev = _signal_history[-1]
        if (
            prev["action"] == signal["action"]
            and prev["strength"] == signal["strength"]
            and prev["entry_price"] == signal["entry_price"]
        ):
            return
    _signal_history.append(signal)
    if len(_signal_history) > _MAX_HISTORY:
        del _signal_history[0]
    logger.info(
        "Signal recorded: %s %s (entry %s)",
        signal["action"], signal["strength"], signal["entry_price"],
    )


# ── Endpoints ────────────────────────────────────────────────────────────


@router.get("/status")
async def get_status():
    """Return engine status."""
    return dict(_status)


@router.get("/analysis")
async def get_analysis():
    """Return the latest market analysis (``null`` before the first cycle)."""
    return {"analysis": _latest_analysis}


@router.get("/signals/history")
async def get_signal_history(
    limit: int = Query(default=20, ge=1, le=_MAX_HISTORY),
):
    """Return recent distinct signals, newest first."""
    recent = _signal_history[-limit:]
    recent.reverse()
    return {"signals": recent}
