"""Stop-loss and take-profit calculation — pure math, no I/O.

ATR-bracketed approach:
    risk distance   = ATR × atr_multiplier
    stop-loss       = entry ∓ risk distance
    take-profit     = entry ± risk distance × risk_reward_ratio

When ATR is zero (flat history) the risk distance falls back to a small
fraction of the entry price.  Both distances are floored at one price tick
(`10 ** -decimals`) and measured from the rounded entry, so after rounding a
BUY/SELL bracket always satisfies SL < entry < TP (mirrored for SELL).
"""

from dataclasses import dataclass

from pulsetrade.strategy.models import Action


@dataclass(frozen=True)
class RiskLevels:
    """Rounded entry, stop-loss and take-profit for a signal."""

    entry_price: float
    stop_loss: float
    take_profit: float


def risk_distance(
    entry_price: float,
    atr: float,
    atr_multiplier: float = 1.5,
    fallback_range_pct: float = 0.0002,
) -> float:
    """Distance from entry to stop-loss.

    ``ATR × atr_multiplier`` when ATR is positive, otherwise
    ``entry_price × fallback_range_pct``.
    """
    if atr > 0:
        return atr * atr_multiplier
    return entry_price * fallback_range_pct


def calculate_levels(
    entry_price: float,
    action: Action,
    atr: float,
    atr_multiplier: float = 1.5,
    risk_reward_ratio: float = 1.5,
    fallback_range_pct: float = 0.0002,
    decimals: int = 5,
) -> RiskLevels:
    """Calculate the bracket for a signal.

    - **BUY**:  SL = entry − distance, TP = entry + distance × R:R
    - **SELL**: SL = entry + distance, TP = entry − distance × R:R
    - **HOLD**: SL = TP = entry

    Args:
        entry_price: Latest close.
        action: ``"BUY"``, ``"SELL"`` or ``"HOLD"``.
        atr: Current ATR value (0 when unavailable).
        atr_multiplier: Stop distance in ATRs (default 1.5).
        risk_reward_ratio: Reward-to-risk ratio for TP (default 1.5).
        fallback_range_pct: Fraction of price used as distance when ATR is 0.
        decimals: Instrument price precision.

    Returns:
        ``RiskLevels`` with all three prices rounded to *decimals*.

    Raises:
        ValueError: If *action* is not BUY, SELL or HOLD.
    """
    entry = round(entry_price, decimals)

    if action == "HOLD":
        return RiskLevels(entry_price=entry, stop_loss=entry, take_profit=entry)

    # Never closer than one price tick, or rounding folds SL/TP onto entry
    tick = 10 ** -decimals
    distance = max(risk_distance(entry_price, atr, atr_multiplier, fallback_range_pct), tick)
    reward = max(distance * risk_reward_ratio, tick)

    if action == "BUY":
        sl = entry - distance
        tp = entry + reward
    elif action == "SELL":
        sl = entry + distance
        tp = entry - reward
    else:
        raise ValueError(f"action must be 'BUY', 'SELL' or 'HOLD', got '{action}'")

    return RiskLevels(
        entry_price=entry,
        stop_loss=round(sl, decimals),
        take_profit=round(tp, decimals),
    )


def risk_reward(entry_price: float, stop_loss: float, take_profit: float) -> float | None:
    """Reward-to-risk ratio of a bracket, or ``None`` when risk is zero."""
    risk = abs(entry_price - stop_loss)
    if risk == 0:
        return None
    return abs(take_profit - entry_price) / risk
