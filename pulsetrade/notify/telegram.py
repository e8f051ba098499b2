"""Telegram trade alerts.

Only actionable, high-conviction signals are sent: BUY or SELL, strength
STRONG or VERY_STRONG, win probability of at least 75%.  The same action is
not re-sent inside the cooldown window.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Callable, Optional

import httpx

from pulsetrade.risk.sl_tp import risk_reward
from pulsetrade.strategy.models import TradingSignal

logger = logging.getLogger("pulsetrade")

ALERT_STRENGTHS = {"STRONG", "VERY_STRONG"}
MIN_ALERT_PROBABILITY = 75


class TelegramNotifier:
    """Formats and dispatches trading alerts through the Telegram Bot API.

    Args:
        bot_token: Bot API token.
        chat_id: Target chat.
        enabled: Master switch; a disabled notifier never sends.
        symbol: Instrument label shown in the message header.
        price_decimals: Precision for the price lines.
        cooldown_seconds: Minimum gap between alerts for the same action.
        clock: Wall-clock source in seconds (injectable for tests).
    """

    def __init__(
        self,
        bot_token: str,
        chat_id: str,
        enabled: bool = True,
        symbol: str = "EURUSDT",
        price_decimals: int = 5,
        cooldown_seconds: float = 300.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._bot_token = bot_token
        self._chat_id = chat_id
        self._enabled = enabled
        self._symbol = symbol
        self._decimals = price_decimals
        self._cooldown = cooldown_seconds
        self._clock = clock
        self._last_sent: dict[str, float] = {}

    @property
    def enabled(self) -> bool:
        return self._enabled and bool(self._bot_token) and bool(self._chat_id)

    def should_notify(self, signal: TradingSignal) -> bool:
        """Return True when *signal* meets the alert criteria and is not a
        repeat of the same action inside the cooldown window."""
        if signal.action not in ("BUY", "SELL"):
            return False
        if signal.strength not in ALERT_STRENGTHS:
            return False
        if signal.probability < MIN_ALERT_PROBABILITY:
            return False
        last = self._last_sent.get(signal.action)
        if last is not None and self._clock() - last < self._cooldown:
            return False
        return True

    def format_message(self, signal: TradingSignal) -> str:
        """Render *signal* as an HTML Telegram message."""
        d = self._decimals
        emoji = "🟢" if signal.action == "BUY" else "🔴"
        rockets = "🚀🚀" if signal.strength == "VERY_STRONG" else "🚀"
        rr = risk_reward(signal.entry_price, signal.stop_loss, signal.take_profit)
        rr_text = f"1:{rr:.2f}" if rr is not None else "n/a"
        sent_at = datetime.fromtimestamp(signal.timestamp / 1000, tz=timezone.utc)

        return "\n".join([
            f"{emoji} <b>{self._symbol} TRADING SIGNAL</b> {rockets}",
            "",
            f"<b>Action:</b> {signal.action}",
            f"<b>Strength:</b> {signal.strength}",
            f"<b>Confidence:</b> {signal.confidence}%",
            f"<b>Win Probability:</b> {signal.probability}%",
            "",
            f"<b>Entry Price:</b> {signal.entry_price:.{d}f}",
            f"<b>Stop Loss:</b> {signal.stop_loss:.{d}f}",
            f"<b>Take Profit:</b> {signal.take_profit:.{d}f}",
            f"<b>Risk/Reward:</b> {rr_text}",
            "",
            f"<i>{signal.reason}</i>",
            "",
            f"<b>Time:</b> {sent_at:%Y-%m-%d %H:%M:%S} UTC",
        ])

    async def send_alert(self, signal: TradingSignal) -> bool:
        """Send *signal* if it qualifies.  Returns True when Telegram
        accepted the message; never raises."""
        if not self.enabled:
            logger.debug("Telegram disabled — alert skipped")
            return False
        if not self.should_notify(signal):
            return False

        url = f"https://api.telegram.org/bot{self._bot_token}/sendMessage"
        payload = {
            "chat_id": self._chat_id,
            "text": self.format_message(signal),
            "parse_mode": "HTML",
        }

        try:
            async with httpx.AsyncClient() as client:
                resp = await client.post(url, json=payload, timeout=10.0)
        except httpx.HTTPError as exc:
            logger.error("Failed to send Telegram alert: %s", exc)
            return False

        if resp.status_code != 200:
            logger.error(
                "Telegram rejected alert (%d): %s", resp.status_code, resp.text
            )
            return False

        self._last_sent[signal.action] = self._clock()
        logger.info(
            "Telegram alert sent: %s %s (%d%%)",
            signal.action, signal.strength, signal.probability,
        )
        return True


def build_notifier(config) -> Optional[TelegramNotifier]:
    """Create a notifier from ``Config``, or None when alerts are disabled."""
    if not config.telegram_enabled:
        return None
    return TelegramNotifier(
        bot_token=config.telegram_bot_token,
        chat_id=config.telegram_chat_id,
        enabled=True,
        symbol=config.symbol,
        price_decimals=config.thresholds.price_decimals,
        cooldown_seconds=config.alert_cooldown_seconds,
    )
