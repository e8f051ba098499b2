"""PulseTrade — application configuration.

Loads .env variables into a typed config object.
Validates settings on startup.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from pulsetrade.strategy.thresholds import INSTRUMENT_THRESHOLDS, AnalysisThresholds, get_thresholds


_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Config:
    """Typed configuration loaded from environment variables."""

    symbol: str
    candle_interval: str
    candle_limit: int
    instrument_category: str
    poll_interval_seconds: int
    binance_base_url: str
    telegram_enabled: bool
    telegram_bot_token: str
    telegram_chat_id: str
    alert_cooldown_seconds: int
    advisor_cooldown_seconds: int
    log_level: str
    api_port: int

    @property
    def thresholds(self) -> AnalysisThresholds:
        """Analysis thresholds for the configured instrument category."""
        return get_thresholds(self.instrument_category)


def _env_bool(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).strip().lower() in _TRUE_VALUES


def load_config(env_path: str | None = None) -> Config:
    """Load configuration from environment variables.

    Raises ``ValueError`` with a message naming the offending variable when
    a setting is invalid or a variable required by an enabled feature is
    absent.
    """
    load_dotenv(dotenv_path=env_path)

    category = os.environ.get("INSTRUMENT_CATEGORY", "forex_major")
    if category not in INSTRUMENT_THRESHOLDS:
        raise ValueError(
            f"INSTRUMENT_CATEGORY must be one of "
            f"{', '.join(INSTRUMENT_THRESHOLDS.keys())}, got '{category}'"
        )

    telegram_enabled = _env_bool("TELEGRAM_ENABLED")
    if telegram_enabled:
        missing = [
            v for v in ("TELEGRAM_BOT_TOKEN", "TELEGRAM_CHAT_ID")
            if not os.environ.get(v)
        ]
        if missing:
            raise ValueError(
                f"Missing required environment variable(s): {', '.join(missing)}"
            )

    poll_interval = int(os.environ.get("POLL_INTERVAL_SECONDS", "5"))
    if poll_interval <= 0:
        raise ValueError("POLL_INTERVAL_SECONDS must be positive")

    candle_limit = int(os.environ.get("CANDLE_LIMIT", "1000"))
    if not 1 <= candle_limit <= 1000:
        raise ValueError("CANDLE_LIMIT must be between 1 and 1000")

    return Config(
        symbol=os.environ.get("SYMBOL", "EURUSDT"),
        candle_interval=os.environ.get("CANDLE_INTERVAL", "1m"),
        candle_limit=candle_limit,
        instrument_category=category,
        poll_interval_seconds=poll_interval,
        binance_base_url=os.environ.get("BINANCE_BASE_URL", "https://api.binance.com"),
        telegram_enabled=telegram_enabled,
        telegram_bot_token=os.environ.get("TELEGRAM_BOT_TOKEN", ""),
        telegram_chat_id=os.environ.get("TELEGRAM_CHAT_ID", ""),
        alert_cooldown_seconds=int(os.environ.get("ALERT_COOLDOWN_SECONDS", "300")),
        advisor_cooldown_seconds=int(os.environ.get("ADVISOR_COOLDOWN_SECONDS", "60")),
        log_level=os.environ.get("LOG_LEVEL", "INFO"),
        api_port=int(os.environ.get("API_PORT", "8080")),
    )
