"""Binance public market-data REST client (async).

Fetches kline (candlestick) history for a symbol and converts each row into
a ``Candle``.  No authentication is needed for this endpoint.
"""

import logging

import httpx

from pulsetrade.config import Config
from pulsetrade.strategy.models import Candle

logger = logging.getLogger("pulsetrade")


class BinanceClient:
    """Async client wrapping the Binance ``/api/v3/klines`` endpoint."""

    def __init__(self, config: Config) -> None:
        self._config = config
        self._base_url = config.binance_base_url.rstrip("/")

    async def fetch_candles(
        self,
        symbol: str,
        interval: str = "1m",
        limit: int = 1000,
    ) -> list[Candle]:
        """Fetch kline data from Binance.

        Args:
            symbol: e.g. ``"EURUSDT"``
            interval: e.g. ``"1m"``, ``"5m"``, ``"1h"``
            limit: number of klines to request (max 1000)

        Returns:
            List of ``Candle`` objects ordered oldest-first.

        Raises:
            httpx.HTTPStatusError: on a non-2xx response.
            httpx.TransportError: when the endpoint is unreachable.
        """
        url = f"{self._base_url}/api/v3/klines"
        params = {"symbol": symbol, "interval": interval, "limit": limit}

        async with httpx.AsyncClient() as client:
            resp = await client.get(url, params=params, timeout=15.0)
        resp.raise_for_status()

        # Row layout: [openTime, open, high, low, close, volume, closeTime, ...]
        candles: list[Candle] = []
        for row in resp.json():
            candles.append(
                Candle(
                    timestamp=int(row[0]),
                    open=float(row[1]),
                    high=float(row[2]),
                    low=float(row[3]),
                    close=float(row[4]),
                    volume=float(row[5]),
                )
            )
        logger.debug("Fetched %d %s %s candles", len(candles), symbol, interval)
        return candles

    async def fetch_configured_candles(self) -> list[Candle]:
        """Fetch candles for the symbol/interval/limit in the config."""
        return await self.fetch_candles(
            self._config.symbol,
            self._config.candle_interval,
            self._config.candle_limit,
        )
