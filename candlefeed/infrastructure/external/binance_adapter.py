"""
CandleFeed – Binance Adapter
============================
Implementación de IMarketDataProvider sobre la API pública de Binance.

  Snapshot:  GET {rest}/api/v3/klines?symbol=BTCUSDT&interval=15m&limit=96
  Stream:    {ws}/ws/btcusdt@kline_1m

ERRORES:
- Cualquier fallo HTTP (status != 200, timeout, error de red, JSON
  inválido, payload que no es lista) se traduce a LoadFailed en este
  borde. La capa de aplicación nunca ve excepciones de aiohttp.
- El stream NO traduce errores: el subscriber los trata todos como
  corte transitorio y reconecta.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, List, Optional

import aiohttp
import websockets

from candlefeed.application.ports.market_data_provider import IMarketDataProvider, RawMessage
from candlefeed.domain.exceptions.domain_errors import LoadFailed
from candlefeed.shared.config.settings import Settings
from candlefeed.shared.logging.logger import get_logger

logger = get_logger("binance_adapter")

KLINES_PATH = "/api/v3/klines"


class BinanceAdapter(IMarketDataProvider):
    """REST (aiohttp) para snapshots + WebSocket (websockets) para ticks."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._session: Optional[aiohttp.ClientSession] = None

        # Stats
        self._requests: int = 0
        self._failed_requests: int = 0
        self._streams_opened: int = 0

    @property
    def klines_url(self) -> str:
        return f"{self._settings.binance_rest_url.rstrip('/')}{KLINES_PATH}"

    def stream_url(self, symbol: str, interval: str) -> str:
        base = self._settings.binance_ws_url.rstrip("/")
        return f"{base}/ws/{symbol.lower()}@kline_{interval}"

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self._settings.http_timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    # ════════════════════════════════════════════════════════════════
    #  IMarketDataProvider Implementation
    # ════════════════════════════════════════════════════════════════

    async def fetch_klines(self, symbol: str, interval: str, limit: int) -> List[List[Any]]:
        params = {"symbol": symbol.upper(), "interval": interval, "limit": str(limit)}
        self._requests += 1
        try:
            async with self._get_session().get(self.klines_url, params=params) as response:
                if response.status != 200:
                    body = await response.text()
                    raise LoadFailed(
                        f"HTTP {response.status} desde Binance: {body[:200]}",
                        symbol=symbol,
                    )
                data = await response.json(content_type=None)
        except LoadFailed:
            self._failed_requests += 1
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            self._failed_requests += 1
            logger.error("Error consultando klines %s/%s: %s", symbol, interval, e)
            raise LoadFailed(f"Error de red consultando klines: {e}", symbol=symbol) from e

        if not isinstance(data, list):
            self._failed_requests += 1
            raise LoadFailed(f"Payload de klines inesperado: {str(data)[:200]}", symbol=symbol)

        logger.debug("Klines %s/%s: %d filas", symbol, interval, len(data))
        return data

    @asynccontextmanager
    async def stream_klines(self, symbol: str, interval: str) -> AsyncIterator[AsyncIterator[RawMessage]]:
        url = self.stream_url(symbol, interval)
        logger.info("Conectando a stream: %s", url)
        async with websockets.connect(
            url,
            close_timeout=self._settings.ws_close_timeout,
            max_size=self._settings.ws_max_message_size,
        ) as ws:
            self._streams_opened += 1
            yield ws

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
        logger.info("BinanceAdapter cerrado")

    # ════════════════════════════════════════════════════════════════
    #  Stats
    # ════════════════════════════════════════════════════════════════

    @property
    def stats(self) -> dict:
        return {
            "requests": self._requests,
            "failed_requests": self._failed_requests,
            "streams_opened": self._streams_opened,
        }
