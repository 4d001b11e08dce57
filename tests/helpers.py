"""Fakes y utilidades compartidas por los tests (sin red)."""

from __future__ import annotations

import asyncio
import json
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from candlefeed.application.ports.chart_presenter import IChartPresenter
from candlefeed.application.ports.market_data_provider import IMarketDataProvider
from candlefeed.domain.entities.candle import Candle

# 2024-03-03 14:05 UTC
BASE_MS = int(datetime(2024, 3, 3, 14, 5, tzinfo=timezone.utc).timestamp() * 1000)
MINUTE_MS = 60_000

CLOSE = object()


def make_row(open_time: int, open_: float, high: float, low: float, close: float, volume: float = 1.0) -> list:
    """Fila de kline REST tal como la devuelve Binance."""
    return [open_time, str(open_), str(high), str(low), str(close), str(volume), open_time + MINUTE_MS - 1]


def rows_from_closes(closes: List[float], step_ms: int = MINUTE_MS) -> List[list]:
    rows = []
    for i, close in enumerate(closes):
        rows.append(make_row(BASE_MS + i * step_ms, close, close + 1, max(close - 1, 0), close))
    return rows


def make_tick(open_time: int, close: float, open_: Optional[float] = None, volume: float = 2.0) -> str:
    """Mensaje crudo del stream de klines (con envoltorio)."""
    open_ = close if open_ is None else open_
    return json.dumps({
        "e": "kline",
        "s": "BTCUSDT",
        "k": {
            "t": open_time,
            "o": str(open_),
            "h": str(max(open_, close) + 1),
            "l": str(min(open_, close) - 1),
            "c": str(close),
            "v": str(volume),
        },
    })


def make_candle(label: str, close: float, open_: Optional[float] = None) -> Candle:
    open_ = close if open_ is None else open_
    return Candle(
        bucket_label=label,
        open=open_,
        close=close,
        low_high=(min(open_, close), max(open_, close)),
        open_close_range=(min(open_, close), max(open_, close)),
        volume=1.0,
    )


async def wait_until(predicate, timeout: float = 1.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condición no alcanzada a tiempo")
        await asyncio.sleep(0.001)


class FakeStream:
    """Stream guionado: push() de mensajes, CLOSE o excepciones."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue = asyncio.Queue()
        self.closed = False

    def push(self, item: Any) -> None:
        self._queue.put_nowait(item)

    def __aiter__(self):
        return self

    async def __anext__(self):
        item = await self._queue.get()
        if item is CLOSE:
            raise StopAsyncIteration
        if isinstance(item, BaseException):
            raise item
        return item


class FakeMarketDataProvider(IMarketDataProvider):
    """Proveedor en memoria con contadores de fetch y conexiones."""

    def __init__(self, klines: Optional[Dict[Tuple[str, str], Any]] = None) -> None:
        self.klines: Dict[Tuple[str, str], Any] = klines or {}
        self.fetch_calls: List[Tuple[str, str, int]] = []
        self.fetch_gates: Dict[str, asyncio.Event] = {}
        self.connections: List[Any] = []
        self.opened: List[FakeStream] = []
        self.connect_attempts = 0
        self.closed = False

    async def fetch_klines(self, symbol: str, interval: str, limit: int):
        self.fetch_calls.append((symbol, interval, limit))
        gate = self.fetch_gates.get(interval)
        if gate is not None:
            await gate.wait()
        result = self.klines.get((symbol.upper(), interval), [])
        if isinstance(result, BaseException):
            raise result
        if isinstance(result, list):
            return [list(row) if isinstance(row, (list, tuple)) else row for row in result]
        return result

    @asynccontextmanager
    async def stream_klines(self, symbol: str, interval: str):
        self.connect_attempts += 1
        script = self.connections.pop(0) if self.connections else FakeStream()
        if isinstance(script, BaseException):
            raise script
        self.opened.append(script)
        try:
            yield script
        finally:
            script.closed = True

    async def close(self) -> None:
        self.closed = True


class RecordingSleep:
    """Sustituto de asyncio.sleep que registra los delays pedidos."""

    def __init__(self, block: bool = False) -> None:
        self.delays: List[float] = []
        self._block = block
        self.release = asyncio.Event()

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        if self._block:
            await self.release.wait()
        else:
            await asyncio.sleep(0)


class RecordingPresenter(IChartPresenter):
    """Presenter que guarda el último estado y el historial de llamadas."""

    def __init__(self) -> None:
        self.events: List[tuple] = []
        self.symbol = None
        self.range_id = None
        self.series: List[Candle] = []
        self.summary = None
        self.loading = False
        self.error = None

    async def reset(self, symbol, profile) -> None:
        self.events.append(("reset", symbol, profile.identifier if profile else None))
        self.symbol = symbol
        self.range_id = profile.identifier if profile else None
        self.series, self.summary, self.loading, self.error = [], None, False, None

    async def publish_series(self, series) -> None:
        self.events.append(("series", len(series)))
        self.series = list(series)

    async def publish_summary(self, summary) -> None:
        self.events.append(("summary", summary))
        self.summary = summary

    async def set_loading(self, loading: bool) -> None:
        self.events.append(("loading", loading))
        self.loading = loading

    async def set_error(self, message) -> None:
        self.events.append(("error", message))
        self.error = message

    def count(self, kind: str) -> int:
        return sum(1 for e in self.events if e[0] == kind)
