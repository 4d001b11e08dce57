"""
CandleFeed – WebSocket Manager (broadcast a clientes frontend)
==============================================================
Reenvía cada snapshot del tópico chart_state a todos los clientes
conectados en /ws/chart.

  EventBus ──(chart_state)──▸ _pump() ──▸ [cliente 1, cliente 2, ...]

- Un cliente nuevo recibe primero el snapshot vigente, así nunca ve un
  gráfico vacío mientras espera el siguiente cambio.
- El envío a cada cliente tiene timeout; un cliente lento o caído se
  descarta sin frenar al resto.
- Mensaje: {"type": "chart_state", "data": ChartStateDTO.to_dict()}
"""

from __future__ import annotations

import asyncio
import json
from typing import Callable, Iterable, Optional, Set

from fastapi import WebSocket, WebSocketDisconnect

from candlefeed.infrastructure.event_bus import CHART_STATE_TOPIC, EventBus
from candlefeed.shared.logging.logger import get_logger

logger = get_logger("ws_manager")

SnapshotProvider = Callable[[], dict]


def _encode(data: dict) -> str:
    return json.dumps({"type": CHART_STATE_TOPIC, "data": data})


class WebSocketManager:
    """Clientes del gráfico en vivo + task de reenvío desde el EventBus."""

    def __init__(
        self,
        event_bus: EventBus,
        snapshot_provider: Optional[SnapshotProvider] = None,
        send_timeout: float = 5.0,
    ) -> None:
        self._event_bus = event_bus
        self._snapshot_provider = snapshot_provider
        self._send_timeout = send_timeout
        self._clients: Set[WebSocket] = set()
        self._queue: Optional[asyncio.Queue] = None
        self._pump_task: Optional[asyncio.Task] = None
        self._messages_sent = 0

    async def start(self) -> None:
        self._queue = await self._event_bus.subscribe(CHART_STATE_TOPIC, "ws_chart_clients")
        self._pump_task = asyncio.create_task(self._pump(self._queue), name="ws-chart-pump")
        logger.info("WebSocketManager escuchando '%s'", CHART_STATE_TOPIC)

    async def stop(self) -> None:
        """Detener el reenvío y cerrar las conexiones abiertas."""
        task, self._pump_task = self._pump_task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        if self._queue is not None:
            await self._event_bus.unsubscribe(CHART_STATE_TOPIC, self._queue)
            self._queue = None

        clients, self._clients = list(self._clients), set()
        for ws in clients:
            try:
                await ws.close()
            except (WebSocketDisconnect, RuntimeError, OSError) as e:
                logger.debug("Cliente WS ya cerrado: %s", e)
        logger.info("WebSocketManager detenido (%d clientes cerrados)", len(clients))

    # ──────────────────────── Clientes ──────────────────────────────────

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self._clients.add(websocket)
        logger.info("Cliente WS conectado (%d activos)", len(self._clients))

        if self._snapshot_provider is not None:
            await self._fan_out(_encode(self._snapshot_provider()), [websocket])

    def disconnect(self, websocket: WebSocket) -> None:
        if websocket in self._clients:
            self._clients.discard(websocket)
            logger.info("Cliente WS desconectado (%d activos)", len(self._clients))

    # ──────────────────────── Envío ─────────────────────────────────────

    async def _pump(self, queue: asyncio.Queue) -> None:
        while True:
            data = await queue.get()
            if self._clients:
                await self._fan_out(_encode(data), list(self._clients))

    async def _fan_out(self, payload: str, targets: Iterable[WebSocket]) -> None:
        targets = list(targets)
        results = await asyncio.gather(*(self._send(ws, payload) for ws in targets))
        for ws, ok in zip(targets, results):
            if ok:
                self._messages_sent += 1
            else:
                self._clients.discard(ws)

    async def _send(self, ws: WebSocket, payload: str) -> bool:
        try:
            await asyncio.wait_for(ws.send_text(payload), timeout=self._send_timeout)
        except (WebSocketDisconnect, asyncio.TimeoutError, RuntimeError, OSError) as e:
            logger.debug("Envío WS fallido, cliente descartado: %s", e)
            return False
        return True

    @property
    def client_count(self) -> int:
        return len(self._clients)

    @property
    def stats(self) -> dict:
        return {
            "clients": len(self._clients),
            "messages_sent": self._messages_sent,
            "event_bus": self._event_bus.stats,
        }
