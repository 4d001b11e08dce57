"""
CandleFeed – Live Update Subscriber
===================================
Dueño de UNA suscripción al stream de klines del rango en vivo.

MÁQUINA DE ESTADOS:

    IDLE ──start()──▸ CONNECTING ──1er mensaje──▸ STREAMING
                          ▲                            │
                          │ delay fijo                 │ error / cierre
                          │                            ▼
                          └────────────────────── RECONNECTING

    stop() desde cualquier estado ──▸ CLOSED  (idempotente)

RECONEXIÓN:
- Delay FIJO (3s por defecto), sin crecimiento ni tope de intentos.
  El llamador acota la vida del subscriber con stop().
- Cada corte se notifica como StreamDisrupted (aviso transitorio).

MENSAJES:
- Cada mensaje se decodifica, normaliza y se entrega con
  `await on_tick(candle)` ANTES de leer el siguiente: los ticks se
  aplican en orden de llegada, sin lotes ni reordenamiento.
- Un mensaje mal formado se loguea y se descarta; la conexión sigue.
- Si on_tick lanza, el error se loguea y se pasa al siguiente tick:
  solo los fallos de transporte disparan reconexión.

TEARDOWN:
- La conexión se adquiere con `async with`: al cancelar la task del
  loop se cierra el socket en cualquier camino de salida.
- El sleep de reconexión vive en la misma task, así que stop()
  también cancela el timer pendiente.
- Tras stop() no se invoca on_tick aunque lleguen eventos en vuelo.
"""

from __future__ import annotations

import asyncio
import json
from enum import Enum
from typing import Awaitable, Callable, Optional

from candlefeed.application.ports.market_data_provider import IMarketDataProvider, RawMessage
from candlefeed.domain.entities.candle import Candle
from candlefeed.domain.exceptions.domain_errors import MalformedRecord, StreamDisrupted
from candlefeed.domain.services.candle_normalizer import CandleNormalizer
from candlefeed.shared.logging.logger import get_logger

logger = get_logger("live_subscriber")

TickHandler = Callable[[Candle], Awaitable[None]]
DisruptionHandler = Callable[[StreamDisrupted], Awaitable[None]]
SleepFn = Callable[[float], Awaitable[None]]


class SubscriberState(str, Enum):
    """Estados del ciclo de vida de la suscripción."""
    IDLE = "IDLE"
    CONNECTING = "CONNECTING"
    STREAMING = "STREAMING"
    RECONNECTING = "RECONNECTING"
    CLOSED = "CLOSED"


class LiveUpdateSubscriber:
    """
    Suscripción única al stream de klines de un símbolo.

    Ciclo de vida:
      1. start()        → lanza la task del loop de conexión
      2. _run()         → conexión + reconexión con delay fijo
      3. _consume()     → normalizar mensajes y entregar ticks
      4. stop()         → cierre limpio (socket + timer)
    """

    def __init__(
        self,
        provider: IMarketDataProvider,
        normalizer: CandleNormalizer,
        interval: str = "1m",
        reconnect_delay: float = 3.0,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self._provider = provider
        self._normalizer = normalizer
        self._interval = interval
        self._reconnect_delay = reconnect_delay
        self._sleep = sleep

        self._state = SubscriberState.IDLE
        self._symbol: Optional[str] = None
        self._on_tick: Optional[TickHandler] = None
        self._on_disruption: Optional[DisruptionHandler] = None
        self._task: Optional[asyncio.Task] = None

        # Estadísticas de monitoreo
        self._ticks_delivered: int = 0
        self._messages_dropped: int = 0
        self._reconnects: int = 0
        self._handler_errors: int = 0

    @property
    def state(self) -> SubscriberState:
        return self._state

    @property
    def is_closed(self) -> bool:
        return self._state is SubscriberState.CLOSED

    # ──────────────────────── Lifecycle ──────────────────────────────────

    async def start(
        self,
        symbol: str,
        on_tick: TickHandler,
        on_disruption: Optional[DisruptionHandler] = None,
    ) -> None:
        """IDLE → CONNECTING. Un subscriber solo se arranca una vez."""
        if self._state is not SubscriberState.IDLE:
            raise RuntimeError(f"LiveUpdateSubscriber no está IDLE ({self._state.value})")

        self._symbol = symbol
        self._on_tick = on_tick
        self._on_disruption = on_disruption
        self._set_state(SubscriberState.CONNECTING)
        self._task = asyncio.create_task(
            self._run(), name=f"live-subscriber-{symbol.lower()}"
        )
        logger.info("LiveUpdateSubscriber iniciado (%s @ %s)", symbol, self._interval)

    async def stop(self) -> None:
        """Cierre limpio desde cualquier estado. Idempotente."""
        if self._state is SubscriberState.CLOSED:
            return

        self._set_state(SubscriberState.CLOSED)
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            if task is asyncio.current_task():
                return
            try:
                await task
            except asyncio.CancelledError:
                pass

        logger.info(
            "LiveUpdateSubscriber detenido (%s). Ticks entregados: %d",
            self._symbol, self._ticks_delivered,
        )

    # ──────────────────────── Connection Loop ───────────────────────────

    async def _run(self) -> None:
        """Loop de conexión; se repite hasta stop()."""
        if self._symbol is None or self._on_tick is None:
            logger.error("LiveUpdateSubscriber sin símbolo/handler; loop no iniciado")
            return
        while not self.is_closed:
            self._set_state(SubscriberState.CONNECTING)
            try:
                async with self._provider.stream_klines(self._symbol, self._interval) as stream:
                    logger.info("✓ Stream conectado (%s @ %s)", self._symbol, self._interval)
                    await self._consume(stream)
                reason = "stream cerrado por el servidor"
            except asyncio.CancelledError:
                raise
            except Exception as e:
                reason = f"{type(e).__name__}: {e}"

            if self.is_closed:
                break

            self._set_state(SubscriberState.RECONNECTING)
            self._reconnects += 1
            disruption = StreamDisrupted(
                f"Stream interrumpido ({reason})", symbol=self._symbol
            )
            logger.warning(
                "%s – reconectando en %.1fs (intento #%d)",
                disruption.message, self._reconnect_delay, self._reconnects,
            )
            await self._notify_disruption(disruption)
            await self._sleep(self._reconnect_delay)

    async def _consume(self, stream) -> None:
        async for raw in stream:
            if self.is_closed:
                break
            if self._state is SubscriberState.CONNECTING:
                self._set_state(SubscriberState.STREAMING)

            candle = self._decode(raw)
            if candle is None or self.is_closed:
                continue

            await self._deliver(candle)

    async def _deliver(self, candle: Candle) -> None:
        """Un fallo del handler se queda en ese tick; la conexión sigue."""
        try:
            await self._on_tick(candle)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._handler_errors += 1
            logger.error("Error en handler de tick (%s): %s", candle.bucket_label, e, exc_info=True)
        else:
            self._ticks_delivered += 1

    def _decode(self, raw: RawMessage) -> Optional[Candle]:
        """Mensaje crudo → Candle; None si está mal formado."""
        try:
            payload = json.loads(raw)
            return self._normalizer.from_live_tick(payload)
        except (json.JSONDecodeError, UnicodeDecodeError, TypeError) as e:
            self._messages_dropped += 1
            logger.warning("Mensaje no-JSON recibido, ignorando: %s", e)
        except MalformedRecord as e:
            self._messages_dropped += 1
            logger.warning("Tick mal formado descartado: %s", e.message)
        return None

    async def _notify_disruption(self, disruption: StreamDisrupted) -> None:
        if self._on_disruption is None:
            return
        try:
            await self._on_disruption(disruption)
        except Exception as e:
            logger.error("Error en handler de disrupción: %s", e, exc_info=True)

    def _set_state(self, state: SubscriberState) -> None:
        if self._state is SubscriberState.CLOSED and state is not SubscriberState.CLOSED:
            return
        if state is not self._state:
            logger.debug("Subscriber %s: %s → %s", self._symbol, self._state.value, state.value)
            self._state = state

    # ──────────────────────── Stats ─────────────────────────────────────

    @property
    def stats(self) -> dict:
        """Estadísticas del subscriber para monitoreo."""
        return {
            "state": self._state.value,
            "symbol": self._symbol,
            "interval": self._interval,
            "ticks_delivered": self._ticks_delivered,
            "messages_dropped": self._messages_dropped,
            "reconnects": self._reconnects,
            "handler_errors": self._handler_errors,
        }
