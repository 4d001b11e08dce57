"""
CandleFeed – Event Bus (asyncio.Queue fan-out)
==============================================
Bus de eventos interno para desacoplar el productor del estado del
gráfico (presenter) de sus consumidores (broadcast WebSocket).

Arquitectura:
  ┌───────────┐               ┌───────────┐
  │ Presenter │──chart_state─▸│ Event Bus │──▸ Consumer 1 (WS broadcast)
  └───────────┘               │ (fan-out) │──▸ Consumer N ...
                              └───────────┘

CÓMO SE PROTEGE AL PRODUCTOR:
- Cada consumidor tiene su propia asyncio.Queue con tamaño limitado.
- Si un consumidor es lento y su cola se llena, se descarta el evento
  MÁS ANTIGUO (política drop-oldest). Cada evento es un snapshot
  completo, así que perder uno intermedio no deja estado inconsistente.
- publish() nunca hace await sobre una cola: el presenter no se bloquea.

THREAD-SAFETY:
- asyncio.Queue es safe dentro del mismo event loop, que es nuestro caso.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from candlefeed.shared.logging.logger import get_logger

logger = get_logger("event_bus")

CHART_STATE_TOPIC = "chart_state"


@dataclass
class _Subscription:
    consumer_name: str
    queue: asyncio.Queue
    dropped: int = 0


@dataclass
class _TopicStats:
    published: int = 0
    subscriptions: List[_Subscription] = field(default_factory=list)


class EventBus:
    """Fan-out event bus basado en asyncio.Queue."""

    def __init__(self, max_queue_size: int = 1_000) -> None:
        self._max_queue_size = max_queue_size
        self._topics: Dict[str, _TopicStats] = {}
        self._lock = asyncio.Lock()

    async def subscribe(self, topic: str, consumer_name: str) -> asyncio.Queue:
        """Registrar un consumidor; retorna su Queue exclusiva."""
        async with self._lock:
            queue: asyncio.Queue = asyncio.Queue(maxsize=self._max_queue_size)
            entry = self._topics.setdefault(topic, _TopicStats())
            entry.subscriptions.append(_Subscription(consumer_name, queue))
            logger.info(
                "Consumidor '%s' suscrito a '%s' (max_queue=%d)",
                consumer_name, topic, self._max_queue_size,
            )
            return queue

    async def unsubscribe(self, topic: str, queue: asyncio.Queue) -> None:
        async with self._lock:
            entry = self._topics.get(topic)
            if entry is None:
                return
            entry.subscriptions = [s for s in entry.subscriptions if s.queue is not queue]

    async def publish(self, topic: str, data: Any) -> None:
        """Entregar `data` a cada consumidor del tópico (drop-oldest)."""
        entry = self._topics.setdefault(topic, _TopicStats())
        entry.published += 1
        for sub in entry.subscriptions:
            if sub.queue.full():
                try:
                    sub.queue.get_nowait()
                except asyncio.QueueEmpty:
                    pass
                else:
                    sub.dropped += 1
                    logger.warning(
                        "Cola llena para '%s' en '%s' – evento antiguo descartado (%d)",
                        sub.consumer_name, topic, sub.dropped,
                    )
            sub.queue.put_nowait(data)

    async def unsubscribe_all(self, topic: Optional[str] = None) -> None:
        """Cleanup al shutdown (todos los tópicos si topic es None)."""
        async with self._lock:
            if topic:
                self._topics.pop(topic, None)
                logger.info("Suscriptores del tópico '%s' eliminados", topic)
            else:
                self._topics.clear()
                logger.info("Todos los suscriptores eliminados (shutdown)")

    @property
    def subscriber_count(self) -> int:
        return sum(len(t.subscriptions) for t in self._topics.values())

    @property
    def stats(self) -> dict:
        return {
            topic: {
                "published": entry.published,
                "consumers": {
                    s.consumer_name: {"pending": s.queue.qsize(), "dropped": s.dropped}
                    for s in entry.subscriptions
                },
            }
            for topic, entry in self._topics.items()
        }
