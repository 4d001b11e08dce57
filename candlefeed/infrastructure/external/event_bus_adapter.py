"""
Event Bus Adapter.

Adapta el EventBus a la interfaz IChartPresenter.
Mantiene el ChartStateDTO actual (para la API REST) y publica un
snapshot completo en el tópico chart_state tras cada cambio (para el
broadcast WebSocket).
"""

from __future__ import annotations

from typing import Optional, Sequence

from candlefeed.application.dto.chart_state_dto import ChartStateDTO
from candlefeed.application.ports.chart_presenter import IChartPresenter
from candlefeed.domain.entities.candle import Candle
from candlefeed.domain.value_objects.price_change import PriceChangeSummary
from candlefeed.domain.value_objects.range_profile import RangeProfile
from candlefeed.infrastructure.event_bus import CHART_STATE_TOPIC, EventBus
from candlefeed.shared.logging.logger import get_logger

logger = get_logger("event_bus_adapter")


class EventBusChartPresenter(IChartPresenter):
    """Implementación de IChartPresenter sobre el EventBus."""

    def __init__(self, event_bus: EventBus) -> None:
        self._event_bus = event_bus
        self._state = ChartStateDTO()
        self._published: int = 0

    async def reset(self, symbol: Optional[str], profile: Optional[RangeProfile]) -> None:
        self._state = ChartStateDTO(
            symbol=symbol,
            range_id=profile.identifier if profile else None,
            is_live=bool(profile and profile.is_live),
        )
        await self._publish()

    async def publish_series(self, series: Sequence[Candle]) -> None:
        self._state.candles = list(series)
        await self._publish()

    async def publish_summary(self, summary: Optional[PriceChangeSummary]) -> None:
        self._state.summary = summary
        await self._publish()

    async def set_loading(self, loading: bool) -> None:
        self._state.loading = loading
        await self._publish()

    async def set_error(self, message: Optional[str]) -> None:
        self._state.error = message
        await self._publish()

    async def _publish(self) -> None:
        self._published += 1
        await self._event_bus.publish(CHART_STATE_TOPIC, self._state.to_dict())

    @property
    def state(self) -> ChartStateDTO:
        return self._state

    def snapshot(self) -> dict:
        return self._state.to_dict()

    @property
    def published_count(self) -> int:
        return self._published
