"""
CandleFeed – Application Port: Chart Presenter
==============================================
Interfaz hacia el colaborador de presentación.

El pipeline publica; la infraestructura decide CÓMO llega al usuario
(snapshot REST + broadcast WebSocket, recorder en tests, etc.)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, Sequence

from candlefeed.domain.entities.candle import Candle
from candlefeed.domain.value_objects.price_change import PriceChangeSummary
from candlefeed.domain.value_objects.range_profile import RangeProfile


class IChartPresenter(ABC):
    """Recibe el estado visible de la selección actual."""

    @abstractmethod
    async def reset(self, symbol: Optional[str], profile: Optional[RangeProfile]) -> None:
        """Nueva selección (o ninguna): serie vacía, sin resumen ni error."""

    @abstractmethod
    async def publish_series(self, series: Sequence[Candle]) -> None:
        """Serie de velas actual para graficar."""

    @abstractmethod
    async def publish_summary(self, summary: Optional[PriceChangeSummary]) -> None:
        """Resumen de variación del período (None si no hay)."""

    @abstractmethod
    async def set_loading(self, loading: bool) -> None:
        """Flag de carga en curso."""

    @abstractmethod
    async def set_error(self, message: Optional[str]) -> None:
        """Mensaje de error o aviso visible (None lo limpia)."""
