"""
CandleFeed – Chart Pipeline Use Case
====================================
Orquesta UNA selección (symbol, range) a la vez.

FLUJO DE select(symbol, range_id):
  1. Resolver el perfil → UnknownRange se propaga sin tocar el estado.
  2. Nuevo token de selección + teardown del subscriber anterior.
  3. Cargar histórico (caché) → LoadFailed se muestra y se corta aquí.
  4. Publicar serie + PriceChangeSummary (una sola vez por carga).
  5. Solo si el rango es en vivo: arrancar LiveUpdateSubscriber; cada
     tick pasa por SeriesMerger (max_len = profile.max_candles) y
     reemplaza la serie publicada. El resumen NO se recalcula en ticks.

CANCELACIÓN COOPERATIVA:
- Cada select() toma un token monótono creciente.
- Todo resultado asíncrono (fin de carga, tick tardío, aviso de corte)
  compara su token con el actual antes de aplicarse; si no coincide
  se descarta en silencio.
- Nunca se aborta un fetch en curso: su resultado simplemente se ignora.

RACE CONDITIONS:
- Todo corre en el mismo event loop; no hay threads.
- El subscriber activo se registra ANTES del await de start(), así un
  select() concurrente siempre lo encuentra para detenerlo.
"""

from __future__ import annotations

from typing import Callable, List, Optional

from candlefeed.application.dto.chart_state_dto import ChartStateDTO
from candlefeed.application.ports.chart_presenter import IChartPresenter
from candlefeed.application.services.historical_loader import HistoricalCandleLoader
from candlefeed.application.services.live_subscriber import LiveUpdateSubscriber
from candlefeed.domain.entities.candle import Candle
from candlefeed.domain.exceptions.domain_errors import LoadFailed, StreamDisrupted
from candlefeed.domain.services.price_change_calculator import compute_price_change
from candlefeed.domain.services.series_merger import SeriesMerger
from candlefeed.domain.value_objects.price_change import PriceChangeSummary
from candlefeed.domain.value_objects.range_profile import RangeProfile, resolve_range
from candlefeed.shared.logging.logger import get_logger

logger = get_logger("chart_pipeline")

LOAD_FAILED_MESSAGE = "Failed to load data"
STREAM_DISRUPTED_MESSAGE = "Connection error - retrying..."

SubscriberFactory = Callable[[RangeProfile], LiveUpdateSubscriber]


class ChartPipelineUseCase:
    """
    Caso de uso: mantener la serie visible de la selección actual.

    Dueño exclusivo de la CandleSeries y del subscriber en vivo.
    """

    def __init__(
        self,
        loader: HistoricalCandleLoader,
        merger: SeriesMerger,
        subscriber_factory: SubscriberFactory,
        presenter: IChartPresenter,
    ) -> None:
        self._loader = loader
        self._merger = merger
        self._subscriber_factory = subscriber_factory
        self._presenter = presenter

        self._token = 0
        self._symbol: Optional[str] = None
        self._profile: Optional[RangeProfile] = None
        self._series: List[Candle] = []
        self._summary: Optional[PriceChangeSummary] = None
        self._loading = False
        self._error: Optional[str] = None
        self._subscriber: Optional[LiveUpdateSubscriber] = None

    # ════════════════════════════════════════════════════════════════
    #  Selección
    # ════════════════════════════════════════════════════════════════

    async def select(self, symbol: str, range_id: str) -> ChartStateDTO:
        """Cambiar a (symbol, range_id); retorna el estado resultante."""
        profile = resolve_range(range_id)
        symbol = symbol.upper()

        token = self._next_token()
        await self._teardown()
        if token != self._token:
            return self.snapshot()

        self._symbol, self._profile = symbol, profile
        self._series, self._summary, self._error = [], None, None
        self._loading = True
        logger.info("Selección #%d: %s / %s", token, symbol, profile.identifier)
        await self._presenter.reset(symbol, profile)
        await self._presenter.set_loading(True)

        try:
            series = await self._loader.load(symbol, profile.identifier)
        except LoadFailed as e:
            if token != self._token:
                return self.snapshot()
            logger.error("Carga fallida %s/%s: %s", symbol, profile.identifier, e.message)
            self._loading = False
            self._error = LOAD_FAILED_MESSAGE
            await self._presenter.set_error(LOAD_FAILED_MESSAGE)
            await self._presenter.set_loading(False)
            return self.snapshot()

        if token != self._token:
            logger.debug("Carga de selección #%d obsoleta, descartada", token)
            return self.snapshot()

        self._series = series
        self._summary = compute_price_change(series)
        self._loading = False
        await self._presenter.publish_series(series)
        await self._presenter.publish_summary(self._summary)
        await self._presenter.set_loading(False)

        if profile.is_live:
            await self._start_subscriber(token, symbol, profile)

        return self.snapshot()

    async def deselect(self) -> None:
        """Teardown incondicional; la vista queda sin selección."""
        self._next_token()
        await self._teardown()
        self._symbol, self._profile = None, None
        self._series, self._summary = [], None
        self._loading, self._error = False, None
        await self._presenter.reset(None, None)
        logger.info("Selección eliminada")

    async def close(self) -> None:
        """Teardown al apagar el componente."""
        self._next_token()
        await self._teardown()

    # ════════════════════════════════════════════════════════════════
    #  Stream en vivo
    # ════════════════════════════════════════════════════════════════

    async def _start_subscriber(self, token: int, symbol: str, profile: RangeProfile) -> None:
        subscriber = self._subscriber_factory(profile)
        self._subscriber = subscriber

        async def on_tick(candle: Candle) -> None:
            await self._apply_tick(token, candle)

        async def on_disruption(disruption: StreamDisrupted) -> None:
            await self._apply_disruption(token, disruption)

        await subscriber.start(symbol, on_tick, on_disruption)

        if token != self._token:
            await subscriber.stop()

    async def _apply_tick(self, token: int, candle: Candle) -> None:
        if token != self._token or self._profile is None:
            return
        self._series = self._merger.merge(self._series, candle, self._profile.max_candles)
        await self._presenter.publish_series(self._series)
        if self._error is not None:
            self._error = None
            await self._presenter.set_error(None)

    async def _apply_disruption(self, token: int, disruption: StreamDisrupted) -> None:
        if token != self._token:
            return
        self._error = STREAM_DISRUPTED_MESSAGE
        await self._presenter.set_error(STREAM_DISRUPTED_MESSAGE)

    # ════════════════════════════════════════════════════════════════
    #  Helpers
    # ════════════════════════════════════════════════════════════════

    def _next_token(self) -> int:
        self._token += 1
        return self._token

    async def _teardown(self) -> None:
        subscriber, self._subscriber = self._subscriber, None
        if subscriber is not None:
            await subscriber.stop()

    def snapshot(self) -> ChartStateDTO:
        return ChartStateDTO(
            symbol=self._symbol,
            range_id=self._profile.identifier if self._profile else None,
            is_live=bool(self._profile and self._profile.is_live),
            candles=list(self._series),
            summary=self._summary,
            loading=self._loading,
            error=self._error,
        )

    @property
    def series(self) -> List[Candle]:
        return list(self._series)

    @property
    def summary(self) -> Optional[PriceChangeSummary]:
        return self._summary

    @property
    def subscriber(self) -> Optional[LiveUpdateSubscriber]:
        return self._subscriber

    @property
    def stats(self) -> dict:
        return {
            "selection_token": self._token,
            "symbol": self._symbol,
            "range": self._profile.identifier if self._profile else None,
            "candles": len(self._series),
            "subscriber": self._subscriber.stats if self._subscriber else None,
            "loader": self._loader.stats,
        }
