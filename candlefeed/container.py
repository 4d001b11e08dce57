"""
Dependency Injection Container.

Este módulo proporciona el contenedor de inyección de dependencias
que gestiona las instancias de servicios, adaptadores y casos de uso.

Clean Architecture: Este contenedor vive en la capa más externa y es el único
lugar donde se crean dependencias concretas.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional
from zoneinfo import ZoneInfo

from candlefeed.application.ports.chart_presenter import IChartPresenter
from candlefeed.application.ports.market_data_provider import IMarketDataProvider
from candlefeed.application.services.historical_loader import HistoricalCandleLoader
from candlefeed.application.services.live_subscriber import LiveUpdateSubscriber
from candlefeed.application.use_cases.chart_pipeline_usecase import ChartPipelineUseCase
from candlefeed.domain.services.candle_normalizer import CandleNormalizer
from candlefeed.domain.services.series_merger import SeriesMerger
from candlefeed.domain.value_objects.range_profile import RangeProfile
from candlefeed.infrastructure.event_bus import EventBus
from candlefeed.shared.config.settings import Settings


@dataclass
class Container:
    """
    Contenedor de Inyección de Dependencias.

    Gestiona el ciclo de vida de las dependencias de la aplicación.
    Las capas internas dependen de abstracciones, no de implementaciones.
    """

    # Configuración
    settings: Settings = field(default_factory=Settings)

    # Infraestructura
    _event_bus: Optional[EventBus] = None
    _market_data_provider: Optional[IMarketDataProvider] = None
    _chart_presenter: Optional[IChartPresenter] = None
    _ws_manager: Optional[Any] = None

    # Servicios
    _normalizer: Optional[CandleNormalizer] = None
    _series_merger: Optional[SeriesMerger] = None
    _historical_loader: Optional[HistoricalCandleLoader] = None
    _chart_pipeline: Optional[ChartPipelineUseCase] = None

    # ==================== Infraestructura ====================

    @property
    def event_bus(self) -> EventBus:
        if self._event_bus is None:
            self._event_bus = EventBus(self.settings.event_bus_max_queue_size)
        return self._event_bus

    @property
    def market_data_provider(self) -> IMarketDataProvider:
        """Obtiene el proveedor de datos de mercado."""
        if self._market_data_provider is None:
            from candlefeed.infrastructure.external.binance_adapter import BinanceAdapter
            self._market_data_provider = BinanceAdapter(self.settings)
        return self._market_data_provider

    @property
    def chart_presenter(self) -> IChartPresenter:
        if self._chart_presenter is None:
            from candlefeed.infrastructure.external.event_bus_adapter import EventBusChartPresenter
            self._chart_presenter = EventBusChartPresenter(self.event_bus)
        return self._chart_presenter

    @property
    def ws_manager(self):
        if self._ws_manager is None:
            from candlefeed.presentation.websocket.websocket_manager import WebSocketManager
            presenter = self.chart_presenter
            self._ws_manager = WebSocketManager(
                self.event_bus,
                snapshot_provider=getattr(presenter, "snapshot", None),
            )
        return self._ws_manager

    # ==================== Servicios ====================

    @property
    def normalizer(self) -> CandleNormalizer:
        if self._normalizer is None:
            self._normalizer = CandleNormalizer(ZoneInfo(self.settings.display_timezone))
        return self._normalizer

    @property
    def series_merger(self) -> SeriesMerger:
        if self._series_merger is None:
            self._series_merger = SeriesMerger(
                self.settings.sma_short_period, self.settings.sma_long_period
            )
        return self._series_merger

    @property
    def historical_loader(self) -> HistoricalCandleLoader:
        """Loader único: la caché vive lo que vive el contenedor."""
        if self._historical_loader is None:
            self._historical_loader = HistoricalCandleLoader(
                self.market_data_provider,
                self.normalizer,
                self.settings.sma_short_period,
                self.settings.sma_long_period,
            )
        return self._historical_loader

    def create_live_subscriber(self, profile: RangeProfile) -> LiveUpdateSubscriber:
        """
        Factory para LiveUpdateSubscriber.

        Cada selección en vivo crea una instancia nueva; nunca se reutilizan.
        """
        return LiveUpdateSubscriber(
            self.market_data_provider,
            self.normalizer,
            interval=profile.interval,
            reconnect_delay=self.settings.ws_reconnect_delay,
        )

    # ==================== Use Cases ====================

    @property
    def chart_pipeline(self) -> ChartPipelineUseCase:
        if self._chart_pipeline is None:
            self._chart_pipeline = ChartPipelineUseCase(
                loader=self.historical_loader,
                merger=self.series_merger,
                subscriber_factory=self.create_live_subscriber,
                presenter=self.chart_presenter,
            )
        return self._chart_pipeline

    # ==================== Lifecycle ====================

    def reset(self) -> None:
        """Resetea todas las instancias (útil para tests)."""
        self._event_bus = None
        self._market_data_provider = None
        self._chart_presenter = None
        self._ws_manager = None
        self._normalizer = None
        self._series_merger = None
        self._historical_loader = None
        self._chart_pipeline = None

    def override(self, name: str, instance: Any) -> None:
        """
        Override una dependencia (útil para tests con fakes).

        Args:
            name: Nombre de la dependencia (ej: 'market_data_provider')
            instance: Instancia a usar
        """
        attr_name = f"_{name}"
        if hasattr(self, attr_name):
            setattr(self, attr_name, instance)
        else:
            raise ValueError(f"Unknown dependency: {name}")


# ==================== Global Container ====================

_container: Optional[Container] = None


def get_container() -> Container:
    """Obtiene la instancia global del contenedor."""
    global _container
    if _container is None:
        _container = Container()
    return _container


def init_container(settings: Optional[Settings] = None) -> Container:
    """
    Inicializa el contenedor con configuración específica.

    Args:
        settings: Configuración opcional. Si es None, usa valores por defecto.
    """
    global _container
    _container = Container(settings=settings or Settings())
    return _container


def reset_container() -> None:
    global _container
    if _container is not None:
        _container.reset()
    _container = None
