"""
CandleFeed – Main Application Entry Point
=========================================
Orquesta los componentes: Binance Adapter + Historical Loader +
Live Subscriber + Chart Pipeline + WebSocket broadcast.

ARQUITECTURA DE ARRANQUE:
  1. Configurar logging
  2. Crear el contenedor (EventBus, adaptador, loader, pipeline, ...)
  3. FastAPI startup:
     a. Iniciar WebSocketManager (broadcast a frontend)
     b. Lanzar la selección por defecto como background task
  4. FastAPI shutdown:
     a. Detener todo en orden inverso

FLUJO DE DATOS:
  Binance REST → BinanceAdapter → HistoricalCandleLoader (caché + SMA)
       → ChartPipelineUseCase → EventBusChartPresenter
  Binance WS → LiveUpdateSubscriber → SeriesMerger (SMA re-derivada)
       → ChartPipelineUseCase → EventBus(chart_state) → WebSocketManager → Frontend

  uvicorn candlefeed.main:app --host 0.0.0.0 --port 8888
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from candlefeed import __version__
from candlefeed.container import Container, init_container
from candlefeed.domain.exceptions.domain_errors import DomainError
from candlefeed.presentation.api.routes import init_routes, router
from candlefeed.shared.config.settings import settings
from candlefeed.shared.logging.logger import get_logger, setup_logging

logger = get_logger("main")


async def _initial_selection(container: Container) -> None:
    cfg = container.settings
    try:
        await container.chart_pipeline.select(cfg.default_symbol, cfg.default_range)
    except DomainError as e:
        logger.error("Selección por defecto inválida: %s", e.message)


def create_app(container: Optional[Container] = None) -> FastAPI:
    """Construir la app FastAPI sobre un contenedor (inyectable en tests)."""
    container = container or init_container(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Startup/shutdown lifecycle de la aplicación.
        Las coroutines de larga duración se lanzan como tasks.
        """
        cfg = container.settings
        setup_logging(logging.DEBUG if cfg.debug else logging.INFO)

        logger.info("=" * 60)
        logger.info("  CandleFeed v%s", __version__)
        logger.info("  Selección inicial: %s / %s", cfg.default_symbol, cfg.default_range)
        logger.info("  SMA: %d / %d", cfg.sma_short_period, cfg.sma_long_period)
        logger.info("  Reconexión stream: delay fijo %.1fs", cfg.ws_reconnect_delay)
        logger.info("=" * 60)

        init_routes(container.ws_manager, container.chart_pipeline, container.chart_presenter)
        await container.ws_manager.start()

        initial_task: Optional[asyncio.Task] = None
        if cfg.autostart_default_selection:
            initial_task = asyncio.create_task(
                _initial_selection(container), name="initial-selection"
            )

        logger.info("✓ Todos los componentes iniciados correctamente")

        yield  # ← La app está corriendo aquí

        # ── SHUTDOWN ──
        logger.info("Iniciando shutdown...")
        if initial_task is not None and not initial_task.done():
            initial_task.cancel()
            try:
                await initial_task
            except asyncio.CancelledError:
                pass

        await container.chart_pipeline.close()
        await container.market_data_provider.close()
        await container.ws_manager.stop()
        await container.event_bus.unsubscribe_all()
        logger.info("✓ Shutdown completo")

    app = FastAPI(
        title="CandleFeed",
        description="Serie de velas histórica + en vivo con SMA y variación del período",
        version=__version__,
        lifespan=lifespan,
    )

    # CORS para frontend local
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("candlefeed.main:app", host=settings.host, port=settings.port)
