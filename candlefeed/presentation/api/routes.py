"""
CandleFeed – API Routes (FastAPI)
=================================
Endpoints REST y WebSocket para el frontend.

Endpoints disponibles:
  WS     /ws/chart             → estado del gráfico en tiempo real
  GET    /api/health           → health check
  GET    /api/status           → estado del pipeline (diagnóstico)
  GET    /api/ranges           → rangos seleccionables
  GET    /api/chart            → snapshot de la selección actual
  POST   /api/chart/select     → cambiar (symbol, range)
  DELETE /api/chart            → quitar la selección
  POST   /api/portfolio/value  → valorar posiciones con precios dados
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, WebSocket, WebSocketDisconnect

from candlefeed.domain.exceptions.domain_errors import UnknownRange
from candlefeed.domain.services.portfolio_calculator import value_holdings
from candlefeed.domain.value_objects.range_profile import list_ranges
from candlefeed.presentation.api.schemas import (
    HealthResponse,
    PortfolioRequest,
    PortfolioResponse,
    RangeSchema,
    SelectRequest,
)
from candlefeed.shared.config.settings import settings
from candlefeed.shared.logging.logger import get_logger

logger = get_logger("api.routes")

router = APIRouter()

# Referencias a componentes inyectados desde main.py
_ws_manager = None
_chart_pipeline = None
_presenter = None


def init_routes(ws_manager, chart_pipeline, presenter) -> None:
    """Inyectar dependencias desde main.py al arrancar."""
    global _ws_manager, _chart_pipeline, _presenter
    _ws_manager = ws_manager
    _chart_pipeline = chart_pipeline
    _presenter = presenter


def _require_pipeline():
    if _chart_pipeline is None or _presenter is None:
        raise HTTPException(status_code=503, detail="Server not ready")
    return _chart_pipeline


# ─── WebSocket endpoint para streaming a frontend ─────────────────────

@router.websocket("/ws/chart")
async def chart_stream(websocket: WebSocket) -> None:
    """
    El frontend se conecta aquí para recibir el estado del gráfico.
    El broadcast lo maneja WebSocketManager; este handler solo
    gestiona el ciclo de vida de la conexión.
    """
    if _ws_manager is None:
        await websocket.close(code=1011, reason="Server not ready")
        return

    await _ws_manager.connect(websocket)
    try:
        while True:
            try:
                data = await websocket.receive_text()
                logger.debug("Mensaje de cliente WS: %s", data[:100])
            except WebSocketDisconnect:
                break
    finally:
        _ws_manager.disconnect(websocket)


# ─── REST endpoints ────────────────────────────────────────────────────

@router.get("/api/health", response_model=HealthResponse)
async def health_check() -> dict:
    """Health check para monitoreo."""
    return {"status": "ok", "service": "candlefeed"}


@router.get("/api/status")
async def system_status() -> dict:
    """Estado del pipeline, subscriber y caché."""
    pipeline = _require_pipeline()
    return {
        "pipeline": pipeline.stats,
        "websocket": _ws_manager.stats if _ws_manager else None,
    }


@router.get("/api/ranges", response_model=list[RangeSchema])
async def get_ranges() -> list[dict]:
    """Rangos disponibles en orden de presentación."""
    return [profile.to_dict() for profile in list_ranges()]


@router.get("/api/chart")
async def get_chart() -> dict:
    """Snapshot actual: velas, resumen, loading y error."""
    _require_pipeline()
    return _presenter.snapshot()


@router.post("/api/chart/select")
async def select_chart(body: SelectRequest) -> dict:
    """Cambiar símbolo y/o rango. Espera a que termine la carga histórica."""
    pipeline = _require_pipeline()
    try:
        state = await pipeline.select(body.symbol, body.range)
    except UnknownRange as e:
        raise HTTPException(status_code=400, detail=e.to_dict()) from e
    return state.to_dict()


@router.delete("/api/chart")
async def clear_chart() -> dict:
    """Quitar la selección actual (detiene el stream en vivo)."""
    pipeline = _require_pipeline()
    await pipeline.deselect()
    return _presenter.snapshot()


@router.post("/api/portfolio/value", response_model=PortfolioResponse)
async def portfolio_value(body: PortfolioRequest) -> dict:
    """Suma amount × price de las posiciones whitelisteadas."""
    holdings: dict = {}
    for h in body.holdings:
        holdings[h.symbol] = h.amount
    valuation = value_holdings(holdings, body.prices, allowed=settings.supported_symbols)
    return valuation.to_dict()
