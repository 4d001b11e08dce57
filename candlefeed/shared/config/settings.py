"""
CandleFeed – Settings (Pydantic BaseSettings)
=============================================
Configuración centralizada cargada desde variables de entorno / .env.
Se usa pydantic-settings para validación estricta al arranque.
"""

from __future__ import annotations

from pydantic_settings import BaseSettings
from pydantic import Field
from typing import List


class Settings(BaseSettings):
    # ─── Binance (proveedor de datos) ───────────────────────────────────
    binance_rest_url: str = Field(
        default="https://api.binance.com",
        description="Base URL REST para snapshots de klines",
    )
    binance_ws_url: str = Field(
        default="wss://stream.binance.com:9443",
        description="Base URL del stream WebSocket de klines",
    )
    http_timeout_seconds: float = Field(
        default=10.0, description="Timeout total (seg) de una consulta REST"
    )

    # ─── Stream en vivo ─────────────────────────────────────────────────
    ws_reconnect_delay: float = Field(
        default=3.0, description="Delay fijo (seg) entre reconexiones del stream"
    )
    ws_close_timeout: float = Field(
        default=10.0, description="Timeout (seg) para el cierre del WebSocket"
    )
    ws_max_message_size: int = Field(
        default=2**20, description="Tamaño máximo (bytes) por mensaje WS"
    )

    # ─── Medias móviles ─────────────────────────────────────────────────
    sma_short_period: int = Field(default=7, ge=1, description="Período SMA corta")
    sma_long_period: int = Field(default=25, ge=1, description="Período SMA larga")

    # ─── Selección por defecto ──────────────────────────────────────────
    default_symbol: str = Field(default="BTCUSDT")
    default_range: str = Field(default="1d")
    autostart_default_selection: bool = Field(
        default=True,
        description="Cargar la selección por defecto al arrancar la app",
    )
    display_timezone: str = Field(
        default="UTC", description="Zona horaria para las etiquetas de vela"
    )

    # Whitelist de símbolos (valoración de cartera)
    supported_symbols: List[str] = Field(
        default=[
            "BTCUSDT", "ETHUSDT", "BNBUSDT", "ADAUSDT", "SOLUSDT",
            "XRPUSDT", "DOGEUSDT", "LTCUSDT", "XLMUSDT", "DOTUSDT",
        ],
    )

    # ─── Event Bus ──────────────────────────────────────────────────────
    event_bus_max_queue_size: int = Field(
        default=1_000,
        description="Tamaño máximo de cola del Event Bus para contrapresión",
    )

    # ─── Server ─────────────────────────────────────────────────────────
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8888)
    debug: bool = Field(default=False)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


# Singleton global – se importa donde se necesite
settings = Settings()
