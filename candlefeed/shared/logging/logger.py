"""
CandleFeed – Logging
====================
Un único handler a stdout, configurado al arrancar la app (lifespan).
Cada módulo pide su logger con get_logger("nombre") → candlefeed.nombre
"""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-32s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_HANDLER_NAME = "candlefeed-stdout"

# Librerías que loguean cada frame / request a INFO
_NOISY_LOGGERS = ("websockets", "uvicorn.access", "aiohttp.access")


def setup_logging(level: int = logging.INFO) -> None:
    """Configura el root logger. Idempotente: no duplica handlers."""
    root = logging.getLogger()
    if not any(h.get_name() == _HANDLER_NAME for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        handler.set_name(_HANDLER_NAME)
        root.addHandler(handler)
    root.setLevel(level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"candlefeed.{name}")
