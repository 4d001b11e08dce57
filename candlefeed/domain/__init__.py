"""
CandleFeed – Domain Layer
=========================
Núcleo puro del sistema. CERO dependencias externas.

Este módulo contiene:
- entities/: Candle
- value_objects/: RangeProfile, PriceChangeSummary, PortfolioValuation
- services/: normalizador, SMA, merger, variación de precio, cartera
- exceptions/: Excepciones de dominio

REGLA DE DEPENDENCIA:
Este módulo NO puede importar de:
- infrastructure/
- presentation/
- application/
- Frameworks externos (FastAPI, aiohttp, websockets, etc.)
"""

from candlefeed.domain.entities.candle import Candle, CandleSeries
from candlefeed.domain.value_objects.range_profile import RangeProfile, resolve_range
from candlefeed.domain.value_objects.price_change import PriceChangeSummary

__all__ = [
    "Candle",
    "CandleSeries",
    "RangeProfile",
    "resolve_range",
    "PriceChangeSummary",
]
