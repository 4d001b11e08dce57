"""
CandleFeed – API Schemas (Pydantic)
===================================
Schemas de validación para request/response de la API REST.
"""

from __future__ import annotations

from pydantic import BaseModel, Field
from typing import Dict, List, Union


class HealthResponse(BaseModel):
    status: str
    service: str


class SelectRequest(BaseModel):
    """Body para cambiar la selección (symbol, range)."""
    symbol: str = Field(min_length=1)
    range: str


class RangeSchema(BaseModel):
    id: str
    interval: str
    max_candles: int
    live: bool
    label_style: str


class HoldingSchema(BaseModel):
    symbol: str
    # Se acepta texto tal como llega del input del usuario; se sanea después
    amount: Union[float, str, None] = 0


class PortfolioRequest(BaseModel):
    holdings: List[HoldingSchema]
    prices: Dict[str, float] = Field(default_factory=dict)


class PortfolioResponse(BaseModel):
    total: float
    positions: Dict[str, float]
