"""
CandleFeed – Domain Entity: Candle
==================================
Vela OHLCV normalizada, lista para graficar.

Decisiones de diseño:
- frozen=True → inmutable. Las medias móviles se adjuntan creando una
  copia con dataclasses.replace(), nunca mutando la vela en la serie.
- bucket_label es el timestamp ya formateado para mostrar y a la vez la
  clave de igualdad del bucket temporal (ver SeriesMerger).
- El color (dirección) se deriva: alcista si close >= open.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

UP_COLOR = "#4CAF50"
DOWN_COLOR = "#F44336"


@dataclass(frozen=True, slots=True)
class Candle:
    """Vela de un bucket temporal."""

    bucket_label: str                       # e.g. "14:05", "Mar 3", "Mar 2024"
    open: float
    close: float
    low_high: Tuple[float, float]           # (low, high) → mecha
    open_close_range: Tuple[float, float]   # (min(o,c), max(o,c)) → cuerpo
    volume: float
    open_time: int = 0                      # epoch ms de inicio del bucket
    sma_short: Optional[float] = None
    sma_long: Optional[float] = None

    @property
    def is_up(self) -> bool:
        return self.close >= self.open

    @property
    def color(self) -> str:
        return UP_COLOR if self.is_up else DOWN_COLOR

    def to_dict(self) -> dict:
        """Serialización para WebSocket / frontend."""
        return {
            "time": self.bucket_label,
            "open_time": self.open_time,
            "close": self.close,
            "wick": list(self.low_high),
            "body": list(self.open_close_range),
            "volume": self.volume,
            "color": self.color,
            "sma_short": self.sma_short,
            "sma_long": self.sma_long,
        }


# Serie ordenada cronológicamente (más antigua primero)
CandleSeries = List[Candle]
