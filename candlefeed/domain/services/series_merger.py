"""
CandleFeed – Domain Service: Series Merger
==========================================
Reconciliación de un tick en vivo contra la cola de la serie.

REGLA DE DECISIÓN (en orden):
  1. Misma etiqueta de bucket que la última vela → se REEMPLAZA la última
     (el bucket en curso se sigue agregando aguas arriba).
  2. Etiqueta distinta → se AGREGA al final y, si la serie supera
     max_len, se descartan velas del principio (ventana FIFO acotada).

Tras cualquiera de las dos ramas se recalculan AMBAS medias móviles
sobre la serie resultante completa. Nunca se parchean in-place: así
no hay deriva entre la SMA y la ventana visible. Coste O(ventana) por
tick, acotado por max_len.

La serie de entrada no se modifica; se devuelve una lista nueva.
"""

from __future__ import annotations

from typing import List, Sequence

from candlefeed.domain.entities.candle import Candle
from candlefeed.domain.services.moving_average import attach_moving_averages


class SeriesMerger:
    """Merge de ticks en vivo con SMAs re-derivadas."""

    def __init__(self, short_period: int, long_period: int) -> None:
        self._short_period = short_period
        self._long_period = long_period

    def merge(
        self,
        current: Sequence[Candle],
        incoming: Candle,
        max_len: int,
    ) -> List[Candle]:
        if max_len < 1:
            raise ValueError(f"max_len debe ser >= 1 (recibido {max_len})")

        if current and current[-1].bucket_label == incoming.bucket_label:
            merged = [*current[:-1], incoming]
        else:
            merged = [*current, incoming]
            if len(merged) > max_len:
                merged = merged[len(merged) - max_len:]

        return attach_moving_averages(merged, self._short_period, self._long_period)
