"""
CandleFeed – Domain Service: Moving Average Engine
==================================================
SMA (Simple Moving Average) sobre el close de una serie de velas.

FÓRMULA:
    SMA_i = Σ(close_j, j=i-period+1..i) / period      para i >= period-1
    SMA_i = None                                      para i <  period-1

IMPLEMENTACIÓN:
    Suma deslizante: se suma el close entrante y se resta el que sale
    de la ventana. O(n) para toda la serie, independiente del período.

Sin dependencias externas: la serie en vivo tiene a lo sumo unas
decenas de velas y la histórica unos cientos; convertir a arrays
costaría más que el cálculo.
"""

from __future__ import annotations

from dataclasses import replace
from typing import List, Optional, Sequence

from candlefeed.domain.entities.candle import Candle


def compute_sma(series: Sequence[Candle], period: int) -> List[Optional[float]]:
    """Una SMA por vela, alineada por índice."""
    if period < 1:
        raise ValueError(f"period debe ser >= 1 (recibido {period})")

    result: List[Optional[float]] = []
    window_sum = 0.0
    for i, candle in enumerate(series):
        window_sum += candle.close
        if i >= period:
            window_sum -= series[i - period].close
        result.append(window_sum / period if i >= period - 1 else None)
    return result


def attach_moving_averages(
    series: Sequence[Candle],
    short_period: int,
    long_period: int,
) -> List[Candle]:
    """Copia de la serie con sma_short / sma_long recalculadas."""
    sma_short = compute_sma(series, short_period)
    sma_long = compute_sma(series, long_period)
    return [
        replace(candle, sma_short=short, sma_long=long_)
        for candle, short, long_ in zip(series, sma_short, sma_long)
    ]
