"""
CandleFeed – Domain Service: Price Change
=========================================
Resumen de variación del período a partir del primer y último close.
"""

from __future__ import annotations

from typing import Optional, Sequence

from candlefeed.domain.entities.candle import Candle
from candlefeed.domain.value_objects.price_change import PriceChangeSummary


def compute_price_change(series: Sequence[Candle]) -> Optional[PriceChangeSummary]:
    """
    None si la serie tiene menos de 2 velas.

    Si el primer close es 0 el porcentaje queda indefinido (None).
    """
    if len(series) < 2:
        return None

    first = series[0].close
    last = series[-1].close
    change = last - first
    percent = round(change / first * 100, 2) if first != 0 else None
    return PriceChangeSummary(absolute_change=round(change, 2), percent_change=percent)
