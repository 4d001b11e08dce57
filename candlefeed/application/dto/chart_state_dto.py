"""
CandleFeed – Application DTO: Chart State
=========================================
Estado visible de la selección actual, tal como lo consume el frontend.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from candlefeed.domain.entities.candle import Candle
from candlefeed.domain.value_objects.price_change import PriceChangeSummary


@dataclass
class ChartStateDTO:
    """Serie + resumen + flags de la selección actual."""

    symbol: Optional[str] = None
    range_id: Optional[str] = None
    is_live: bool = False
    candles: List[Candle] = field(default_factory=list)
    summary: Optional[PriceChangeSummary] = None
    loading: bool = False
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "symbol": self.symbol,
            "range": self.range_id,
            "live": self.is_live,
            "count": len(self.candles),
            "candles": [c.to_dict() for c in self.candles],
            "summary": self.summary.to_dict() if self.summary else None,
            "loading": self.loading,
            "error": self.error,
        }
