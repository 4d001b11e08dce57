"""Domain entities."""
from candlefeed.domain.entities.candle import Candle, CandleSeries

__all__ = ["Candle", "CandleSeries"]
