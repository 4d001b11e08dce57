"""Domain services - Pure business logic with no external dependencies."""
from candlefeed.domain.services.candle_normalizer import CandleNormalizer, format_bucket_label
from candlefeed.domain.services.moving_average import compute_sma, attach_moving_averages
from candlefeed.domain.services.series_merger import SeriesMerger
from candlefeed.domain.services.price_change_calculator import compute_price_change
from candlefeed.domain.services.portfolio_calculator import value_holdings, sanitize_amount

__all__ = [
    "CandleNormalizer",
    "format_bucket_label",
    "compute_sma",
    "attach_moving_averages",
    "SeriesMerger",
    "compute_price_change",
    "value_holdings",
    "sanitize_amount",
]
