"""Domain value objects."""
from candlefeed.domain.value_objects.range_profile import (
    LabelStyle,
    RangeProfile,
    LIVE_RANGE,
    RANGE_PROFILES,
    resolve_range,
    list_ranges,
)
from candlefeed.domain.value_objects.price_change import PriceChangeSummary
from candlefeed.domain.value_objects.portfolio_valuation import PortfolioValuation

__all__ = [
    "LabelStyle",
    "RangeProfile",
    "LIVE_RANGE",
    "RANGE_PROFILES",
    "resolve_range",
    "list_ranges",
    "PriceChangeSummary",
    "PortfolioValuation",
]
