"""Application ports - Interfaces hacia infraestructura."""
from candlefeed.application.ports.market_data_provider import IMarketDataProvider, RawMessage
from candlefeed.application.ports.chart_presenter import IChartPresenter

__all__ = ["IMarketDataProvider", "RawMessage", "IChartPresenter"]
