"""External adapters."""
from candlefeed.infrastructure.external.binance_adapter import BinanceAdapter
from candlefeed.infrastructure.external.event_bus_adapter import EventBusChartPresenter

__all__ = ["BinanceAdapter", "EventBusChartPresenter"]
