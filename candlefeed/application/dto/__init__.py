"""Data Transfer Objects."""
from candlefeed.application.dto.chart_state_dto import ChartStateDTO

__all__ = ["ChartStateDTO"]
