"""
CandleFeed – Application Layer
==============================
Capa de casos de uso y orquestación.

Este módulo contiene:
- use_cases/: ChartPipelineUseCase (controlador de la selección)
- services/: HistoricalCandleLoader, LiveUpdateSubscriber
- ports/: Interfaces hacia infra (proveedor de datos, presentación)
- dto/: Data Transfer Objects

REGLA DE DEPENDENCIA:
Esta capa puede importar de:
- domain/ (entidades, servicios)
- ports/ propios (interfaces hacia infra)

NO puede importar de:
- infrastructure/ (implementaciones concretas)
- presentation/ (API)
"""

from candlefeed.application.use_cases.chart_pipeline_usecase import ChartPipelineUseCase
from candlefeed.application.dto.chart_state_dto import ChartStateDTO

__all__ = ["ChartPipelineUseCase", "ChartStateDTO"]
