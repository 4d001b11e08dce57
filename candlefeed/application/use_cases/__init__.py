"""Use cases."""
from candlefeed.application.use_cases.chart_pipeline_usecase import ChartPipelineUseCase

__all__ = ["ChartPipelineUseCase"]
