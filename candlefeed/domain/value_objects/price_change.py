"""
CandleFeed – Domain Value Object: PriceChangeSummary
====================================================
Variación de precio del período cargado (primer close → último close).

percent_change es None cuando el primer close es 0: el porcentaje no
está definido y se reporta como tal en vez de Infinity o un crash.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True, slots=True)
class PriceChangeSummary:
    """Cambio absoluto y porcentual, redondeados a 2 decimales."""

    absolute_change: float
    percent_change: Optional[float]

    @property
    def is_up(self) -> bool:
        return self.absolute_change >= 0

    @property
    def is_percent_defined(self) -> bool:
        return self.percent_change is not None

    def to_dict(self) -> dict:
        return {
            "absolute": self.absolute_change,
            "percent": self.percent_change,
            "up": self.is_up,
        }
