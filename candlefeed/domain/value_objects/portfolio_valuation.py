"""
CandleFeed – Domain Value Object: PortfolioValuation
===================================================
Resultado de sumar amount × price por símbolo.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict


@dataclass(frozen=True)
class PortfolioValuation:
    """Valor total de la cartera y desglose por símbolo."""

    total: float
    positions: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "total": round(self.total, 2),
            "positions": {s: round(v, 2) for s, v in self.positions.items()},
        }
