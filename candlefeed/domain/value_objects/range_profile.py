"""
CandleFeed – Domain Value Object: RangeProfile
==============================================
Registro estático rango → perfil de consulta.

Cada rango seleccionable por el usuario se traduce a:
  - interval:    intervalo de muestreo que se pide al proveedor
  - max_candles: cantidad de velas del snapshot (y tope de la ventana en vivo)
  - is_live:     si el rango se alimenta además del stream en vivo
  - label_style: granularidad de la etiqueta de cada bucket

El conjunto es fijo y se define al importar el módulo.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List

from candlefeed.domain.exceptions.domain_errors import UnknownRange


class LabelStyle(str, Enum):
    """Granularidad del timestamp formateado."""
    TIME = "time"      # "14:05"
    DAY = "day"        # "Mar 3"
    MONTH = "month"    # "Mar 2024"


@dataclass(frozen=True, slots=True)
class RangeProfile:
    """Perfil de consulta de un rango."""

    identifier: str
    interval: str
    max_candles: int
    is_live: bool
    label_style: LabelStyle

    def to_dict(self) -> dict:
        return {
            "id": self.identifier,
            "interval": self.interval,
            "max_candles": self.max_candles,
            "live": self.is_live,
            "label_style": self.label_style.value,
        }


LIVE_RANGE = "live"

# Orden de inserción = orden de los botones en el frontend
RANGE_PROFILES: Dict[str, RangeProfile] = {
    LIVE_RANGE: RangeProfile(LIVE_RANGE, "1m", 20, True, LabelStyle.TIME),
    "1d": RangeProfile("1d", "15m", 96, False, LabelStyle.TIME),
    "1m": RangeProfile("1m", "1h", 744, False, LabelStyle.DAY),
    "1y": RangeProfile("1y", "1d", 365, False, LabelStyle.MONTH),
    "5y": RangeProfile("5y", "3d", 609, False, LabelStyle.MONTH),
}


def resolve_range(range_id: str) -> RangeProfile:
    """Perfil de un rango; UnknownRange si no existe."""
    try:
        return RANGE_PROFILES[range_id]
    except (KeyError, TypeError):
        raise UnknownRange(range_id) from None


def list_ranges() -> List[RangeProfile]:
    return list(RANGE_PROFILES.values())
