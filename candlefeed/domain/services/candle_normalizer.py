"""
CandleFeed – Domain Service: Candle Normalizer
==============================================
Convierte un registro crudo del proveedor en una Candle canónica.

FORMATOS DE ENTRADA:
  Snapshot (fila de kline REST):
      [open_time_ms, "open", "high", "low", "close", "volume", ...]
  Tick en vivo (objeto kline del stream), con o sin envoltorio {"k": {...}}:
      {"t": open_time_ms, "o": "...", "h": "...", "l": "...", "c": "...", "v": "..."}

Los precios y el volumen llegan como strings numéricos. La dirección
(alcista/bajista) nunca viene del proveedor: se deriva de open/close.

La única diferencia entre ambos caminos es el nombre de los campos y la
granularidad de la etiqueta: los ticks en vivo siempre usan HH:MM.

ERRORES:
  MalformedRecord si falta un campo, no es numérico, no es finito,
  low > high, el volumen es negativo u open_time no es representable
  como fecha. El llamador descarta ese registro y sigue con el resto
  del batch.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone, tzinfo
from typing import Any, Mapping, Optional, Sequence

from candlefeed.domain.entities.candle import Candle
from candlefeed.domain.exceptions.domain_errors import MalformedRecord
from candlefeed.domain.value_objects.range_profile import LabelStyle, resolve_range

# Posiciones dentro de una fila de kline REST
_SNAPSHOT_FIELDS = ("open_time", "open", "high", "low", "close", "volume")
# Claves del objeto kline del stream
_LIVE_FIELDS = {"open_time": "t", "open": "o", "high": "h", "low": "l", "close": "c", "volume": "v"}


def format_bucket_label(open_time_ms: int, style: LabelStyle, tz: tzinfo = timezone.utc) -> str:
    """Etiqueta legible del bucket que empieza en open_time_ms."""
    dt = datetime.fromtimestamp(open_time_ms / 1000, tz=tz)
    if style is LabelStyle.TIME:
        return f"{dt:%H:%M}"
    if style is LabelStyle.DAY:
        return f"{dt:%b} {dt.day}"
    return f"{dt:%b %Y}"


def _parse_number(value: Any, field: str, raw: Any) -> float:
    if value is None or isinstance(value, bool):
        raise MalformedRecord(f"Campo '{field}' ausente o inválido", field=field, raw=raw)
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise MalformedRecord(
            f"Campo '{field}' no numérico: {value!r}", field=field, raw=raw
        ) from None
    if not math.isfinite(number):
        raise MalformedRecord(f"Campo '{field}' no finito: {value!r}", field=field, raw=raw)
    return number


def _build_candle(values: Mapping[str, Any], style: LabelStyle, tz: tzinfo, raw: Any) -> Candle:
    open_time = int(_parse_number(values.get("open_time"), "open_time", raw))
    open_ = _parse_number(values.get("open"), "open", raw)
    high = _parse_number(values.get("high"), "high", raw)
    low = _parse_number(values.get("low"), "low", raw)
    close = _parse_number(values.get("close"), "close", raw)
    volume = _parse_number(values.get("volume"), "volume", raw)

    if low > high:
        raise MalformedRecord(f"low ({low}) > high ({high})", field="low", raw=raw)
    if volume < 0:
        raise MalformedRecord(f"Volumen negativo: {volume}", field="volume", raw=raw)

    try:
        label = format_bucket_label(open_time, style, tz)
    except (OverflowError, OSError, ValueError):
        raise MalformedRecord(
            f"open_time fuera de rango: {open_time}", field="open_time", raw=raw
        ) from None

    return Candle(
        bucket_label=label,
        open=open_,
        close=close,
        low_high=(low, high),
        open_close_range=(min(open_, close), max(open_, close)),
        volume=volume,
        open_time=open_time,
    )


class CandleNormalizer:
    """Normalizador sin estado (salvo la zona horaria de las etiquetas)."""

    def __init__(self, tz: Optional[tzinfo] = None) -> None:
        self._tz = tz or timezone.utc

    def from_snapshot_record(self, raw: Sequence[Any], range_id: str) -> Candle:
        """Fila de snapshot → Candle con la granularidad del rango."""
        profile = resolve_range(range_id)
        if isinstance(raw, (str, bytes)) or not isinstance(raw, Sequence):
            raise MalformedRecord("Fila de snapshot no es una secuencia", raw=raw)
        if len(raw) < len(_SNAPSHOT_FIELDS):
            raise MalformedRecord(
                f"Fila de snapshot incompleta ({len(raw)} campos)", raw=raw
            )
        values = dict(zip(_SNAPSHOT_FIELDS, raw))
        return _build_candle(values, profile.label_style, self._tz, raw)

    def from_live_tick(self, raw: Mapping[str, Any]) -> Candle:
        """Objeto kline del stream → Candle con etiqueta HH:MM."""
        if not isinstance(raw, Mapping):
            raise MalformedRecord("Tick en vivo no es un objeto", raw=raw)
        kline = raw.get("k", raw)
        if not isinstance(kline, Mapping):
            raise MalformedRecord("Campo 'k' del tick no es un objeto", field="k", raw=raw)
        values = {name: kline.get(key) for name, key in _LIVE_FIELDS.items()}
        return _build_candle(values, LabelStyle.TIME, self._tz, raw)
