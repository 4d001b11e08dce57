"""
CandleFeed – Domain Exceptions
==============================
Excepciones específicas del pipeline de velas.

JERARQUÍA:
    DomainError (base)
    ├── UnknownRange      → error de programación (rango inexistente)
    ├── MalformedRecord   → un único registro inválido (se descarta)
    ├── LoadFailed        → fallo de red/parseo en la carga histórica
    └── StreamDisrupted   → corte transitorio del stream (auto-reconexión)

Solo LoadFailed se muestra al usuario como error accionable.
StreamDisrupted es un aviso transitorio; MalformedRecord nunca sale
del componente que lo detecta.
"""

from __future__ import annotations

from typing import Any, Optional


class DomainError(Exception):
    """Excepción base para errores de dominio."""

    def __init__(self, message: str, code: str = "DOMAIN_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)

    def to_dict(self) -> dict:
        return {
            "error": self.code,
            "message": self.message,
        }


class UnknownRange(DomainError):
    """El identificador de rango no pertenece al conjunto fijo."""

    def __init__(self, range_id: Any):
        super().__init__(f"Rango desconocido: {range_id!r}", code="UNKNOWN_RANGE")
        self.range_id = range_id


class MalformedRecord(DomainError):
    """Registro crudo del proveedor con campos ausentes o no numéricos."""

    def __init__(self, message: str, field: Optional[str] = None, raw: Any = None):
        super().__init__(message, code="MALFORMED_RECORD")
        self.field = field
        self.raw = raw


class LoadFailed(DomainError):
    """Fallo de transporte o parseo al cargar velas históricas."""

    def __init__(
        self,
        message: str,
        symbol: Optional[str] = None,
        range_id: Optional[str] = None,
    ):
        super().__init__(message, code="LOAD_FAILED")
        self.symbol = symbol
        self.range_id = range_id


class StreamDisrupted(DomainError):
    """Corte transitorio del stream en vivo; dispara reconexión automática."""

    def __init__(self, message: str, symbol: Optional[str] = None):
        super().__init__(message, code="STREAM_DISRUPTED")
        self.symbol = symbol
