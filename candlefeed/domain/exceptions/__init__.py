"""Domain exceptions."""
from candlefeed.domain.exceptions.domain_errors import (
    DomainError,
    UnknownRange,
    MalformedRecord,
    LoadFailed,
    StreamDisrupted,
)

__all__ = [
    "DomainError",
    "UnknownRange",
    "MalformedRecord",
    "LoadFailed",
    "StreamDisrupted",
]
