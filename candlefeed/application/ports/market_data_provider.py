"""
CandleFeed – Application Port: Market Data Provider
===================================================
Interfaz para obtener datos de mercado.

Los servicios de aplicación solicitan datos; la infraestructura
decide CÓMO obtenerlos (Binance REST/WebSocket, fakes en tests, etc.)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from typing import Any, AsyncIterator, List, Union

# Mensaje crudo del stream (texto JSON; algunos transportes entregan bytes)
RawMessage = Union[str, bytes]


class IMarketDataProvider(ABC):
    """
    Interfaz del proveedor de velas.

    IMPLEMENTACIONES POSIBLES:
    - BinanceAdapter (REST + WebSocket)
    - FakeMarketDataProvider (testing)
    """

    @abstractmethod
    async def fetch_klines(
        self,
        symbol: str,
        interval: str,
        limit: int,
    ) -> List[List[Any]]:
        """
        Snapshot de velas históricas.

        Args:
            symbol: Símbolo (e.g. "BTCUSDT")
            interval: Intervalo de muestreo (e.g. "15m")
            limit: Número de velas

        Returns:
            Filas crudas ordenadas por open_time ASC

        Raises:
            LoadFailed: ante cualquier fallo de transporte o payload inválido
        """

    @abstractmethod
    def stream_klines(
        self,
        symbol: str,
        interval: str,
    ) -> AbstractAsyncContextManager[AsyncIterator[RawMessage]]:
        """
        Conexión dúplex al stream de klines.

        Uso:
            async with provider.stream_klines("BTCUSDT", "1m") as stream:
                async for message in stream:
                    ...

        Al salir del bloque la conexión queda cerrada, también ante
        cancelación. Un fin de iteración significa cierre del servidor.
        """

    async def close(self) -> None:
        """Liberar recursos de transporte (sesiones HTTP, etc.)."""
