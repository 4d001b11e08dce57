"""
CandleFeed – Historical Candle Loader
=====================================
Carga una ventana histórica acotada por (symbol, range), le adjunta
las dos SMAs y la cachea en memoria durante toda la sesión.

ESTADO POR CLAVE:
    ausente ──load()──▸ en vuelo (task compartida) ──ok──▸ poblada
                              │
                              └──error──▸ ausente (reintento posible)

- Llamadas concurrentes con la misma clave mientras hay un fetch en
  vuelo se cuelgan de la MISMA task: nunca se emite un segundo fetch.
- La task se protege con asyncio.shield: cancelar a un llamador no
  cancela el fetch compartido del resto.
- Una clave poblada no cambia nunca (write-once).
- El rango en vivo no se cachea: su serie se reconstruye en cada
  selección.
"""

from __future__ import annotations

import asyncio
from typing import Dict, List, Tuple

from candlefeed.application.ports.market_data_provider import IMarketDataProvider
from candlefeed.domain.entities.candle import Candle
from candlefeed.domain.exceptions.domain_errors import LoadFailed, MalformedRecord
from candlefeed.domain.services.candle_normalizer import CandleNormalizer
from candlefeed.domain.services.moving_average import attach_moving_averages
from candlefeed.domain.value_objects.range_profile import RangeProfile, resolve_range
from candlefeed.shared.logging.logger import get_logger

logger = get_logger("historical_loader")

CacheKey = Tuple[str, str]


def _consume_task_exception(task: asyncio.Task) -> None:
    # Si todos los que esperaban se cancelaron, nadie más lee el error
    if not task.cancelled() and task.exception() is not None:
        logger.debug("Fetch compartido %s terminó con error: %s", task.get_name(), task.exception())


class HistoricalCandleLoader:
    """Loader con caché write-once y deduplicación de fetches en vuelo."""

    def __init__(
        self,
        provider: IMarketDataProvider,
        normalizer: CandleNormalizer,
        short_period: int,
        long_period: int,
    ) -> None:
        self._provider = provider
        self._normalizer = normalizer
        self._short_period = short_period
        self._long_period = long_period

        self._cache: Dict[CacheKey, List[Candle]] = {}
        self._in_flight: Dict[CacheKey, asyncio.Task] = {}
        self._fetch_count = 0

    @staticmethod
    def _key(symbol: str, profile: RangeProfile) -> CacheKey:
        return symbol.upper(), profile.identifier

    # ════════════════════════════════════════════════════════════════
    #  PUNTO DE ENTRADA PRINCIPAL
    # ════════════════════════════════════════════════════════════════

    async def load(self, symbol: str, range_id: str) -> List[Candle]:
        """
        Serie histórica de (symbol, range_id).

        Raises:
            UnknownRange: rango inexistente
            LoadFailed: fallo de red o payload inválido
        """
        profile = resolve_range(range_id)

        if profile.is_live:
            return await self._fetch(symbol, profile)

        key = self._key(symbol, profile)
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("Cache hit %s", key)
            return list(cached)

        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.create_task(
                self._fetch_and_store(key, symbol, profile),
                name=f"load-{key[0]}-{key[1]}",
            )
            task.add_done_callback(_consume_task_exception)
            self._in_flight[key] = task
        else:
            logger.debug("Fetch en vuelo para %s, esperando resultado compartido", key)

        series = await asyncio.shield(task)
        return list(series)

    async def _fetch_and_store(
        self, key: CacheKey, symbol: str, profile: RangeProfile
    ) -> List[Candle]:
        try:
            series = await self._fetch(symbol, profile)
            self._cache[key] = series
            logger.info("Serie cacheada %s (%d velas)", key, len(series))
            return series
        finally:
            self._in_flight.pop(key, None)

    async def _fetch(self, symbol: str, profile: RangeProfile) -> List[Candle]:
        self._fetch_count += 1
        try:
            rows = await self._provider.fetch_klines(
                symbol, profile.interval, profile.max_candles
            )
        except LoadFailed:
            raise
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("Error inesperado cargando %s/%s: %s", symbol, profile.identifier, e)
            raise LoadFailed(
                f"Failed to load {symbol} {profile.identifier}: {e}",
                symbol=symbol,
                range_id=profile.identifier,
            ) from e

        if not isinstance(rows, list):
            raise LoadFailed(
                f"Payload inesperado para {symbol} {profile.identifier}",
                symbol=symbol,
                range_id=profile.identifier,
            )

        candles: List[Candle] = []
        skipped = 0
        for row in rows:
            try:
                candles.append(self._normalizer.from_snapshot_record(row, profile.identifier))
            except MalformedRecord as e:
                skipped += 1
                logger.warning("Registro descartado (%s/%s): %s", symbol, profile.identifier, e)

        if skipped:
            logger.warning(
                "%d/%d registros descartados en %s/%s",
                skipped, len(rows), symbol, profile.identifier,
            )

        return attach_moving_averages(candles, self._short_period, self._long_period)

    # ════════════════════════════════════════════════════════════════
    #  Diagnóstico
    # ════════════════════════════════════════════════════════════════

    def is_cached(self, symbol: str, range_id: str) -> bool:
        return self._key(symbol, resolve_range(range_id)) in self._cache

    def clear(self) -> None:
        self._cache.clear()

    @property
    def stats(self) -> dict:
        return {
            "cached_keys": [f"{s}-{r}" for s, r in self._cache],
            "in_flight": len(self._in_flight),
            "fetches": self._fetch_count,
        }
