import asyncio
import gc

import pytest

from candlefeed.application.services.historical_loader import HistoricalCandleLoader
from candlefeed.domain.exceptions.domain_errors import LoadFailed, UnknownRange
from tests.helpers import BASE_MS, FakeMarketDataProvider, make_row, rows_from_closes, wait_until


@pytest.fixture
def provider():
    return FakeMarketDataProvider({
        ("BTCUSDT", "15m"): rows_from_closes([10, 12, 11], step_ms=15 * 60_000),
        ("BTCUSDT", "1h"): rows_from_closes([1, 2, 3, 4]),
        ("BTCUSDT", "1m"): rows_from_closes([5, 6]),
    })


@pytest.fixture
def loader(provider, normalizer):
    return HistoricalCandleLoader(provider, normalizer, short_period=2, long_period=3)


@pytest.mark.asyncio
async def test_load_attaches_moving_averages(loader, provider):
    series = await loader.load("BTCUSDT", "1d")

    assert [c.close for c in series] == [10.0, 12.0, 11.0]
    assert [c.sma_short for c in series] == [None, 11.0, 11.5]
    assert [c.sma_long for c in series] == [None, None, 11.0]
    assert provider.fetch_calls == [("BTCUSDT", "15m", 96)]


@pytest.mark.asyncio
async def test_second_load_is_served_from_cache(loader, provider):
    first = await loader.load("BTCUSDT", "1d")
    second = await loader.load("BTCUSDT", "1d")

    assert first == second
    assert len(provider.fetch_calls) == 1
    assert loader.is_cached("BTCUSDT", "1d")


@pytest.mark.asyncio
async def test_cache_ignores_symbol_case(loader, provider):
    await loader.load("btcusdt", "1d")
    await loader.load("BTCUSDT", "1d")
    assert len(provider.fetch_calls) == 1


@pytest.mark.asyncio
async def test_cached_series_cannot_be_mutated_by_callers(loader):
    first = await loader.load("BTCUSDT", "1d")
    first.clear()
    assert len(await loader.load("BTCUSDT", "1d")) == 3


@pytest.mark.asyncio
async def test_concurrent_loads_share_one_fetch(loader, provider):
    gate = asyncio.Event()
    provider.fetch_gates["15m"] = gate

    tasks = [asyncio.create_task(loader.load("BTCUSDT", "1d")) for _ in range(3)]
    await asyncio.sleep(0)
    await asyncio.sleep(0)
    assert loader.stats["in_flight"] == 1

    gate.set()
    results = await asyncio.gather(*tasks)

    assert len(provider.fetch_calls) == 1
    assert results[0] == results[1] == results[2]
    assert loader.stats["in_flight"] == 0


@pytest.mark.asyncio
async def test_cancelled_waiter_does_not_cancel_shared_fetch(loader, provider):
    gate = asyncio.Event()
    provider.fetch_gates["15m"] = gate

    first = asyncio.create_task(loader.load("BTCUSDT", "1d"))
    second = asyncio.create_task(loader.load("BTCUSDT", "1d"))
    await asyncio.sleep(0)
    await asyncio.sleep(0)

    first.cancel()
    with pytest.raises(asyncio.CancelledError):
        await first

    gate.set()
    series = await second
    assert len(series) == 3
    assert len(provider.fetch_calls) == 1
    assert loader.is_cached("BTCUSDT", "1d")


@pytest.mark.asyncio
async def test_failure_is_not_cached(loader, provider):
    rows = provider.klines[("BTCUSDT", "15m")]
    provider.klines[("BTCUSDT", "15m")] = LoadFailed("boom", symbol="BTCUSDT", range_id="1d")

    with pytest.raises(LoadFailed):
        await loader.load("BTCUSDT", "1d")
    assert not loader.is_cached("BTCUSDT", "1d")

    provider.klines[("BTCUSDT", "15m")] = rows
    series = await loader.load("BTCUSDT", "1d")
    assert len(series) == 3
    assert len(provider.fetch_calls) == 2


@pytest.mark.asyncio
async def test_unexpected_provider_error_is_wrapped(loader, provider):
    provider.klines[("BTCUSDT", "15m")] = RuntimeError("socket reset")

    with pytest.raises(LoadFailed) as exc_info:
        await loader.load("BTCUSDT", "1d")
    assert exc_info.value.code == "LOAD_FAILED"
    assert isinstance(exc_info.value.__cause__, RuntimeError)


@pytest.mark.asyncio
async def test_non_list_payload_fails(loader, provider):
    provider.klines[("BTCUSDT", "15m")] = {"code": -1121, "msg": "Invalid symbol."}

    with pytest.raises(LoadFailed):
        await loader.load("BTCUSDT", "1d")


@pytest.mark.asyncio
async def test_malformed_rows_are_skipped(loader, provider):
    provider.klines[("BTCUSDT", "15m")] = [
        make_row(BASE_MS, 10, 11, 9, 10),
        [BASE_MS, "bad"],
        make_row(BASE_MS + 900_000, 10, 13, 9, 12),
    ]

    series = await loader.load("BTCUSDT", "1d")
    assert [c.close for c in series] == [10.0, 12.0]
    assert series[-1].sma_short == 11.0


@pytest.mark.asyncio
async def test_empty_payload_yields_empty_series(loader, provider):
    provider.klines[("BTCUSDT", "15m")] = []
    assert await loader.load("BTCUSDT", "1d") == []


@pytest.mark.asyncio
async def test_live_range_is_never_cached(loader, provider):
    await loader.load("BTCUSDT", "live")
    await loader.load("BTCUSDT", "live")

    assert provider.fetch_calls == [("BTCUSDT", "1m", 20), ("BTCUSDT", "1m", 20)]
    assert not loader.is_cached("BTCUSDT", "live")


@pytest.mark.asyncio
async def test_different_ranges_use_different_keys(loader, provider):
    await loader.load("BTCUSDT", "1d")
    await loader.load("BTCUSDT", "1m")
    assert [c[1] for c in provider.fetch_calls] == ["15m", "1h"]
    assert sorted(loader.stats["cached_keys"]) == ["BTCUSDT-1d", "BTCUSDT-1m"]


@pytest.mark.asyncio
async def test_unknown_range(loader, provider):
    with pytest.raises(UnknownRange):
        await loader.load("BTCUSDT", "10y")
    assert provider.fetch_calls == []


@pytest.mark.asyncio
async def test_unrepresentable_timestamp_skips_only_that_row(loader, provider):
    provider.klines[("BTCUSDT", "15m")] = [
        make_row(BASE_MS, 10, 11, 9, 10),
        make_row(10**20, 10, 11, 9, 10),
    ]

    series = await loader.load("BTCUSDT", "1d")
    assert [c.open_time for c in series] == [BASE_MS]
    assert loader.is_cached("BTCUSDT", "1d")


@pytest.mark.asyncio
async def test_failed_fetch_with_no_waiters_is_not_reported_as_unretrieved(loader, provider):
    loop = asyncio.get_running_loop()
    unhandled = []
    loop.set_exception_handler(lambda _loop, context: unhandled.append(context))
    try:
        gate = asyncio.Event()
        provider.fetch_gates["15m"] = gate
        provider.klines[("BTCUSDT", "15m")] = RuntimeError("socket reset")

        waiter = asyncio.create_task(loader.load("BTCUSDT", "1d"))
        await wait_until(lambda: len(provider.fetch_calls) == 1)
        waiter.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiter

        gate.set()
        await wait_until(lambda: loader.stats["in_flight"] == 0)
        await asyncio.sleep(0)
        del waiter
        gc.collect()

        assert unhandled == []
        assert not loader.is_cached("BTCUSDT", "1d")
    finally:
        loop.set_exception_handler(None)
