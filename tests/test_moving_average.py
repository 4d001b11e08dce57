import random

import pytest

from candlefeed.domain.services.moving_average import attach_moving_averages, compute_sma
from tests.helpers import make_candle


def _series(closes):
    return [make_candle(f"{i:02d}:00", c) for i, c in enumerate(closes)]


def test_sma_scenario_period_two():
    assert compute_sma(_series([10, 12, 11]), 2) == [None, 11.0, 11.5]


@pytest.mark.parametrize("seed", range(5))
@pytest.mark.parametrize("period", [1, 2, 7, 25])
def test_sma_matches_trailing_mean(seed, period):
    rng = random.Random(seed)
    closes = [round(rng.uniform(1, 50_000), 2) for _ in range(60)]
    result = compute_sma(_series(closes), period)

    assert len(result) == len(closes)
    for i, value in enumerate(result):
        if i < period - 1:
            assert value is None
        else:
            window = closes[i - period + 1:i + 1]
            assert value == pytest.approx(sum(window) / period, rel=1e-9)


def test_sma_period_longer_than_series():
    assert compute_sma(_series([1, 2, 3]), 7) == [None, None, None]


def test_sma_empty_series():
    assert compute_sma([], 3) == []


@pytest.mark.parametrize("period", [0, -1])
def test_sma_rejects_invalid_period(period):
    with pytest.raises(ValueError):
        compute_sma(_series([1, 2]), period)


def test_attach_moving_averages_returns_copies():
    series = _series([10, 12, 11])
    attached = attach_moving_averages(series, 2, 3)

    assert [c.sma_short for c in attached] == [None, 11.0, 11.5]
    assert [c.sma_long for c in attached] == [None, None, 11.0]
    assert all(c.sma_short is None for c in series)
    assert [c.bucket_label for c in attached] == [c.bucket_label for c in series]
