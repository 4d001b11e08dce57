import math

import pytest

from candlefeed.domain.services.price_change_calculator import compute_price_change
from tests.helpers import make_candle


def _series(closes):
    return [make_candle(str(i), c) for i, c in enumerate(closes)]


def test_price_change_scenario():
    summary = compute_price_change(_series([10, 12, 11]))
    assert summary.absolute_change == pytest.approx(1.00)
    assert summary.percent_change == pytest.approx(10.00)
    assert summary.is_up


def test_price_change_rounds_to_two_decimals():
    summary = compute_price_change(_series([3, 3.3333333]))
    assert summary.absolute_change == 0.33
    assert summary.percent_change == 11.11


def test_negative_change():
    summary = compute_price_change(_series([200, 150]))
    assert summary.absolute_change == -50.0
    assert summary.percent_change == -25.0
    assert not summary.is_up
    assert summary.to_dict() == {"absolute": -50.0, "percent": -25.0, "up": False}


def test_first_close_zero_reports_undefined_percent():
    summary = compute_price_change(_series([0, 5]))
    assert summary.absolute_change == 5.0
    assert summary.percent_change is None
    assert not summary.is_percent_defined
    assert summary.to_dict()["percent"] is None


def test_first_close_zero_never_yields_infinity():
    summary = compute_price_change(_series([0, 0]))
    assert summary.percent_change is None
    assert not math.isinf(summary.absolute_change)


@pytest.mark.parametrize("closes", [[], [42]])
def test_fewer_than_two_candles_yields_no_summary(closes):
    assert compute_price_change(_series(closes)) is None
