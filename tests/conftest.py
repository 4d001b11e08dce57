import pytest

from candlefeed.domain.services.candle_normalizer import CandleNormalizer
from tests.helpers import FakeMarketDataProvider, RecordingPresenter


@pytest.fixture
def provider():
    return FakeMarketDataProvider()


@pytest.fixture
def normalizer():
    return CandleNormalizer()


@pytest.fixture
def presenter():
    return RecordingPresenter()
