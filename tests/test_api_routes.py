import pytest
from fastapi.testclient import TestClient

from candlefeed.container import Container
from candlefeed.main import create_app
from candlefeed.shared.config.settings import Settings
from tests.helpers import MINUTE_MS, FakeMarketDataProvider, rows_from_closes


@pytest.fixture
def fake_provider():
    return FakeMarketDataProvider({
        ("BTCUSDT", "15m"): rows_from_closes([10, 12, 11], step_ms=15 * MINUTE_MS),
        ("BTCUSDT", "1m"): rows_from_closes([float(c) for c in range(1, 21)]),
    })


@pytest.fixture
def client(fake_provider):
    container = Container(settings=Settings(autostart_default_selection=False))
    container.override("market_data_provider", fake_provider)
    with TestClient(create_app(container)) as test_client:
        yield test_client


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "candlefeed"}


def test_ranges_in_presentation_order(client):
    ranges = client.get("/api/ranges").json()
    assert [r["id"] for r in ranges] == ["live", "1d", "1m", "1y", "5y"]
    assert ranges[0] == {
        "id": "live", "interval": "1m", "max_candles": 20, "live": True, "label_style": "time",
    }


def test_select_historical_range(client, fake_provider):
    response = client.post("/api/chart/select", json={"symbol": "btcusdt", "range": "1d"})
    assert response.status_code == 200
    body = response.json()
    assert body["symbol"] == "BTCUSDT"
    assert body["range"] == "1d"
    assert body["count"] == 3
    assert body["summary"] == {"absolute": 1.0, "percent": 10.0, "up": True}
    # menos velas que el período SMA por defecto (7): sin valor
    assert all(c["sma_short"] is None for c in body["candles"])
    assert body["candles"][0]["time"] == "14:05"

    chart = client.get("/api/chart").json()
    assert chart["count"] == 3
    assert chart["loading"] is False
    assert fake_provider.connect_attempts == 0


def test_select_unknown_range(client):
    response = client.post("/api/chart/select", json={"symbol": "BTCUSDT", "range": "10y"})
    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "UNKNOWN_RANGE"


def test_select_validates_body(client):
    response = client.post("/api/chart/select", json={"symbol": "", "range": "1d"})
    assert response.status_code == 422


def test_load_failure_is_reported_in_state(client, fake_provider):
    fake_provider.klines[("BTCUSDT", "1h")] = RuntimeError("HTTP 500")
    body = client.post("/api/chart/select", json={"symbol": "BTCUSDT", "range": "1m"}).json()
    assert body["error"] == "Failed to load data"
    assert body["count"] == 0


def test_live_select_then_clear(client, fake_provider):
    body = client.post("/api/chart/select", json={"symbol": "BTCUSDT", "range": "live"}).json()
    assert body["live"] is True
    assert body["count"] == 20

    status = client.get("/api/status").json()
    assert status["pipeline"]["subscriber"] is not None

    cleared = client.delete("/api/chart").json()
    assert cleared["symbol"] is None
    assert cleared["count"] == 0
    assert client.get("/api/status").json()["pipeline"]["subscriber"] is None


def test_websocket_receives_current_snapshot(client):
    client.post("/api/chart/select", json={"symbol": "BTCUSDT", "range": "1d"})
    with client.websocket_connect("/ws/chart") as ws:
        message = ws.receive_json()
    assert message["type"] == "chart_state"
    assert message["data"]["range"] == "1d"
    assert message["data"]["count"] == 3


def test_portfolio_value(client):
    response = client.post("/api/portfolio/value", json={
        "holdings": [
            {"symbol": "BTCUSDT", "amount": "0.5"},
            {"symbol": "ETHUSDT", "amount": -2},
            {"symbol": "FOOUSDT", "amount": 10},
        ],
        "prices": {"BTCUSDT": 60000, "ETHUSDT": 3000, "FOOUSDT": 1},
    })
    assert response.status_code == 200
    assert response.json() == {
        "total": 30000.0,
        "positions": {"BTCUSDT": 30000.0, "ETHUSDT": 0.0},
    }


def test_websocket_receives_state_changes(client):
    with client.websocket_connect("/ws/chart") as ws:
        initial = ws.receive_json()
        assert initial["data"]["symbol"] is None

        client.post("/api/chart/select", json={"symbol": "BTCUSDT", "range": "1d"})

        # reset, loading, serie, resumen, fin de loading
        updates = [ws.receive_json() for _ in range(5)]
    assert all(u["type"] == "chart_state" for u in updates)
    assert updates[0]["data"]["range"] == "1d"
    assert updates[1]["data"]["loading"] is True
    assert updates[-1]["data"]["count"] == 3
    assert updates[-1]["data"]["loading"] is False
