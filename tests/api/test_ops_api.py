"""HTTP tests for health and the war-room dashboard."""

from fastapi.testclient import TestClient

from chatguard.main import create_app
from tests.helpers import make_engine, make_settings, user


def test_health_is_ok_and_not_cached(client: TestClient) -> None:
    response = client.get("/api/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["checks"]["rate_limiter"]["budget_remaining"] == 150
    assert response.headers["Cache-Control"].startswith("no-store")


def test_degraded_health_still_returns_200() -> None:
    client = TestClient(create_app(make_engine(make_settings(inferencia_api_key=""))))

    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json()["status"] == "degraded"


def test_war_room_data_is_cached(client: TestClient) -> None:
    first = client.get("/api/war-room/data")
    second = client.get("/api/war-room/data")

    assert first.headers["X-Cache"] == "MISS"
    assert second.headers["X-Cache"] == "HIT"
    body = first.json()
    assert set(body) == {
        "service_status",
        "request_metrics",
        "chat_metrics",
        "infrastructure",
        "recent_events",
        "recent_errors",
        "timeseries",
    }


def test_middleware_records_requests(client: TestClient, engine) -> None:
    client.post("/api/chat", json={"messages": [user("Which observability tools does he use?")]})
    client.post("/api/chat", json={"messages": []})

    data, _ = engine.dashboard()

    assert data.request_metrics.total_24h == 2
    assert data.request_metrics.error_rate_1h == 50.0
    assert data.chat_metrics.conversations_24h == 1


def test_unhandled_error_is_counted_in_request_metrics() -> None:
    """A route that raises still shows up in request telemetry.

    Assertions:
    - Response is the generic 500 body
    - Request counter, error counter and time series all see the failure
    - The error ring records the exception type
    """
    engine = make_engine()
    app = create_app(engine)

    @app.get("/api/explode")
    async def explode() -> None:
        raise RuntimeError("kaboom")

    client = TestClient(app, raise_server_exceptions=False)

    response = client.get("/api/explode")

    metrics = engine.telemetry.metrics
    assert response.status_code == 500
    assert "kaboom" not in response.text
    assert metrics.get_counter("http_requests_total") == 1
    assert metrics.get_counter("errors_total") == 1
    assert metrics.get_counter('errors_total{type="server"}') == 1
    assert engine.telemetry.timeseries.errors_in_window(60) == 1
    assert engine.telemetry.errors.recent()[0].message == "RuntimeError"
