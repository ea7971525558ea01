"""HTTP tests for the chat endpoints."""

from fastapi.testclient import TestClient

from chatguard.core.errors import GENERIC_RETRY_MESSAGE, UpstreamFailure
from chatguard.main import create_app
from chatguard.persistence.session_store import SqlSessionStore
from tests.helpers import FakeInference, make_engine, make_settings, user

QUESTION = "Which observability tools does he use day to day?"


def test_chat_returns_reply_with_trace_header(client: TestClient) -> None:
    response = client.post("/api/chat", json={"messages": [user(QUESTION)]})

    assert response.status_code == 200
    body = response.json()
    assert body["response"] == "Luis works within a large payments team."
    assert body["cached"] is False
    assert response.headers["X-Trace-Id"] == body["trace_id"]
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"


def test_invalid_messages_are_rejected_with_reason(client: TestClient) -> None:
    response = client.post("/api/chat", json={"messages": []})

    assert response.status_code == 400
    assert response.json()["error"] == "No messages provided."


def test_malformed_body_is_bad_request(client: TestClient) -> None:
    response = client.post("/api/chat", content=b"{not json", headers={"Content-Type": "application/json"})

    assert response.status_code == 400


def test_rate_limit_is_per_forwarded_client(client: TestClient) -> None:
    headers = {"x-forwarded-for": "203.0.113.7, 10.0.0.1"}
    statuses = [client.post("/api/chat", json={"messages": [user(QUESTION)]}, headers=headers).status_code for _ in range(4)]
    other = client.post("/api/chat", json={"messages": [user(QUESTION)]}, headers={"x-forwarded-for": "198.51.100.1"})

    assert statuses == [200, 200, 200, 429]
    assert other.status_code == 200


def test_rate_limited_response_has_reset_metadata(client: TestClient) -> None:
    for _ in range(3):
        client.post("/api/chat", json={"messages": [user(QUESTION)]})

    response = client.post("/api/chat", json={"messages": [user(QUESTION)]})

    assert response.status_code == 429
    body = response.json()
    assert "Rate limit reached" in body["error"]
    assert body["reset_at"] > 0
    assert response.headers["Retry-After"] == "60"


def test_upstream_failure_is_a_generic_502() -> None:
    engine = make_engine(inference=FakeInference(error=UpstreamFailure("ConnectError: refused at 10.0.0.5")))
    client = TestClient(create_app(engine))

    response = client.post("/api/chat", json={"messages": [user(QUESTION)]})

    assert response.status_code == 502
    assert response.json()["error"] == GENERIC_RETRY_MESSAGE
    assert "10.0.0.5" not in response.text


def test_unconfigured_provider_is_503() -> None:
    client = TestClient(create_app(make_engine(make_settings(inferencia_api_key=""))))

    response = client.post("/api/chat", json={"messages": [user(QUESTION)]})

    assert response.status_code == 503


def test_save_email_validation(client: TestClient) -> None:
    assert client.post("/api/chat/save-email", json={"email": "a@b.co"}).status_code == 400
    assert client.post("/api/chat/save-email", json={"session_id": "s1", "email": "nope"}).status_code == 400
    # No database configured
    assert client.post("/api/chat/save-email", json={"session_id": "s1", "email": "a@b.co"}).status_code == 503


def test_save_email_on_existing_session(tmp_path) -> None:
    store = SqlSessionStore(f"sqlite:///{tmp_path / 'api.db'}")
    client = TestClient(create_app(make_engine(session_store=store)))
    client.post("/api/chat", json={"messages": [user(QUESTION)], "session_id": "s1"})

    response = client.post("/api/chat/save-email", json={"session_id": "s1", "email": "recruiter@example.com"})
    missing = client.post("/api/chat/save-email", json={"session_id": "nope", "email": "recruiter@example.com"})

    assert response.status_code == 200
    assert response.json() == {"ok": True}
    assert store.get_session("s1").contact_email == "recruiter@example.com"
    assert missing.status_code == 404
