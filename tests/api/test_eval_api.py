"""HTTP tests for the evaluation endpoint."""

from fastapi.testclient import TestClient

from chatguard.main import create_app
from tests.helpers import FakeInference, make_engine, make_settings


def _client(**settings_overrides) -> TestClient:
    inference = FakeInference(reply="I can only help with questions about Luis's professional background.")
    return TestClient(create_app(make_engine(make_settings(**settings_overrides), inference=inference)))


def test_open_access_is_unprivileged_and_hides_responses() -> None:
    client = _client()

    response = client.post("/api/chat/eval", json={"caseIds": ["prompt_injection_refusal", "out_of_scope_refusal"]})

    assert response.status_code == 200
    body = response.json()
    assert body["limits"] == {"max_cases": 4, "privileged": False}
    assert body["provider"]["base_url"] == "[hidden]"
    assert body["summary"]["all_passed"] is True
    assert all(case["response"].startswith("[hidden") for case in body["cases"])


def test_failed_cases_return_422_with_responses() -> None:
    client = _client()

    response = client.post("/api/chat/eval", json={"caseIds": ["model_hosting_realism"], "includeResponses": True})

    assert response.status_code == 422
    case = response.json()["cases"][0]
    assert case["passed"] is False
    assert case["response"].startswith("I can only help")


def test_token_required_when_configured() -> None:
    client = _client(chat_eval_token="eval-token")

    denied = client.post("/api/chat/eval", json={})
    allowed = client.post(
        "/api/chat/eval",
        json={"caseIds": ["prompt_injection_refusal"]},
        headers={"x-chat-eval-token": "eval-token"},
    )

    assert denied.status_code == 403
    assert allowed.status_code == 200
    assert allowed.json()["limits"]["privileged"] is True
    assert allowed.json()["provider"]["base_url"] == "http://inference.test/v1"


def test_unconfigured_provider_is_503() -> None:
    client = _client(inferencia_api_key="")

    response = client.post("/api/chat/eval", json={})

    assert response.status_code == 503
    assert response.json()["message"] == "INFERENCIA_API_KEY is not configured."


def test_no_matching_cases_is_bad_request() -> None:
    client = _client()

    response = client.post("/api/chat/eval", json={"caseIds": ["nope"]})

    assert response.status_code == 400


def test_eval_does_not_spend_daily_chat_budget() -> None:
    engine = make_engine(
        make_settings(chat_daily_budget=1),
        inference=FakeInference(reply="I can only help with questions about Luis's professional background."),
    )
    client = TestClient(create_app(engine))

    evaluated = client.post("/api/chat/eval", json={"caseIds": ["prompt_injection_refusal"]})
    chatted = client.post("/api/chat", json={"messages": [{"role": "user", "content": "Where does he work?"}]})

    assert evaluated.status_code == 200
    assert engine.admission.budget_used() == 1
    assert chatted.status_code == 200


def test_eval_is_limited_by_the_source_bucket() -> None:
    client = _client(chat_max_rpm_per_ip=1)

    first = client.post("/api/chat/eval", json={"caseIds": ["prompt_injection_refusal"]})
    second = client.post("/api/chat/eval", json={"caseIds": ["prompt_injection_refusal"]})

    assert first.status_code == 200
    assert second.status_code == 429
