import httpx
import openai

from studybuddy.services import llm as llm_module
from tests.fakes import FakeLLM


def test_liveness_does_not_touch_llm(client, fake_llm):
    resp = client.get("/health")

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["environment"] == "development"
    assert fake_llm.calls == []


def test_llm_health_reports_healthy(client, fake_llm):
    resp = client.get("/health/llm")

    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"
    assert len(fake_llm.calls) == 1


def test_llm_health_reports_unreachable(client, monkeypatch):
    fake = FakeLLM(
        error=openai.APIConnectionError(request=httpx.Request("POST", "https://llm.test/v1"))
    )
    monkeypatch.setattr(llm_module, "_create_llm", lambda **kwargs: fake)

    resp = client.get("/health/llm")

    assert resp.status_code == 503
    assert resp.json()["status"] == "unreachable"


def test_llm_health_reports_misconfigured_without_key(client, monkeypatch):
    monkeypatch.setenv("LLM_API_KEY", "")
    from studybuddy.core.config import get_settings

    get_settings.cache_clear()

    resp = client.get("/health/llm")

    assert resp.status_code == 503
    assert resp.json()["status"] == "misconfigured"


def test_llm_health_reports_misconfigured_on_bad_key(client, monkeypatch):
    request = httpx.Request("POST", "https://llm.test/v1/chat/completions")
    fake = FakeLLM(
        error=openai.AuthenticationError(
            "invalid key", response=httpx.Response(401, request=request), body=None
        )
    )
    monkeypatch.setattr(llm_module, "_create_llm", lambda **kwargs: fake)

    resp = client.get("/health/llm")

    assert resp.status_code == 503
    assert resp.json() == {
        "status": "misconfigured",
        "message": "Invalid API key",
        "model": "Meta-Llama-3.3-70B-Instruct",
    }


def test_responses_carry_request_id(client):
    first = client.get("/health").headers["x-request-id"]
    second = client.get("/health").headers["x-request-id"]

    assert len(first) == 12
    assert first != second
