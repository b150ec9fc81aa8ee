import json
import re

import httpx
import openai

from studybuddy.services import question as question_module
from tests.fakes import FakeRedis

TWO_SUM = {
    "questionText": (
        "Given an array nums and target, return indices of two numbers that sum to target."
    ),
    "difficulty": "easy",
    "platform": "leetcode",
}


def test_analyze_question_returns_hints_and_pseudo_code(client, fake_llm):
    resp = client.post("/api/v1/analyze-question", json=TWO_SUM)

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert "timestamp" in body

    data = body["data"]
    assert 1 <= len(data["hints"]) <= 6
    assert all(re.match(r"^\d+\. ", hint) for hint in data["hints"])
    assert data["hints"][0].startswith("1. Think about")
    assert data["pseudoCode"].startswith("seen = {}")
    assert "```" not in data["pseudoCode"]
    assert data["metadata"]["hintsGenerated"] == 4
    assert data["metadata"]["timestamp"].endswith("Z")


def test_analyze_question_sends_context_in_prompt(client, fake_llm):
    client.post("/api/v1/analyze-question", json=TWO_SUM)

    system, user = fake_llm.calls[0]
    assert "DSA" in system.content
    assert "Platform: leetcode" in user.content
    assert "Difficulty: easy" in user.content
    assert "return indices of two numbers" in user.content


def test_short_question_is_rejected_before_processing(client, fake_llm, monkeypatch):
    called = []
    monkeypatch.setattr(
        question_module, "preprocess_question", lambda text: called.append(text) or text
    )

    resp = client.post("/api/v1/analyze-question", json={"questionText": "short"})

    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["error"] == "Invalid input"
    assert body["details"] == [
        {
            "field": "questionText",
            "message": "Question text must be at least 10 characters long",
        }
    ]
    assert called == []
    assert fake_llm.calls == []


def test_too_long_question_is_rejected(client, fake_llm):
    resp = client.post("/api/v1/analyze-question", json={"questionText": "x" * 10_001})

    assert resp.status_code == 400
    assert resp.json()["details"][0]["message"] == (
        "Question text must be less than 10,000 characters"
    )


def test_all_violations_are_reported(client, fake_llm):
    resp = client.post(
        "/api/v1/analyze-question",
        json={"difficulty": "insane", "platform": "myjudge"},
    )

    assert resp.status_code == 400
    details = {d["field"]: d["message"] for d in resp.json()["details"]}
    assert details == {
        "questionText": "Question text is required",
        "difficulty": (
            "Difficulty must be one of: easy, medium, hard, beginner, intermediate, advanced"
        ),
        "platform": "Platform must be one of the supported coding platforms",
    }


def test_unknown_fields_are_dropped(client, fake_llm):
    resp = client.post(
        "/api/v1/analyze-question",
        json={**TWO_SUM, "hintIndex": 2, "somethingElse": True},
    )

    assert resp.status_code == 200


def test_question_empty_after_cleanup_is_a_processing_error(client, fake_llm):
    resp = client.post(
        "/api/v1/analyze-question",
        json={"questionText": "<div></div><span></span>"},
    )

    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "Unable to process question"
    assert body["message"] == "Question text is too short after preprocessing"
    assert fake_llm.calls == []


def test_unparsable_model_output_still_succeeds(client, fake_llm):
    fake_llm.content = "Sure! Here are some hints: ..."

    resp = client.post("/api/v1/analyze-question", json=TWO_SUM)

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert len(data["hints"]) == 4
    assert data["hints"][0] == "1. Read the problem carefully and identify the input/output format"


def test_upstream_timeout_maps_to_503(client, fake_llm):
    fake_llm.error = openai.APITimeoutError(
        request=httpx.Request("POST", "https://api.example.test/v1/chat/completions")
    )

    resp = client.post("/api/v1/analyze-question", json=TWO_SUM)

    assert resp.status_code == 503
    body = resp.json()
    assert body["success"] is False
    assert body["error"] == "Unable to generate hints right now"
    assert "timed out" not in json.dumps(body).lower()


def test_missing_api_key_maps_to_503(client, monkeypatch):
    monkeypatch.setenv("LLM_API_KEY", "")
    from studybuddy.core.config import get_settings

    get_settings.cache_clear()

    resp = client.post("/api/v1/analyze-question", json=TWO_SUM)

    assert resp.status_code == 503


def test_unhandled_error_is_a_generic_500(client, monkeypatch):
    async def explode(**kwargs):
        raise RuntimeError("database password is hunter2")

    from studybuddy.api.v1 import analyze as analyze_module

    monkeypatch.setattr(analyze_module, "analyze_question", explode)

    resp = client.post("/api/v1/analyze-question", json=TWO_SUM)

    assert resp.status_code == 500
    body = resp.json()
    assert body == {"success": False, "error": "Internal server error", "timestamp": body["timestamp"]}
    assert len(resp.headers["x-request-id"]) == 12


def test_rate_limit_rejects_after_budget(client, fake_llm, monkeypatch):
    monkeypatch.setenv("RATE_LIMIT_MAX_REQUESTS", "2")
    from studybuddy.core.config import get_settings

    get_settings.cache_clear()
    redis = FakeRedis()
    client.app.state.redis = redis

    statuses = [
        client.post("/api/v1/analyze-question", json=TWO_SUM).status_code for _ in range(3)
    ]

    assert statuses == [200, 200, 429]
    limited = client.post("/api/v1/analyze-question", json=TWO_SUM).json()
    assert limited["success"] is False
    assert limited["message"] == "Too many requests, please try again later."
    assert list(redis.expiries.values()) == [900]


def test_get_analyze_question_returns_usage(client, fake_llm):
    resp = client.get("/api/v1/analyze-question")

    assert resp.status_code == 200
    assert resp.json()["endpoint"] == "POST /api/v1/analyze-question"
    assert fake_llm.calls == []


def test_unknown_route_lists_endpoints(client):
    resp = client.get("/api/v1/nope")

    assert resp.status_code == 404
    body = resp.json()
    assert body["error"] == "Route not found"
    assert body["message"] == "Cannot GET /api/v1/nope"
    assert body["availableEndpoints"]["analyzeQuestion"] == "POST /api/v1/analyze-question"


def test_shutdown_closes_the_redis_client(fake_llm):
    from fastapi.testclient import TestClient

    from studybuddy.main import create_app

    redis = FakeRedis()
    with TestClient(create_app()) as test_client:
        test_client.app.state.redis = redis
        test_client.post("/api/v1/analyze-question", json=TWO_SUM)

    assert redis.closed is True
