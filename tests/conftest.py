import pytest
from fastapi.testclient import TestClient

from studybuddy.core.config import get_settings
from studybuddy.services import llm as llm_module
from tests.fakes import FakeLLM


@pytest.fixture(autouse=True)
def settings_env(monkeypatch):
    monkeypatch.setenv("LLM_API_KEY", "test-key")
    monkeypatch.delenv("REDIS_URL", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fake_llm(monkeypatch):
    fake = FakeLLM()
    monkeypatch.setattr(llm_module, "_create_llm", lambda **kwargs: fake)
    return fake


@pytest.fixture
def client():
    from studybuddy.main import create_app

    app = create_app()
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
