"""
studybuddy/core/config.py

Application settings loaded from environment variables / .env file.
Uses Pydantic Settings v2 for type-safe config with fail-fast validation:
a malformed value (e.g. a negative timeout) stops the app at startup with a
clear error message rather than surfacing on the first request.

Usage:
    from studybuddy.core.config import get_settings
    settings = get_settings()
"""

from functools import lru_cache
from typing import Annotated, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_LLM_BASE_URL = "https://api.sambanova.ai/v1"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        # Extra fields in .env are silently ignored.
        extra="ignore",
    )

    # ── LLM provider (OpenAI-compatible chat completions) ────────────────────
    llm_api_key: str | None = Field(
        default=None,
        description="Bearer key for the chat-completion provider",
    )
    llm_model: str = Field(
        default="Meta-Llama-3.3-70B-Instruct",
        description="Model name sent with every completion request",
    )
    llm_base_url: str = Field(
        default=DEFAULT_LLM_BASE_URL,
        description="Base URL of the OpenAI-compatible API",
    )
    llm_timeout_seconds: float = Field(default=30.0, gt=0)
    llm_temperature: float = Field(default=0.7, ge=0, le=2)
    llm_max_tokens: int = Field(default=1500, gt=0)

    # ── CORS ──────────────────────────────────────────────────────────────────
    # Comma-separated in the environment: ALLOWED_ORIGINS=http://localhost:5173,https://x.dev
    allowed_origins: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:5173"],
    )

    # ── Rate limiting (Redis fixed window) ────────────────────────────────────
    redis_url: str | None = Field(
        default=None,
        description="Redis URL for the per-IP request counter; unset disables rate limiting",
    )
    rate_limit_window_seconds: int = Field(default=15 * 60, gt=0)
    rate_limit_max_requests: int = Field(default=100, gt=0)

    # ── Application ───────────────────────────────────────────────────────────
    environment: Literal["development", "production"] = Field(
        default="development",
        description="Runtime environment; controls log format and debug features",
    )
    app_version: str = Field(default="1.0.0")

    # ── Validators ────────────────────────────────────────────────────────────
    @field_validator("allowed_origins", mode="before")
    @classmethod
    def split_origins(cls, v: object) -> object:
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("llm_base_url")
    @classmethod
    def base_url_must_have_scheme(cls, v: str) -> str:
        if not v.startswith(("https://", "http://")):
            raise ValueError("LLM_BASE_URL must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("llm_api_key")
    @classmethod
    def blank_key_is_unset(cls, v: str | None) -> str | None:
        if v is not None and v.strip() == "":
            return None
        return v

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return (and cache) the application settings singleton.

    Use `get_settings.cache_clear()` in tests to reload from a fresh environment.
    """
    return Settings()
