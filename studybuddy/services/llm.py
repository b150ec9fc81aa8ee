"""
studybuddy/services/llm.py

Langchain LLM integration for hint + pseudo-code generation.

The provider is any OpenAI-compatible chat-completions API (SambaNova by
default), reached through ``langchain_openai.ChatOpenAI`` with a bearer key
from settings.

Rules:
    - One attempt per request. No retries: the error goes straight back to
      the student, who can click again.
    - Every transport-level failure (missing key, timeout, connection error,
      non-2xx) becomes ``LLMServiceError``. The cause is logged, never returned.
    - A malformed model response is never an error: ``parse_ai_response``
      substitutes fixed fallback content.
"""

import json
import re
from dataclasses import dataclass
from typing import Literal

import openai
from langchain_core.messages import HumanMessage, SystemMessage

from studybuddy.core.config import get_settings
from studybuddy.core.logging import get_logger
from studybuddy.services.hint_prompt import SYSTEM_PROMPT, compile_analysis_prompt

logger = get_logger(__name__)

HEALTH_PROBE_TIMEOUT_SECONDS = 5.0

FALLBACK_HINTS: tuple[str, ...] = (
    "1. Read the problem carefully and identify the input/output format",
    "2. Look for patterns - is this a search, sort, or optimization problem?",
    "3. Consider what data structures might be helpful for this problem",
    "4. Think about the time complexity requirements based on constraints",
)

FALLBACK_PSEUDO_CODE = (
    "function solve(input) {\n"
    "  // Analyze the problem step by step\n"
    "  // Choose appropriate data structure\n"
    "  // Implement the solution\n"
    "  return result;\n"
    "}"
)

DEFAULT_PSEUDO_CODE = "function solve() {\n  // Implementation needed\n  return result;\n}"

# Models in JSON mode still occasionally wrap the object in ```json ... ```
_JSON_FENCE = re.compile(r"^```(?:json)?\s*\n|\n?```\s*$")


class LLMServiceError(Exception):
    """Raised when the LLM provider cannot produce a response."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class RawAnalysis:
    """Hints + pseudo-code as parsed from the model, before finalization."""

    hints: list[str]
    pseudo_code: str
    used_fallback: bool = False


@dataclass(frozen=True)
class LLMHealth:
    status: Literal["healthy", "unreachable", "misconfigured"]
    message: str


def _create_llm(
    *,
    json_mode: bool = True,
    max_tokens: int | None = None,
    timeout: float | None = None,
):
    """Create the chat model for the configured provider.

    Returns a Langchain runnable; in JSON mode it is bound to the provider's
    ``json_object`` response format.

    Raises:
        LLMServiceError: If no API key is configured.
    """
    settings = get_settings()

    if not settings.llm_api_key:
        raise LLMServiceError("LLM API key not configured. Set LLM_API_KEY in .env")

    from langchain_openai import ChatOpenAI

    llm = ChatOpenAI(
        model=settings.llm_model,
        api_key=settings.llm_api_key,
        base_url=settings.llm_base_url,
        temperature=settings.llm_temperature,
        max_tokens=max_tokens or settings.llm_max_tokens,
        timeout=timeout or settings.llm_timeout_seconds,
        max_retries=0,
    )
    logger.debug("llm_init", base_url=settings.llm_base_url, model=settings.llm_model)

    if json_mode:
        return llm.bind(response_format={"type": "json_object"})
    return llm


def _message_text(message) -> str:
    """Flatten a chat message's content (str or list of parts) into text."""
    content = getattr(message, "content", message)
    if isinstance(content, list):
        return "".join(
            str(part.get("text", "")) if isinstance(part, dict) else str(part)
            for part in content
        )
    return str(content)


def _map_provider_error(exc: Exception) -> LLMServiceError:
    """Translate an openai/httpx failure into a user-safe LLMServiceError."""
    if isinstance(exc, LLMServiceError):
        return exc
    if isinstance(exc, openai.APIStatusError):
        status_code = exc.status_code
        if status_code == 401:
            return LLMServiceError("Invalid LLM API key", status_code)
        if status_code == 429:
            return LLMServiceError("LLM rate limit exceeded", status_code)
        if status_code >= 500:
            return LLMServiceError("LLM service temporarily unavailable", status_code)
        return LLMServiceError(f"LLM request rejected with status {status_code}", status_code)
    if isinstance(exc, (openai.APITimeoutError, openai.APIConnectionError)):
        return LLMServiceError("Unable to connect to LLM service")
    return LLMServiceError("Failed to generate analysis")


def parse_ai_response(ai_response: str | None) -> RawAnalysis:
    """Parse the model's JSON answer, substituting fallback content when unusable.

    Never raises. A response that is not JSON, or whose ``hints`` is missing,
    not a list, or empty after dropping blank entries, yields the fixed
    fallback hints and fallback pseudo-code. A missing or non-string
    ``pseudoCode`` on its own yields a one-line default.
    """
    try:
        cleaned = _JSON_FENCE.sub("", (ai_response or "").strip())
        parsed = json.loads(cleaned)
        if not isinstance(parsed, dict):
            raise ValueError("Response is not a JSON object")

        hints = parsed.get("hints")
        if not isinstance(hints, list):
            logger.warning("llm_response_missing_hints")
            raise ValueError("Invalid response format: missing hints array")

        valid_hints = [hint for hint in hints if isinstance(hint, str) and hint.strip()]
        if not valid_hints:
            raise ValueError("No valid hints in AI response")

        pseudo_code = parsed.get("pseudoCode")
        if not isinstance(pseudo_code, str) or not pseudo_code:
            logger.warning("llm_response_missing_pseudo_code")
            pseudo_code = DEFAULT_PSEUDO_CODE

        return RawAnalysis(hints=valid_hints, pseudo_code=pseudo_code.strip())

    except (ValueError, TypeError) as exc:
        logger.error(
            "llm_response_parse_failed",
            error=str(exc),
            raw_preview=(ai_response or "")[:200],
        )
        return RawAnalysis(
            hints=list(FALLBACK_HINTS),
            pseudo_code=FALLBACK_PSEUDO_CODE,
            used_fallback=True,
        )


async def generate_hints_and_pseudo_code(
    *,
    question_text: str,
    difficulty: str | None = None,
    platform: str | None = None,
    has_examples: bool = False,
    has_constraints: bool = False,
) -> RawAnalysis:
    """Ask the model for progressive hints and pseudo-code.

    Raises:
        LLMServiceError: On any provider failure. Parse failures are recovered.
    """
    prompt = compile_analysis_prompt(
        question_text=question_text,
        platform=platform,
        difficulty=difficulty,
        has_examples=has_examples,
        has_constraints=has_constraints,
    )

    logger.info(
        "llm_analysis_start",
        platform=platform,
        difficulty=difficulty,
        question_length=len(question_text),
    )

    try:
        llm = _create_llm()
        message = await llm.ainvoke(
            [SystemMessage(content=SYSTEM_PROMPT), HumanMessage(content=prompt)]
        )
    except Exception as exc:
        error = _map_provider_error(exc)
        logger.error(
            "llm_analysis_failed",
            error=str(exc),
            error_type=type(exc).__name__,
            status_code=error.status_code,
        )
        raise error from exc

    usage = getattr(message, "usage_metadata", None) or {}
    logger.debug("llm_analysis_received", tokens_used=usage.get("total_tokens"))

    return parse_ai_response(_message_text(message))


async def check_llm_health() -> LLMHealth:
    """Minimal completion call to see whether the provider answers.

    Used by the operational ``/health/llm`` endpoint only.
    """
    try:
        llm = _create_llm(
            json_mode=False,
            max_tokens=5,
            timeout=HEALTH_PROBE_TIMEOUT_SECONDS,
        )
    except LLMServiceError as exc:
        return LLMHealth(status="misconfigured", message=str(exc))

    try:
        await llm.ainvoke([HumanMessage(content="Hello")])
    except openai.AuthenticationError:
        return LLMHealth(status="misconfigured", message="Invalid API key")
    except Exception as exc:
        logger.warning("llm_health_probe_failed", error=str(exc), error_type=type(exc).__name__)
        return LLMHealth(status="unreachable", message="API unreachable")

    return LLMHealth(status="healthy", message="API accessible")
