"""
studybuddy/schemas/analysis.py

Pydantic v2 models for the question-analysis API.

The wire format is camelCase (the browser extension speaks JSON the way
JavaScript does); Python code uses snake_case field names. Every model
accepts either spelling on input and dumps camelCase on output.

Rules:
  - ``AnalysisRequest`` uses ``extra="ignore"``: unknown fields from older or
    newer extension builds are dropped, never rejected.
  - ``AnalysisResult.hints`` is never empty. The generator substitutes a fixed
    fallback list when the model output is unusable.
"""

from datetime import datetime, timezone
from typing import Literal, get_args

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Difficulty = Literal["easy", "medium", "hard", "beginner", "intermediate", "advanced"]

Platform = Literal[
    "leetcode",
    "codeforces",
    "hackerrank",
    "codechef",
    "geeksforgeeks",
    "atcoder",
    "topcoder",
    "spoj",
    "cses",
]

DIFFICULTIES: tuple[str, ...] = get_args(Difficulty)
PLATFORMS: tuple[str, ...] = get_args(Platform)

QUESTION_MIN_LENGTH = 10
QUESTION_MAX_LENGTH = 10_000
MAX_HINTS = 6


def iso_timestamp() -> str:
    """Current UTC time as ISO-8601 with a trailing Z, the format the extension parses."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


# ── Request ────────────────────────────────────────────────────────────────────


class AnalysisRequest(_WireModel):
    """Request body for POST /api/v1/analyze-question."""

    model_config = ConfigDict(extra="ignore")

    question_text: str = Field(
        ...,
        description="The full problem statement",
        min_length=QUESTION_MIN_LENGTH,
        max_length=QUESTION_MAX_LENGTH,
    )
    difficulty: Difficulty | None = None
    platform: Platform | None = None
    include_explanation: bool = True
    request_pseudo_code: bool = True


# ── Response ───────────────────────────────────────────────────────────────────


class AnalysisMetadata(_WireModel):
    hints_generated: int
    timestamp: str


class AnalysisResult(_WireModel):
    hints: list[str] = Field(..., min_length=1, max_length=MAX_HINTS)
    pseudo_code: str
    metadata: AnalysisMetadata


class AnalysisEnvelope(_WireModel):
    """Success envelope returned by POST /api/v1/analyze-question."""

    success: Literal[True] = True
    data: AnalysisResult
    timestamp: str


class FieldViolation(BaseModel):
    field: str
    message: str


class ErrorEnvelope(BaseModel):
    success: Literal[False] = False
    error: str
    message: str | None = None
    details: list[FieldViolation] | None = None
    timestamp: str


# ── Health ─────────────────────────────────────────────────────────────────────


class LivenessResponse(BaseModel):
    status: Literal["ok"] = "ok"
    version: str
    environment: str
    timestamp: str


class LLMHealthResponse(BaseModel):
    status: Literal["healthy", "unreachable", "misconfigured"]
    message: str
    model: str
