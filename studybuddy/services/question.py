"""
studybuddy/services/question.py

Question analysis pipeline: clean the raw problem text, infer missing
metadata, ask the LLM for hints + pseudo-code, and finalize the result.

Flow:
  1. ``preprocess_question`` — deterministic text cleanup.
  2. Reject with ``QuestionProcessingError`` if the cleaned text is too short.
  3. ``extract_question_metadata`` — difficulty/platform guesses, used only
     for fields the caller left out, plus example/constraint flags for the
     prompt.
  4. ``generate_hints_and_pseudo_code`` — one LLM call (see services/llm.py).
  5. ``finalize_analysis`` — numbering, capping, fence stripping.
"""

import re
from dataclasses import dataclass

from studybuddy.core.logging import get_logger
from studybuddy.schemas.analysis import QUESTION_MIN_LENGTH, AnalysisResult
from studybuddy.services.hint_process import finalize_analysis
from studybuddy.services.llm import generate_hints_and_pseudo_code

logger = get_logger(__name__)

MAX_PROMPT_QUESTION_LENGTH = 8000

_WHITESPACE_RUN = re.compile(r"\s+")
_HTML_TAG = re.compile(r"<[^>]*>")
_NEWLINE_RUN = re.compile(r"\n+")

# Ordered: the first group whose keyword appears wins.
_DIFFICULTY_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("easy", ("easy", "beginner")),
    ("medium", ("medium", "intermediate")),
    ("hard", ("hard", "advanced", "difficult")),
)

_PLATFORM_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("leetcode", ("leetcode", "leetcode.com")),
    ("codeforces", ("codeforces", "codeforces.com")),
    ("hackerrank", ("hackerrank",)),
    ("codechef", ("codechef",)),
    ("geeksforgeeks", ("geeksforgeeks", "gfg")),
)


class QuestionProcessingError(Exception):
    """Raised when the question text is unusable after cleanup."""

    pass


@dataclass(frozen=True)
class QuestionMetadata:
    detected_difficulty: str | None = None
    detected_platform: str | None = None
    has_examples: bool = False
    has_constraints: bool = False


def preprocess_question(question_text: str) -> str:
    """Trim, collapse whitespace, strip tag-like markup and cap the length."""
    text = question_text.strip()
    text = _WHITESPACE_RUN.sub(" ", text)
    text = _HTML_TAG.sub("", text)
    text = _NEWLINE_RUN.sub("\n", text)
    return text[:MAX_PROMPT_QUESTION_LENGTH]


def extract_question_metadata(question_text: str, platform: str | None = None) -> QuestionMetadata:
    """Best-effort metadata from keyword presence in the cleaned text."""
    lower = question_text.lower()

    detected_difficulty = next(
        (
            level
            for level, keywords in _DIFFICULTY_KEYWORDS
            if any(keyword in lower for keyword in keywords)
        ),
        None,
    )

    detected_platform = platform or next(
        (
            name
            for name, keywords in _PLATFORM_KEYWORDS
            if any(keyword in lower for keyword in keywords)
        ),
        None,
    )

    has_examples = "example" in lower or ("input" in lower and "output" in lower)
    has_constraints = any(marker in lower for marker in ("constraint", "limit", "≤", "<="))

    return QuestionMetadata(
        detected_difficulty=detected_difficulty,
        detected_platform=detected_platform,
        has_examples=has_examples,
        has_constraints=has_constraints,
    )


async def analyze_question(
    *,
    question_text: str,
    difficulty: str | None = None,
    platform: str | None = None,
) -> AnalysisResult:
    """Run the full analysis pipeline for one validated request.

    Raises:
        QuestionProcessingError: If the text is shorter than the minimum after cleanup.
        LLMServiceError: If the LLM provider cannot be reached.
    """
    cleaned = preprocess_question(question_text)
    if len(cleaned) < QUESTION_MIN_LENGTH:
        logger.warning(
            "question_too_short_after_preprocessing",
            original_length=len(question_text),
            cleaned_length=len(cleaned),
        )
        raise QuestionProcessingError("Question text is too short after preprocessing")

    metadata = extract_question_metadata(cleaned, platform)

    raw = await generate_hints_and_pseudo_code(
        question_text=cleaned,
        difficulty=difficulty or metadata.detected_difficulty,
        platform=platform or metadata.detected_platform,
        has_examples=metadata.has_examples,
        has_constraints=metadata.has_constraints,
    )

    result = finalize_analysis(raw.hints, raw.pseudo_code)

    logger.info(
        "question_analysis_completed",
        hints_count=len(result.hints),
        has_pseudo_code=bool(result.pseudo_code),
        platform=platform,
        difficulty=difficulty,
    )

    return result
