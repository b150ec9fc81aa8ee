"""
studybuddy/services/hint_process.py

Post-processing for the LLM's hints and pseudo-code before they reach the
client.

Responsibilities:
  - Drop blank hints and number the rest ("1. ...", "2. ...")
  - Cap the list at ``MAX_HINTS`` entries
  - Strip one surrounding markdown code fence from the pseudo-code
  - Attach the metadata envelope (hint count, completion timestamp)

Usage:
    result = finalize_analysis(raw.hints, raw.pseudo_code)
"""

import re

from studybuddy.core.logging import get_logger
from studybuddy.schemas.analysis import (
    MAX_HINTS,
    AnalysisMetadata,
    AnalysisResult,
    iso_timestamp,
)

logger = get_logger(__name__)

MIN_EXPECTED_HINTS = 3

_NUMBERED = re.compile(r"^\d+\.\s")
# A language tag only counts as one when the fence line ends there.
_OPENING_FENCE = re.compile(r"^```(?:[\w+-]*[ \t]*\n)?")
_CLOSING_FENCE = re.compile(r"\n?```$")


def number_hints(hints: list[str]) -> list[str]:
    """Trim hints, drop blanks, and prefix the 1-based step number where missing."""
    numbered = []
    for hint in hints:
        text = hint.strip() if isinstance(hint, str) else ""
        if not text:
            continue
        if not _NUMBERED.match(text):
            text = f"{len(numbered) + 1}. {text}"
        numbered.append(text)
    return numbered


def strip_code_fence(pseudo_code: str) -> str:
    """Remove a single leading ```lang line and a single trailing ``` fence.

    Text without fences comes back trimmed but otherwise unchanged.
    """
    text = (pseudo_code or "").strip()
    text = _OPENING_FENCE.sub("", text, count=1)
    return _CLOSING_FENCE.sub("", text, count=1)


def finalize_analysis(hints: list[str], pseudo_code: str) -> AnalysisResult:
    """Build the client-facing result from parsed model output."""
    numbered = number_hints(hints)

    if len(numbered) < MIN_EXPECTED_HINTS:
        logger.warning(
            "few_hints_generated",
            hints_count=len(numbered),
            expected_at_least=MIN_EXPECTED_HINTS,
        )

    return AnalysisResult(
        hints=numbered[:MAX_HINTS],
        pseudo_code=strip_code_fence(pseudo_code),
        metadata=AnalysisMetadata(
            hints_generated=len(numbered),
            timestamp=iso_timestamp(),
        ),
    )
