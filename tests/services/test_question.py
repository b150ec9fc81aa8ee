import pytest

from studybuddy.services import question as question_module
from studybuddy.services.question import (
    QuestionProcessingError,
    analyze_question,
    extract_question_metadata,
    preprocess_question,
)


def test_preprocess_collapses_whitespace_and_strips_markup():
    raw = "  <p>Given   an\n\n array</p>\t<b>nums</b>  "

    assert preprocess_question(raw) == "Given an array nums"


def test_preprocess_truncates_long_text():
    assert len(preprocess_question("a" * 9000)) == 8000


def test_preprocess_is_deterministic():
    raw = "Find the <i>longest</i> substring\n\nwithout repeats."

    assert preprocess_question(raw) == preprocess_question(raw)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("An easy warm-up problem", "easy"),
        ("Good for a beginner", "easy"),
        ("Intermediate graph traversal", "medium"),
        ("A difficult DP problem", "hard"),
        ("Sum two numbers", None),
    ],
)
def test_metadata_detects_difficulty(text, expected):
    assert extract_question_metadata(text).detected_difficulty == expected


def test_metadata_first_difficulty_match_wins():
    meta = extract_question_metadata("Not easy, actually quite hard")

    assert meta.detected_difficulty == "easy"


def test_metadata_detects_platform_only_when_missing():
    text = "Copied from leetcode.com: two sum"

    assert extract_question_metadata(text).detected_platform == "leetcode"
    assert extract_question_metadata(text, "codeforces").detected_platform == "codeforces"
    assert extract_question_metadata("See the GFG article").detected_platform == "geeksforgeeks"


def test_metadata_flags_examples_and_constraints():
    meta = extract_question_metadata("Input: 1 2. Output: 3. Constraints: 1 <= n <= 10^5")

    assert meta.has_examples is True
    assert meta.has_constraints is True

    bare = extract_question_metadata("Return the sum of two numbers")
    assert bare.has_examples is False
    assert bare.has_constraints is False


@pytest.mark.asyncio
async def test_analyze_rejects_text_too_short_after_cleanup(fake_llm):
    with pytest.raises(QuestionProcessingError):
        await analyze_question(question_text="<tag>abc</tag>     ")

    assert fake_llm.calls == []


@pytest.mark.asyncio
async def test_analyze_infers_only_missing_fields(monkeypatch):
    seen = {}

    async def fake_generate(**kwargs):
        seen.update(kwargs)
        from studybuddy.services.llm import RawAnalysis

        return RawAnalysis(hints=["a", "b", "c"], pseudo_code="x = 1")

    monkeypatch.setattr(question_module, "generate_hints_and_pseudo_code", fake_generate)

    await analyze_question(
        question_text="An easy hackerrank problem with Example input",
        platform="codechef",
    )

    assert seen["difficulty"] == "easy"
    assert seen["platform"] == "codechef"
    assert seen["has_examples"] is True

    await analyze_question(
        question_text="An easy hackerrank problem with Example input",
        difficulty="advanced",
    )

    assert seen["difficulty"] == "advanced"
    assert seen["platform"] == "hackerrank"
