"""
studybuddy/services/hint_prompt.py

Jinja2 prompt templates for the DSA mentor.

The model is asked for exactly one JSON object:
    {"hints": ["...", ...], "pseudoCode": "..."}
with 4-5 hints that each reveal a little more of the approach. The
``pseudoCode`` value is a single language-agnostic block.

The system prompt is fixed. The user prompt embeds the cleaned question
text and whatever context the normalizer could supply (platform,
difficulty, and whether the statement carries examples / constraints).
"""

from jinja2 import Template

from studybuddy.core.logging import get_logger

logger = get_logger(__name__)

SYSTEM_PROMPT = """\
You are an expert DSA (Data Structures & Algorithms) mentor and coding interview \
coach. Your role is to guide students through problem-solving by providing \
progressive hints without giving away the complete solution immediately.

Your expertise covers:
- Algorithm design and optimization
- Data structure selection and implementation
- Time and space complexity analysis
- Problem pattern recognition
- Step-by-step problem breakdown

When analyzing a coding problem, you should:
1. Identify the core problem type and patterns
2. Suggest relevant data structures or algorithms
3. Guide the student's thinking process progressively
4. Provide clean, readable pseudo code
5. Focus on learning rather than just getting the answer

Always structure your response as JSON with "hints" array and "pseudoCode" string.\
"""

ANALYSIS_PROMPT_TEMPLATE = """\
Analyze this DSA problem and provide progressive hints + pseudo code:

## Problem Statement

{{ question_text }}

## Context
{% if platform %}
Platform: {{ platform }}
{% endif %}
{% if difficulty %}
Difficulty: {{ difficulty }}
{% endif %}
{% if has_examples %}
Note: Problem includes examples
{% endif %}
{% if has_constraints %}
Note: Problem includes constraints
{% endif %}

## Instructions

Generate exactly 4-5 progressive hints that guide the student's thinking process:
1. First hint: Help identify the problem type/pattern
2. Second hint: Suggest relevant data structures or approach
3. Third hint: Guide toward the optimal solution strategy
4. Fourth hint: Implementation considerations
5. Fifth hint (optional): Optimization tips

Then provide clean pseudo code that demonstrates the solution approach.

## Required JSON Response Format

Return exactly one JSON object and nothing else:
{
  "hints": [
    "Hint 1: Problem identification...",
    "Hint 2: Data structure suggestion...",
    "Hint 3: Algorithm approach...",
    "Hint 4: Implementation guidance...",
    "Hint 5: Optimization considerations..."
  ],
  "pseudoCode": "function solveProblem(input) {\\n  // Step 1: Initialize\\n  // Step 2: Process\\n  // Step 3: Return result\\n}"
}

Focus on teaching problem-solving methodology rather than just providing the answer.\
"""

_compiled_template = Template(ANALYSIS_PROMPT_TEMPLATE, trim_blocks=True)


def compile_analysis_prompt(
    *,
    question_text: str,
    platform: str | None = None,
    difficulty: str | None = None,
    has_examples: bool = False,
    has_constraints: bool = False,
) -> str:
    """Compile the user prompt from the Jinja2 template.

    Args:
        question_text: The cleaned problem statement.
        platform: Judge name, supplied or inferred.
        difficulty: Difficulty level, supplied or inferred.
        has_examples: Whether the statement appears to include worked examples.
        has_constraints: Whether the statement appears to state constraints.

    Returns:
        The compiled prompt string ready for the LLM.
    """
    rendered = _compiled_template.render(
        question_text=question_text,
        platform=platform,
        difficulty=difficulty,
        has_examples=has_examples,
        has_constraints=has_constraints,
    )

    logger.debug(
        "analysis_prompt_compiled",
        prompt_length=len(rendered),
        platform=platform,
        difficulty=difficulty,
        has_examples=has_examples,
        has_constraints=has_constraints,
    )

    return rendered
