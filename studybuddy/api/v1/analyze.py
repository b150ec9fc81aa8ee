"""
studybuddy/api/v1/analyze.py

POST /api/v1/analyze-question — progressive hints + pseudo-code for a problem.
GET  /api/v1/analyze-question — usage documentation, no processing.

Flow (POST):
  1. Body validated against ``AnalysisRequest`` (failures → 400 via api/errors.py)
  2. Rate-limit check (Redis fixed window per client IP, if Redis is configured)
  3. ``analyze_question`` — normalize, generate, finalize
  4. Return the success envelope
"""

import time

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends, HTTPException, Request, status

from studybuddy.core.config import get_settings
from studybuddy.core.logging import get_logger
from studybuddy.schemas.analysis import AnalysisEnvelope, AnalysisRequest, iso_timestamp
from studybuddy.services.question import analyze_question
from studybuddy.services.redis_client import get_redis

logger = get_logger(__name__)

router = APIRouter()

RATE_LIMIT_PREFIX = "studybuddy:ratelimit"

USAGE_DOCUMENT = {
    "message": "Use POST method to analyze a question",
    "endpoint": "POST /api/v1/analyze-question",
    "expectedPayload": {
        "questionText": "string (required) - The full problem statement, 10-10000 characters",
        "difficulty": "string (optional) - easy|medium|hard|beginner|intermediate|advanced",
        "platform": (
            "string (optional) - leetcode|codeforces|hackerrank|codechef|geeksforgeeks"
            "|atcoder|topcoder|spoj|cses"
        ),
        "includeExplanation": "boolean (optional, default true)",
        "requestPseudoCode": "boolean (optional, default true)",
    },
    "responseFormat": {
        "success": "boolean",
        "data": {
            "hints": ["array of progressive hints"],
            "pseudoCode": "string - pseudo code solution",
            "metadata": {"hintsGenerated": "number", "timestamp": "ISO string"},
        },
        "timestamp": "ISO string",
    },
    "example": {
        "questionText": (
            "Given an array of integers nums and an integer target, return indices "
            "of the two numbers such that they add up to target."
        ),
        "difficulty": "easy",
        "platform": "leetcode",
    },
}


async def _check_rate_limit(request: Request, redis: aioredis.Redis | None) -> None:
    """Count this request against the client's fixed window.

    Uses a Redis counter keyed ``studybuddy:ratelimit:{ip}:{window}`` that
    expires with the window.

    Raises:
        HTTPException: 429 if the window's budget is spent.
    """
    if redis is None:
        return

    settings = get_settings()
    window = settings.rate_limit_window_seconds
    client_ip = request.client.host if request.client else "unknown"
    key = f"{RATE_LIMIT_PREFIX}:{client_ip}:{int(time.time()) // window}"

    count = await redis.incr(key)
    if count == 1:
        await redis.expire(key, window)

    if count > settings.rate_limit_max_requests:
        logger.warning(
            "rate_limited",
            client_ip=client_ip,
            count=count,
            limit=settings.rate_limit_max_requests,
        )
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many requests, please try again later.",
        )


@router.post(
    "/analyze-question",
    response_model=AnalysisEnvelope,
    summary="Generate progressive hints and pseudo-code",
)
async def analyze_question_endpoint(
    body: AnalysisRequest,
    request: Request,
    redis: aioredis.Redis | None = Depends(get_redis),
) -> AnalysisEnvelope:
    await _check_rate_limit(request, redis)

    logger.info(
        "analysis_request",
        platform=body.platform,
        difficulty=body.difficulty,
        question_length=len(body.question_text),
    )

    result = await analyze_question(
        question_text=body.question_text,
        difficulty=body.difficulty,
        platform=body.platform,
    )

    return AnalysisEnvelope(data=result, timestamp=iso_timestamp())


@router.get("/analyze-question", summary="Usage documentation for the analyze endpoint")
async def analyze_question_docs() -> dict:
    return USAGE_DOCUMENT
