"""
studybuddy/api/health.py

GET /health     — liveness probe. Never touches the LLM provider.
GET /health/llm — operational probe of the LLM provider. Returns HTTP 503
                  unless the provider answered, so monitors can alert on it.
"""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from studybuddy.core.config import get_settings
from studybuddy.core.logging import get_logger
from studybuddy.schemas.analysis import LivenessResponse, LLMHealthResponse, iso_timestamp
from studybuddy.services.llm import check_llm_health

logger = get_logger(__name__)
router = APIRouter()


@router.get("/health", response_model=LivenessResponse, summary="Liveness probe")
async def liveness() -> LivenessResponse:
    settings = get_settings()
    return LivenessResponse(
        version=settings.app_version,
        environment=settings.environment,
        timestamp=iso_timestamp(),
    )


@router.get(
    "/health/llm",
    response_model=LLMHealthResponse,
    summary="LLM provider health check",
    description="Sends a minimal completion request. Returns HTTP 503 unless the provider is healthy.",
)
async def llm_health() -> JSONResponse:
    settings = get_settings()
    health = await check_llm_health()

    response = LLMHealthResponse(
        status=health.status,
        message=health.message,
        model=settings.llm_model,
    )
    http_status = (
        status.HTTP_200_OK if health.status == "healthy" else status.HTTP_503_SERVICE_UNAVAILABLE
    )

    logger.info("llm_health_check", status=health.status)

    return JSONResponse(content=response.model_dump(), status_code=http_status)
