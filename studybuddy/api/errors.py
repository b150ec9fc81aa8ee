"""
studybuddy/api/errors.py

Exception handlers that turn domain errors into the JSON envelopes the
extension understands:

    RequestValidationError   → 400, every violation as {field, message}
    QuestionProcessingError  → 400
    LLMServiceError          → 503, generic message (cause is logged only)
    404 from routing         → 404 with the list of valid endpoints
    anything else            → 500, no internal detail
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from studybuddy.core.logging import get_logger
from studybuddy.schemas.analysis import ErrorEnvelope, FieldViolation, iso_timestamp
from studybuddy.services.llm import LLMServiceError
from studybuddy.services.question import QuestionProcessingError

logger = get_logger(__name__)

AVAILABLE_ENDPOINTS = {
    "root": "GET /",
    "health": "GET /health",
    "llmHealth": "GET /health/llm",
    "analyzeQuestion": "POST /api/v1/analyze-question",
    "analyzeQuestionDocs": "GET /api/v1/analyze-question",
}

# (field, pydantic error type) → message shown to the student.
_FIELD_MESSAGES: dict[tuple[str, str], str] = {
    ("questionText", "missing"): "Question text is required",
    ("questionText", "string_type"): "Question text must be a string",
    ("questionText", "string_too_short"): "Question text must be at least 10 characters long",
    ("questionText", "string_too_long"): "Question text must be less than 10,000 characters",
    ("difficulty", "literal_error"): (
        "Difficulty must be one of: easy, medium, hard, beginner, intermediate, advanced"
    ),
    ("platform", "literal_error"): "Platform must be one of the supported coding platforms",
}


def _error_response(status_code: int, headers: dict[str, str] | None = None, **fields) -> JSONResponse:
    envelope = ErrorEnvelope(timestamp=iso_timestamp(), **fields)
    return JSONResponse(
        status_code=status_code,
        content=envelope.model_dump(exclude_none=True),
        headers=headers,
    )


def _violation(error: dict) -> FieldViolation:
    loc = [str(part) for part in error.get("loc", ())]
    if len(loc) > 1 and loc[0] == "body":
        loc = loc[1:]
    field = ".".join(loc)

    if field == "questionText" and error.get("type") == "string_too_short" and error.get("input") == "":
        message = "Question text cannot be empty"
    else:
        message = _FIELD_MESSAGES.get((field, error.get("type", "")), error.get("msg", "Invalid value"))

    return FieldViolation(field=field, message=message)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [_violation(error) for error in exc.errors()]
    logger.warning(
        "request_validation_failed",
        path=request.url.path,
        details=[detail.model_dump() for detail in details],
    )
    return _error_response(
        status.HTTP_400_BAD_REQUEST,
        error="Invalid input",
        details=details,
    )


async def processing_error_handler(request: Request, exc: QuestionProcessingError) -> JSONResponse:
    return _error_response(
        status.HTTP_400_BAD_REQUEST,
        error="Unable to process question",
        message=str(exc),
    )


async def llm_error_handler(request: Request, exc: LLMServiceError) -> JSONResponse:
    logger.error("llm_unavailable", path=request.url.path, error=str(exc))
    return _error_response(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        error="Unable to generate hints right now",
        message="The AI service is temporarily unavailable. Please try again later.",
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        logger.warning("route_not_found", method=request.method, path=request.url.path)
        envelope = ErrorEnvelope(
            error="Route not found",
            message=f"Cannot {request.method} {request.url.path}",
            timestamp=iso_timestamp(),
        ).model_dump(exclude_none=True)
        envelope["availableEndpoints"] = AVAILABLE_ENDPOINTS
        return JSONResponse(status_code=exc.status_code, content=envelope)

    if exc.status_code == status.HTTP_429_TOO_MANY_REQUESTS:
        return _error_response(exc.status_code, error="Too many requests", message=str(exc.detail))

    return _error_response(
        exc.status_code,
        error=str(exc.detail),
    )


def _request_id_header(request: Request) -> dict[str, str] | None:
    # This response bypasses the request-logging middleware on the way out.
    request_id = getattr(request.state, "request_id", None)
    return {"X-Request-ID": request_id} if request_id else None


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "unhandled_error",
        method=request.method,
        path=request.url.path,
        error=str(exc),
        error_type=type(exc).__name__,
        exc_info=exc,
    )
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        headers=_request_id_header(request),
        error="Internal server error",
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(QuestionProcessingError, processing_error_handler)
    app.add_exception_handler(LLMServiceError, llm_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
