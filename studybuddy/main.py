"""
studybuddy/main.py

FastAPI application entrypoint.

Startup sequence (via lifespan):
  1. Logging is configured (JSON in prod, coloured console in dev).
  2. Redis connection pool is created and PINGed if REDIS_URL is set
     (fails fast if configured but unreachable).
  3. The Redis client (or None) is stored on ``app.state``.

Shutdown sequence (via lifespan):
  1. Redis connection pool is gracefully closed.

Environment variables are loaded by Pydantic Settings from ``.env``; there
is no ``load_dotenv()`` call here. Do not add one.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from studybuddy.api.errors import AVAILABLE_ENDPOINTS, register_exception_handlers
from studybuddy.core.config import get_settings
from studybuddy.core.logging import bind_request_context, get_logger, setup_logging
from studybuddy.services.redis_client import close_redis, init_redis

# Any installed build of the extension, whatever its generated ID.
EXTENSION_ORIGIN_REGEX = r"^chrome-extension://[a-z]+$"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage startup and shutdown of external service connections."""
    settings = get_settings()

    # ── Startup ───────────────────────────────────────────────────────────────
    setup_logging(environment=settings.environment)
    logger = get_logger(__name__)

    logger.info(
        "app_startup",
        version=settings.app_version,
        environment=settings.environment,
        llm_model=settings.llm_model,
        llm_configured=bool(settings.llm_api_key),
    )

    app.state.redis = await init_redis()

    logger.info("app_ready", message="Accepting requests.")

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────────
    logger.info("app_shutdown", message="Shutting down gracefully...")
    await close_redis(app.state.redis)
    logger.info("app_stopped")


def create_app() -> FastAPI:
    """Application factory.

    Returns a configured FastAPI instance. Separating creation from the module
    global makes the app importable without side effects.
    """
    settings = get_settings()

    app = FastAPI(
        title="Student Buddy Backend",
        description=(
            "Progressive hints and pseudo-code for coding problems scraped from "
            "online judges by the Student Buddy browser extension."
        ),
        version=settings.app_version,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        lifespan=lifespan,
    )

    # ── CORS ──────────────────────────────────────────────────────────────────
    # Configured origins plus any extension origin.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_origin_regex=EXTENSION_ORIGIN_REGEX,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        max_age=86400,
    )

    # ── Request logging ───────────────────────────────────────────────────────
    request_logger = get_logger("studybuddy.requests")

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        # Left bound after the response so the 500 handler still logs it.
        request_id = bind_request_context(request.method, request.url.path)
        request.state.request_id = request_id
        request_logger.info(
            "http_request_received",
            client_ip=request.client.host if request.client else None,
        )
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    register_exception_handlers(app)

    # ── Routers ───────────────────────────────────────────────────────────────
    from studybuddy.api import health  # noqa: PLC0415
    from studybuddy.api.v1 import analyze  # noqa: PLC0415

    app.include_router(health.router, tags=["Health"])
    app.include_router(analyze.router, prefix="/api/v1", tags=["Analysis"])

    @app.get("/", include_in_schema=False)
    async def root() -> dict:
        return {
            "service": "studybuddy-backend",
            "version": settings.app_version,
            "documentation": "/health",
            "endpoints": AVAILABLE_ENDPOINTS,
        }

    return app


# Module-level app instance, used by uvicorn: ``uvicorn studybuddy.main:app``
app = create_app()
