"""
studybuddy/core/logging.py

structlog configuration for the backend and the extension runtime.

Production renders one JSON object per line; development renders coloured
console lines. Each HTTP request binds a short ``request_id`` (plus method
and path) into structlog's context variables, so every event logged while
the request is handled carries them without threading a logger through.

Usage:
    from studybuddy.core.logging import get_logger
    logger = get_logger(__name__)
    logger.info("analysis_completed", hints=5)

Log events are snake_case verbs in the past tense. No print().
"""

import logging
import sys
import uuid

import structlog
from structlog.types import EventDict, Processor

QUIET_LOGGERS = ("httpx", "httpcore", "openai")


def _drop_color_message_key(_, __, event_dict: EventDict) -> EventDict:
    # uvicorn's ColourizedFormatter duplicates the message under this key.
    event_dict.pop("color_message", None)
    return event_dict


def setup_logging(environment: str = "development") -> None:
    """Configure structlog and route stdlib loggers to the same stream.

    Idempotent; called from the application lifespan.
    """
    is_production = environment == "production"

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _drop_color_message_key,
    ]

    renderer: list[Processor]
    if is_production:
        renderer = [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    else:
        renderer = [structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())]

    structlog.configure(
        processors=shared_processors + renderer,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.INFO if is_production else logging.DEBUG
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        # Uncached in development so later reconfiguration takes effect.
        cache_logger_on_first_use=is_production,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=logging.INFO)
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).handlers = []
        logging.getLogger(name).propagate = True
    # These log every outbound request at INFO.
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_request_context(method: str, path: str) -> str:
    """Start a fresh log context for one request and return its id."""
    request_id = uuid.uuid4().hex[:12]
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id, method=method, path=path)
    return request_id


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
