"""
studybuddy/extension/coordinator.py

Extraction coordinator, the background side of the extension.

It owns the single most recent ``ProblemRecord`` in an explicit
``SessionContext`` and mirrors it into session storage, so a popup that
closes and reopens can recover it without scraping again.

Invariants:
  - Last write wins. A pushed extraction overwrites the held record
    unconditionally; there is no merge and no versioning. Two pages racing
    to publish is accepted, not prevented.
  - Pages on hosts outside the allow-list are never contacted.
  - A manual extraction tries the page at most ``attempts`` times with a
    fixed backoff between attempts; the loop is bounded by count, and each
    send by ``send_timeout``.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Protocol

from studybuddy.core.logging import get_logger
from studybuddy.extension.extractors import is_supported_url
from studybuddy.extension.models import Message, MessageType, ProblemRecord
from studybuddy.extension.storage import KeyValueStore

logger = get_logger(__name__)

CURRENT_PROBLEM_KEY = "currentProblem"

EXTRACT_ATTEMPTS = 3
EXTRACT_BACKOFF_SECONDS = 0.5
EXTRACT_SEND_TIMEOUT_SECONDS = 5.0


class ExtractionError(Exception):
    """Raised when every attempt to reach the page's extractor failed."""

    pass


class TabChannel(Protocol):
    async def send(self, message: Message) -> ProblemRecord | None: ...


@dataclass(frozen=True)
class Tab:
    url: str
    channel: TabChannel


class ContentScriptChannel:
    """Delivers messages to an in-process ``ContentScript``."""

    def __init__(self, script) -> None:
        self._script = script

    async def send(self, message: Message) -> ProblemRecord | None:
        return await self._script.handle(message)


@dataclass
class SessionContext:
    """The held problem plus the session store it is mirrored into."""

    store: KeyValueStore
    current: ProblemRecord | None = None


class ExtractionCoordinator:
    def __init__(
        self,
        context: SessionContext,
        *,
        attempts: int = EXTRACT_ATTEMPTS,
        backoff: float = EXTRACT_BACKOFF_SECONDS,
        send_timeout: float = EXTRACT_SEND_TIMEOUT_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.context = context
        self._attempts = attempts
        self._backoff = backoff
        self._send_timeout = send_timeout
        self._sleep = sleep

    def publish(self, record: ProblemRecord) -> SessionContext:
        """Replace the held record and mirror it to session storage."""
        self.context.current = record
        self.context.store.set(CURRENT_PROBLEM_KEY, record.to_dict())
        logger.info(
            "problem_stored",
            platform=record.platform.value,
            title=record.title,
            url=record.url,
        )
        return self.context

    def current_problem(self) -> ProblemRecord | None:
        """The held record, recovered from session storage after a restart."""
        if self.context.current is None:
            stored = self.context.store.get(CURRENT_PROBLEM_KEY)
            if stored:
                try:
                    self.context.current = ProblemRecord.from_dict(stored)
                except (KeyError, ValueError) as exc:
                    logger.warning("stored_problem_unreadable", error=str(exc))
                    self.context.store.remove(CURRENT_PROBLEM_KEY)
        return self.context.current

    async def _send_with_retry(self, tab: Tab) -> ProblemRecord | None:
        request = Message(MessageType.EXTRACT_PROBLEM)
        last_error: Exception | None = None

        for attempt in range(1, self._attempts + 1):
            try:
                return await asyncio.wait_for(tab.channel.send(request), self._send_timeout)
            except Exception as exc:
                last_error = exc
                logger.warning(
                    "extract_attempt_failed",
                    attempt=attempt,
                    attempts=self._attempts,
                    url=tab.url,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
                if attempt < self._attempts:
                    await self._sleep(self._backoff)

        raise ExtractionError(
            f"Extraction failed after {self._attempts} attempts: {last_error}"
        ) from last_error

    async def manual_extract(self, tab: Tab | None) -> ProblemRecord | None:
        """Ask the active tab's extractor for its problem right now.

        Returns None for a missing tab, an unsupported site, or a page that
        answered without a problem.

        Raises:
            ExtractionError: If the page could not be reached on any attempt.
        """
        if tab is None:
            logger.info("manual_extract_no_tab")
            return None

        if not is_supported_url(tab.url):
            logger.info("manual_extract_unsupported", url=tab.url)
            return None

        record = await self._send_with_retry(tab)
        if record is not None:
            self.publish(record)
        return record

    async def handle(self, message: Message, tab: Tab | None = None) -> ProblemRecord | None:
        """Dispatch one extension message.

        Extraction failures become None here: the popup shows "no problem
        found" and manual entry stays available.
        """
        if message.type is MessageType.PROBLEM_EXTRACTED:
            if message.data is not None:
                self.publish(message.data)
            return None

        if message.type is MessageType.GET_CURRENT_PROBLEM:
            return self.current_problem()

        if message.type is MessageType.MANUAL_EXTRACT:
            try:
                return await self.manual_extract(tab)
            except ExtractionError as exc:
                logger.error("manual_extract_failed", url=tab.url if tab else None, error=str(exc))
                return None

        logger.warning("unexpected_message", type=message.type.value)
        return None
