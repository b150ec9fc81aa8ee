"""
studybuddy/extension/extractors.py

Per-judge problem extractors.

Each supported site is one ``SiteExtractor`` entry in ``EXTRACTORS``: ordered
CSS selector candidates per field (the first non-empty match wins), the
hostnames it serves, and how long the page needs to settle before the
content is rendered. There is no class hierarchy; site differences are data,
plus an optional difficulty rule for sites that publish a rating instead of
a label.

``ContentScript`` is the page side: it extracts once on load, again on
in-page navigation for single-page-app sites, and on request from the
coordinator. It never retries; that is the coordinator's job.
"""

import asyncio
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from studybuddy.core.logging import get_logger
from studybuddy.extension.models import Message, MessageType, Page, Platform, ProblemRecord

logger = get_logger(__name__)

EXTRACT_REQUEST_DELAY_SECONDS = 0.5

_RATING_TAG = re.compile(r"^\*(\d{3,4})$")


def normalize_difficulty(value: str | None, default: str = "medium") -> str:
    """Map a site's difficulty label onto easy / medium / hard.

    Canonical values map to themselves; unrecognized or empty text maps to
    ``default``.
    """
    text = (value or "").strip().lower()
    if text in ("easy", "medium", "hard"):
        return text
    if "easy" in text or text == "basic":
        return "easy"
    if "medium" in text or "intermediate" in text:
        return "medium"
    if "hard" in text or "advanced" in text:
        return "hard"
    return default


def difficulty_from_rating(rating: int) -> str:
    if rating < 1300:
        return "easy"
    if rating < 1800:
        return "medium"
    return "hard"


def _first_text(soup: BeautifulSoup, selectors: tuple[str, ...], separator: str = " ") -> str:
    for selector in selectors:
        element = soup.select_one(selector)
        if element is None:
            continue
        text = element.get_text(separator, strip=True)
        if text:
            return text
    return ""


def _first_texts(soup: BeautifulSoup, selectors: tuple[str, ...]) -> tuple[str, ...]:
    for selector in selectors:
        texts = tuple(
            text
            for text in (element.get_text(" ", strip=True) for element in soup.select(selector))
            if text
        )
        if texts:
            return texts
    return ()


def _codeforces_difficulty(soup: BeautifulSoup, tags: tuple[str, ...]) -> str:
    rating_text = _first_text(soup, (".problem-statement .rated-user",))
    if rating_text.isdigit():
        return difficulty_from_rating(int(rating_text))
    # The tag box carries the rating as "*1500".
    for tag in tags:
        match = _RATING_TAG.match(tag)
        if match:
            return difficulty_from_rating(int(match.group(1)))
    return "medium"


@dataclass(frozen=True)
class SiteExtractor:
    platform: Platform
    hostnames: tuple[str, ...]
    title_selectors: tuple[str, ...]
    description_selectors: tuple[str, ...]
    tag_selectors: tuple[str, ...]
    difficulty_selectors: tuple[str, ...] = ()
    time_limit_selectors: tuple[str, ...] = ()
    memory_limit_selectors: tuple[str, ...] = ()
    load_delay: float = 0.0
    navigation_delay: float | None = None
    rate_difficulty: Callable[[BeautifulSoup, tuple[str, ...]], str] | None = None

    def extract(self, page: Page) -> ProblemRecord | None:
        """Scrape one rendered page. Returns None when no title is found."""
        soup = BeautifulSoup(page.html, "html.parser")

        title = _first_text(soup, self.title_selectors)
        if not title:
            logger.debug("extract_no_title", platform=self.platform.value, url=page.url)
            return None

        tags = _first_texts(soup, self.tag_selectors)

        if self.rate_difficulty is not None:
            difficulty = self.rate_difficulty(soup, tags)
        else:
            difficulty = normalize_difficulty(_first_text(soup, self.difficulty_selectors))

        return ProblemRecord(
            platform=self.platform,
            url=page.url,
            title=title,
            description=_first_text(soup, self.description_selectors, separator="\n"),
            difficulty=difficulty,
            tags=tags,
            time_limit=_first_text(soup, self.time_limit_selectors) or None,
            memory_limit=_first_text(soup, self.memory_limit_selectors) or None,
        )


EXTRACTORS: dict[Platform, SiteExtractor] = {
    Platform.LEETCODE: SiteExtractor(
        platform=Platform.LEETCODE,
        hostnames=("leetcode.com", "www.leetcode.com"),
        title_selectors=('[data-cy="question-title"]', ".css-v3d350", "h1"),
        description_selectors=(
            '[data-track-load="description_content"]',
            ".content__u3I1",
            ".question-content",
        ),
        difficulty_selectors=("[diff]", ".difficulty", "[data-degree]", '[class*="text-difficulty-"]'),
        tag_selectors=(".topic-tag", '[class*="tag"]'),
        # SPA: rendered by the time the script runs, but in-page navigation
        # swaps the problem without a reload.
        load_delay=0.0,
        navigation_delay=2.0,
    ),
    Platform.CODEFORCES: SiteExtractor(
        platform=Platform.CODEFORCES,
        hostnames=("codeforces.com", "www.codeforces.com"),
        title_selectors=(".problem-statement .title", ".header .title", "h1"),
        description_selectors=(".problem-statement", ".statement"),
        tag_selectors=(".tag-box", '[class*="tag"]'),
        time_limit_selectors=(".time-limit",),
        memory_limit_selectors=(".memory-limit",),
        load_delay=0.5,
        rate_difficulty=_codeforces_difficulty,
    ),
    Platform.HACKERRANK: SiteExtractor(
        platform=Platform.HACKERRANK,
        hostnames=("hackerrank.com", "www.hackerrank.com"),
        title_selectors=(".challenge-page-title", "h1.ui-icon-label", ".problem-statement h1"),
        description_selectors=(".challenge-body-html", ".problem-statement", ".challenge-text"),
        difficulty_selectors=(".difficulty", '[class*="difficulty"]'),
        tag_selectors=(".tag", '[class*="tag"]'),
        load_delay=1.0,
    ),
}

SUPPORTED_HOSTS: frozenset[str] = frozenset(
    host for extractor in EXTRACTORS.values() for host in extractor.hostnames
)


def _hostname(url: str) -> str:
    try:
        return (urlparse(url).hostname or "").lower()
    except ValueError:
        return ""


def is_supported_url(url: str) -> bool:
    return _hostname(url) in SUPPORTED_HOSTS


def find_extractor(url: str) -> SiteExtractor | None:
    host = _hostname(url)
    for extractor in EXTRACTORS.values():
        if host in extractor.hostnames:
            return extractor
    return None


Publisher = Callable[[Message], Awaitable[None]]


class ContentScript:
    """Page-side runner for one extractor in one tab."""

    def __init__(
        self,
        extractor: SiteExtractor,
        page: Page,
        publish: Publisher,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._extractor = extractor
        self._page = page
        self._publish = publish
        self._sleep = sleep

    @property
    def page(self) -> Page:
        return self._page

    def _extract(self) -> ProblemRecord | None:
        try:
            return self._extractor.extract(self._page)
        except Exception as exc:
            logger.error(
                "extract_failed",
                platform=self._extractor.platform.value,
                url=self._page.url,
                error=str(exc),
            )
            return None

    async def _extract_and_publish(self, delay: float) -> ProblemRecord | None:
        if delay > 0:
            await self._sleep(delay)
        record = self._extract()
        if record is not None:
            await self._publish(Message(MessageType.PROBLEM_EXTRACTED, record))
        return record

    async def on_load(self) -> ProblemRecord | None:
        """Extract once the page has had its settle delay, and push the result."""
        return await self._extract_and_publish(self._extractor.load_delay)

    async def on_navigation(self, page: Page) -> ProblemRecord | None:
        """Re-extract after a URL change without reload (SPA sites only)."""
        if self._extractor.navigation_delay is None or page.url == self._page.url:
            return None
        self._page = page
        return await self._extract_and_publish(self._extractor.navigation_delay)

    async def handle(self, message: Message) -> ProblemRecord | None:
        """Answer an ``EXTRACT_PROBLEM`` request from the coordinator."""
        if message.type is not MessageType.EXTRACT_PROBLEM:
            return None
        await self._sleep(EXTRACT_REQUEST_DELAY_SECONDS)
        return self._extract()
