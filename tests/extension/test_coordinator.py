import asyncio

import pytest

from studybuddy.extension.coordinator import (
    CURRENT_PROBLEM_KEY,
    ContentScriptChannel,
    ExtractionCoordinator,
    ExtractionError,
    SessionContext,
    Tab,
)
from studybuddy.extension.extractors import EXTRACTORS, ContentScript
from studybuddy.extension.models import Message, MessageType, Page, Platform, ProblemRecord
from studybuddy.extension.storage import MemoryStore


def _problem(title="Two Sum"):
    return ProblemRecord(
        platform=Platform.LEETCODE,
        url="https://leetcode.com/problems/two-sum/",
        title=title,
        description="Return indices of the two numbers that add up to target.",
        difficulty="easy",
        tags=("Array",),
    )


class _ScriptedChannel:
    """Fails the first ``failures`` sends, then answers with ``record``."""

    def __init__(self, failures=0, record=None):
        self.failures = failures
        self.record = record
        self.sent = []

    async def send(self, message):
        self.sent.append(message)
        if len(self.sent) <= self.failures:
            raise ConnectionError("Could not establish connection. Receiving end does not exist.")
        return self.record


class _Sleeps:
    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


def _coordinator(store=None, sleep=None):
    context = SessionContext(store=store or MemoryStore())
    return ExtractionCoordinator(context, sleep=sleep or _Sleeps())


@pytest.mark.asyncio
async def test_unsupported_domain_returns_none_without_contacting_page():
    coordinator = _coordinator()
    channel = _ScriptedChannel(record=_problem())

    result = await coordinator.manual_extract(Tab(url="https://example.com/problem", channel=channel))

    assert result is None
    assert channel.sent == []


@pytest.mark.asyncio
async def test_no_active_tab_returns_none():
    assert (await _coordinator().manual_extract(None)) is None


@pytest.mark.asyncio
async def test_retries_until_page_answers():
    sleeps = _Sleeps()
    coordinator = _coordinator(sleep=sleeps)
    channel = _ScriptedChannel(failures=2, record=_problem())

    result = await coordinator.manual_extract(Tab(url="https://leetcode.com/problems/two-sum/", channel=channel))

    assert result.title == "Two Sum"
    assert len(channel.sent) == 3
    assert all(m.type is MessageType.EXTRACT_PROBLEM for m in channel.sent)
    assert sleeps.calls == [0.5, 0.5]
    assert coordinator.current_problem() == result


@pytest.mark.asyncio
async def test_three_failures_propagate_after_two_backoffs():
    sleeps = _Sleeps()
    coordinator = _coordinator(sleep=sleeps)
    channel = _ScriptedChannel(failures=3)

    with pytest.raises(ExtractionError):
        await coordinator.manual_extract(Tab(url="https://leetcode.com/problems/x/", channel=channel))

    assert len(channel.sent) == 3
    assert sum(sleeps.calls) == pytest.approx(1.0)
    assert coordinator.current_problem() is None


@pytest.mark.asyncio
async def test_manual_extract_message_turns_failure_into_none():
    coordinator = _coordinator()
    tab = Tab(url="https://leetcode.com/problems/x/", channel=_ScriptedChannel(failures=3))

    assert (await coordinator.handle(Message(MessageType.MANUAL_EXTRACT), tab)) is None


@pytest.mark.asyncio
async def test_slow_page_counts_as_failed_attempt():
    class _Hangs:
        def __init__(self):
            self.sent = 0

        async def send(self, message):
            self.sent += 1
            await asyncio.sleep(10)

    channel = _Hangs()
    coordinator = ExtractionCoordinator(
        SessionContext(store=MemoryStore()), send_timeout=0.01, sleep=_Sleeps()
    )

    with pytest.raises(ExtractionError):
        await coordinator.manual_extract(Tab(url="https://codeforces.com/contest/1/problem/A", channel=channel))

    assert channel.sent == 3


@pytest.mark.asyncio
async def test_pushed_extraction_overwrites_held_record():
    store = MemoryStore()
    coordinator = _coordinator(store=store)

    await coordinator.handle(Message(MessageType.PROBLEM_EXTRACTED, _problem("First")))
    await coordinator.handle(Message(MessageType.PROBLEM_EXTRACTED, _problem("Second")))

    current = await coordinator.handle(Message(MessageType.GET_CURRENT_PROBLEM))
    assert current.title == "Second"
    assert store.get(CURRENT_PROBLEM_KEY)["title"] == "Second"


def test_held_record_survives_coordinator_restart():
    store = MemoryStore()
    _coordinator(store=store).publish(_problem())

    restarted = _coordinator(store=store)

    recovered = restarted.current_problem()
    assert recovered.title == "Two Sum"
    assert recovered.platform is Platform.LEETCODE
    assert recovered.tags == ("Array",)


@pytest.mark.asyncio
async def test_content_script_pushes_into_coordinator():
    coordinator = _coordinator()
    html = "<html><body><div data-cy='question-title'>Two Sum</div></body></html>"
    page = Page(url="https://leetcode.com/problems/two-sum/", html=html)
    script = ContentScript(EXTRACTORS[Platform.LEETCODE], page, coordinator.handle, sleep=_Sleeps())

    await script.on_load()

    assert coordinator.current_problem().title == "Two Sum"

    tab = Tab(url=page.url, channel=ContentScriptChannel(script))
    record = await coordinator.manual_extract(tab)
    assert record.title == "Two Sum"
