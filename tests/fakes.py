import json

from langchain_core.messages import AIMessage

VALID_ANALYSIS = {
    "hints": [
        "Think about what you need to remember while scanning the array.",
        "A hash map from value to index gives O(1) lookups.",
        "For each number, check whether target - number is already in the map.",
        "Insert the current number only after the lookup to avoid reusing it.",
    ],
    "pseudoCode": "```\nseen = {}\nfor i, x in nums:\n  if target - x in seen: return [seen[target - x], i]\n  seen[x] = i\n```",
}


class FakeLLM:
    """Stands in for the bound ChatOpenAI runnable."""

    def __init__(self, content=None, error=None):
        self.content = json.dumps(VALID_ANALYSIS) if content is None else content
        self.error = error
        self.calls = []

    async def ainvoke(self, messages):
        self.calls.append(messages)
        if self.error is not None:
            raise self.error
        return AIMessage(content=self.content)


class FakeRedis:
    def __init__(self):
        self.counters = {}
        self.expiries = {}
        self.closed = False

    async def incr(self, key):
        self.counters[key] = self.counters.get(key, 0) + 1
        return self.counters[key]

    async def expire(self, key, seconds):
        self.expiries[key] = seconds

    async def aclose(self):
        self.closed = True
