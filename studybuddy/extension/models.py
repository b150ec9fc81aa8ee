"""
studybuddy/extension/models.py

Data carried between the extractors, the coordinator, the popup session and
the gateway.

``ProblemRecord`` is immutable: a newer extraction replaces it, nothing
mutates it. Its dict form is camelCase because it lives in the same storage
area the popup reads.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class Platform(str, Enum):
    LEETCODE = "leetcode"
    CODEFORCES = "codeforces"
    HACKERRANK = "hackerrank"
    CODECHEF = "codechef"
    GEEKSFORGEEKS = "geeksforgeeks"
    ATCODER = "atcoder"
    TOPCODER = "topcoder"
    SPOJ = "spoj"
    CSES = "cses"


@dataclass(frozen=True)
class Page:
    """A rendered snapshot of one browser tab."""

    url: str
    html: str


@dataclass(frozen=True)
class ProblemRecord:
    platform: Platform
    url: str
    title: str
    description: str
    difficulty: str | None = None
    tags: tuple[str, ...] = ()
    time_limit: str | None = None
    memory_limit: str | None = None
    extracted_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def question_text(self) -> str:
        return f"{self.title}\n\n{self.description}"

    def to_dict(self) -> dict:
        data = {
            "platform": self.platform.value,
            "url": self.url,
            "title": self.title,
            "description": self.description,
            "difficulty": self.difficulty,
            "tags": list(self.tags),
            "extractedAt": self.extracted_at.isoformat(),
        }
        if self.time_limit is not None:
            data["timeLimit"] = self.time_limit
        if self.memory_limit is not None:
            data["memoryLimit"] = self.memory_limit
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "ProblemRecord":
        return cls(
            platform=Platform(data["platform"]),
            url=data["url"],
            title=data["title"],
            description=data.get("description", ""),
            difficulty=data.get("difficulty"),
            tags=tuple(data.get("tags") or ()),
            time_limit=data.get("timeLimit"),
            memory_limit=data.get("memoryLimit"),
            extracted_at=datetime.fromisoformat(data["extractedAt"]),
        )


@dataclass(frozen=True)
class Hint:
    index: int
    text: str


@dataclass
class HintState:
    hints: list[Hint] = field(default_factory=list)
    current_index: int = 0
    hints_remaining: int | None = None


@dataclass
class PseudoCodeState:
    revealed: bool = False
    content: str = ""


class MessageType(str, Enum):
    PROBLEM_EXTRACTED = "PROBLEM_EXTRACTED"  # page → coordinator, fire-and-forget
    GET_CURRENT_PROBLEM = "GET_CURRENT_PROBLEM"  # popup → coordinator, read held state
    MANUAL_EXTRACT = "MANUAL_EXTRACT"  # popup → coordinator, retry-bounded extraction
    EXTRACT_PROBLEM = "EXTRACT_PROBLEM"  # coordinator → page, one record or None


@dataclass(frozen=True)
class Message:
    type: MessageType
    data: ProblemRecord | None = None
