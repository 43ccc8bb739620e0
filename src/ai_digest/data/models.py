"""Core data models for AI Digest."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any


class StoryTag(StrEnum):
    """The fixed set of categories a story can be filed under."""

    MODEL = "Model"
    RESEARCH = "Research"
    POLICY = "Policy"
    BUSINESS = "Business"
    SAFETY = "Safety"
    INFRASTRUCTURE = "Infrastructure"


@dataclass(frozen=True)
class Story:
    """A summarized, audio-friendly news story.

    Identity is positional: a story is addressed by its index within the
    day's list.
    """

    headline: str
    tag: StoryTag
    summary: str
    url: str | None = None

    def to_dict(self) -> dict[str, str]:
        data = {"headline": self.headline, "tag": str(self.tag), "summary": self.summary}
        if self.url:
            data["url"] = self.url
        return data

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "Story":
        return cls(
            headline=str(raw["headline"]),
            tag=StoryTag(raw["tag"]),
            summary=str(raw["summary"]),
            url=raw.get("url") or None,
        )


@dataclass(frozen=True)
class Digest:
    """The finalized story list for one calendar day."""

    date: str
    stories: tuple[Story, ...]
    created_at: datetime

    def to_record(self) -> dict[str, Any]:
        """Persisted record shape: ``{date, stories, createdAt}``."""
        return {
            "date": self.date,
            "stories": [s.to_dict() for s in self.stories],
            "createdAt": self.created_at.isoformat(),
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Digest":
        created_at = record["createdAt"]
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at)
        return cls(
            date=record["date"],
            stories=tuple(Story.from_dict(s) for s in record["stories"]),
            created_at=created_at,
        )


@dataclass(frozen=True)
class QAItem:
    """A question and its answer, kept client-side per story."""

    q: str
    a: str


@dataclass(frozen=True)
class CandidateStory:
    """A raw, unsummarized item from a news source."""

    id: str
    title: str
    url: str | None = None
    score: int = 0
    text: str | None = None


@dataclass(frozen=True)
class APICallUsage:
    """Usage from a single API call."""

    model: str
    input_tokens: int = 0
    output_tokens: int = 0
    cache_creation_input_tokens: int = 0
    cache_read_input_tokens: int = 0
    web_searches: int = 0

    @classmethod
    def from_response(cls, model: str, response: Any) -> "APICallUsage":
        """Build from an Anthropic ``Message`` response."""
        web_searches = 0
        server_tool_use = getattr(response.usage, "server_tool_use", None)
        if server_tool_use is not None:
            web_searches = getattr(server_tool_use, "web_search_requests", 0) or 0

        return cls(
            model=model,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
            cache_creation_input_tokens=getattr(response.usage, "cache_creation_input_tokens", 0)
            or 0,
            cache_read_input_tokens=getattr(response.usage, "cache_read_input_tokens", 0) or 0,
            web_searches=web_searches,
        )


@dataclass
class Usage:
    """Accumulated API usage across one acquisition."""

    api_calls: list[APICallUsage] = field(default_factory=list)
    hn_requests: int = 0

    @property
    def input_tokens(self) -> int:
        return sum(c.input_tokens for c in self.api_calls)

    @property
    def output_tokens(self) -> int:
        return sum(c.output_tokens for c in self.api_calls)

    @property
    def web_searches(self) -> int:
        return sum(c.web_searches for c in self.api_calls)

    def __add__(self, other: "Usage") -> "Usage":
        return Usage(
            api_calls=self.api_calls + other.api_calls,
            hn_requests=self.hn_requests + other.hn_requests,
        )

    def __iadd__(self, other: "Usage") -> "Usage":
        self.api_calls.extend(other.api_calls)
        self.hn_requests += other.hn_requests
        return self
