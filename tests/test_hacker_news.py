"""Tests for HackerNewsSource."""

from datetime import date
from typing import Any
from unittest.mock import MagicMock

import httpx
import pytest

from ai_digest.data import CandidateStory, Usage
from ai_digest.sources.hacker_news import (
    HISTORY_QUERIES,
    HN_ALGOLIA_URL,
    HN_FIREBASE_URL,
    HackerNewsSource,
)

ITEMS: dict[int, dict[str, Any] | None] = {
    1: {"id": 1, "type": "story", "title": "GPT-5 launches", "score": 300, "url": "https://a.com"},
    2: {"id": 2, "type": "story", "title": "Senate passes budget bill", "score": 500},
    3: {"id": 3, "type": "story", "title": "Small LLM tricks", "score": 40},
    4: {"id": 4, "type": "story", "title": "Anthropic ships Claude", "score": 120},
    5: {"id": 5, "type": "story", "title": "OpenAI dead post", "score": 999, "dead": True},
    6: {"id": 6, "type": "comment", "title": "AI comment", "score": 999},
    7: None,
}


def _response(data: Any) -> MagicMock:
    response = MagicMock()
    response.json.return_value = data
    response.raise_for_status = MagicMock()
    return response


@pytest.fixture
def firebase(monkeypatch: pytest.MonkeyPatch) -> list[str]:
    """Serve top/best lists and items; returns the list of requested URLs."""
    requested: list[str] = []

    async def mock_get(self: httpx.AsyncClient, url: str, **kwargs: Any) -> MagicMock:
        requested.append(url)
        if url == f"{HN_FIREBASE_URL}/topstories.json":
            return _response([1, 2, 3, 4])
        if url == f"{HN_FIREBASE_URL}/beststories.json":
            return _response([4, 5, 6, 7])
        story_id = int(url.rsplit("/", 1)[-1].removesuffix(".json"))
        return _response(ITEMS[story_id])

    monkeypatch.setattr(httpx.AsyncClient, "get", mock_get)
    return requested


async def test_fetch_current_filters_and_ranks(firebase: list[str]) -> None:
    source = HackerNewsSource(min_score=50)
    candidates, usage = await source.fetch_current()

    assert [c.id for c in candidates] == ["1", "4"]
    assert all(isinstance(c, CandidateStory) for c in candidates)
    assert candidates[0].url == "https://a.com"
    assert candidates[1].url == "https://news.ycombinator.com/item?id=4"
    assert isinstance(usage, Usage)
    assert usage.hn_requests == 2 + 7


async def test_fetch_current_dedupes_ids(firebase: list[str]) -> None:
    await HackerNewsSource().fetch_current()
    item_urls = [u for u in firebase if "/item/" in u]
    assert len(item_urls) == len(set(item_urls)) == 7


async def test_fetch_current_caps_candidates(firebase: list[str]) -> None:
    candidates, _ = await HackerNewsSource(max_candidates=1).fetch_current()
    assert [c.id for c in candidates] == ["1"]


async def test_fetch_current_drops_failed_items(monkeypatch: pytest.MonkeyPatch) -> None:
    async def mock_get(self: httpx.AsyncClient, url: str, **kwargs: Any) -> MagicMock:
        if url.endswith("topstories.json"):
            return _response([1, 4])
        if url.endswith("beststories.json"):
            return _response([])
        if url.endswith("/4.json"):
            raise httpx.ConnectError("boom")
        return _response(ITEMS[1])

    monkeypatch.setattr(httpx.AsyncClient, "get", mock_get)
    candidates, _ = await HackerNewsSource().fetch_current()
    assert [c.id for c in candidates] == ["1"]


async def test_fetch_for_day_uses_date_bounded_searches(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[dict[str, Any]] = []

    async def mock_get(self: httpx.AsyncClient, url: str, **kwargs: Any) -> MagicMock:
        assert url == HN_ALGOLIA_URL
        calls.append(kwargs["params"])
        return _response(
            {
                "hits": [
                    {"objectID": "10", "title": "LLM agents in prod", "points": 80},
                    {"objectID": "11", "title": "Gardening tips", "points": 500},
                    {"objectID": "12", "title": "New GPT", "points": 5},
                    {"objectID": "13", "title": "OpenAI news", "points": 30, "url": "https://o"},
                ]
            }
        )

    monkeypatch.setattr(httpx.AsyncClient, "get", mock_get)
    candidates, usage = await HackerNewsSource(history_min_score=10).fetch_for_day(
        date(2026, 2, 5)
    )

    assert [c.id for c in candidates] == ["10", "13"]
    assert usage.hn_requests == len(HISTORY_QUERIES)
    assert {c["query"] for c in calls} == set(HISTORY_QUERIES)
    assert all(c["numericFilters"].startswith("created_at_i>=") for c in calls)
    assert all(c["tags"] == "story" for c in calls)


async def test_fetch_for_day_skips_failed_queries(monkeypatch: pytest.MonkeyPatch) -> None:
    async def mock_get(self: httpx.AsyncClient, url: str, **kwargs: Any) -> MagicMock:
        if kwargs["params"]["query"] == "AI":
            raise httpx.ReadTimeout("slow")
        return _response({"hits": [{"objectID": "10", "title": "AI chips", "points": 80}]})

    monkeypatch.setattr(httpx.AsyncClient, "get", mock_get)
    candidates, usage = await HackerNewsSource().fetch_for_day(date(2026, 2, 5))

    assert [c.id for c in candidates] == ["10"]
    assert usage.hn_requests == len(HISTORY_QUERIES) - 1


async def test_item_text_becomes_plain_excerpt(monkeypatch: pytest.MonkeyPatch) -> None:
    item = {
        "id": 1,
        "type": "story",
        "title": "Ask HN: AI tools?",
        "score": 100,
        "text": "What do you use&#x2F;recommend? <p>I use <i>none</i>.",
    }

    async def mock_get(self: httpx.AsyncClient, url: str, **kwargs: Any) -> MagicMock:
        if url.endswith("topstories.json"):
            return _response([1])
        if url.endswith("beststories.json"):
            return _response([])
        return _response(item)

    monkeypatch.setattr(httpx.AsyncClient, "get", mock_get)
    candidates, _ = await HackerNewsSource().fetch_current()
    assert candidates[0].text == "What do you use/recommend? I use none."
