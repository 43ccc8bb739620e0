"""Hacker News candidates via the Firebase and Algolia APIs."""

import asyncio
import html
import logging
from datetime import date
from typing import Any

import httpx

from ai_digest.data import CandidateStory, Usage
from ai_digest.dates import day_bounds
from ai_digest.parsing import clean_summary
from ai_digest.sources.keywords import AI_KEYWORDS, is_ai_related

HN_FIREBASE_URL = "https://hacker-news.firebaseio.com/v0"
HN_ALGOLIA_URL = "https://hn.algolia.com/api/v1/search"

# Algolia matches whole words, so history uses a few broad queries and
# relies on the title filter afterwards.
HISTORY_QUERIES: tuple[str, ...] = (
    "AI",
    "LLM",
    "GPT",
    "OpenAI",
    "Anthropic",
    "machine learning",
)

EXCERPT_CHARS = 500

logger = logging.getLogger(__name__)


class HackerNewsSource:
    """Fetch AI-related stories from Hacker News.

    The current day is served from the top and best story lists. A past
    day is reconstructed from Algolia searches bounded to that day's
    ``created_at_i`` range, which is the only dated source this system
    trusts for history.

    Args:
        min_score: Current-day items at or below this score are discarded.
        history_min_score: Score threshold for historical items.
        max_candidates: Maximum candidates returned.
        max_ids: Maximum story IDs fetched from the combined lists.
        concurrency: Maximum concurrent item requests.
        keywords: Title allow-list.
    """

    def __init__(
        self,
        *,
        min_score: int = 50,
        history_min_score: int = 10,
        max_candidates: int = 12,
        max_ids: int = 120,
        concurrency: int = 10,
        keywords: tuple[str, ...] = AI_KEYWORDS,
    ) -> None:
        self._min_score = min_score
        self._history_min_score = history_min_score
        self._max_candidates = max_candidates
        self._max_ids = max_ids
        self._concurrency = concurrency
        self._keywords = keywords

    async def fetch_current(self) -> tuple[list[CandidateStory], Usage]:
        """Fetch today's AI-related stories from the top and best lists."""
        async with httpx.AsyncClient(timeout=30.0) as client:
            top, best = await asyncio.gather(
                self._fetch_ids(client, "topstories"),
                self._fetch_ids(client, "beststories"),
            )
            story_ids = list(dict.fromkeys(top + best))[: self._max_ids]

            semaphore = asyncio.Semaphore(self._concurrency)
            tasks = [self._fetch_item(client, semaphore, story_id) for story_id in story_ids]
            results = await asyncio.gather(*tasks, return_exceptions=True)

        candidates: list[CandidateStory] = []
        for story_id, result in zip(story_ids, results, strict=True):
            if isinstance(result, BaseException):
                logger.warning("Dropping HN item %s. Error: %s", story_id, result)
                continue
            if result is not None:
                candidates.append(result)

        usage = Usage(hn_requests=2 + len(story_ids))
        return (self._select(candidates, self._min_score), usage)

    async def fetch_for_day(self, day: date) -> tuple[list[CandidateStory], Usage]:
        """Fetch stories created on ``day`` via date-bounded Algolia searches."""
        start, end = day_bounds(day)
        async with httpx.AsyncClient(timeout=30.0) as client:
            tasks = [self._search_day(client, query, start, end) for query in HISTORY_QUERIES]
            results = await asyncio.gather(*tasks, return_exceptions=True)

        seen_ids: set[str] = set()
        candidates: list[CandidateStory] = []
        successful_requests = 0

        for query, result in zip(HISTORY_QUERIES, results, strict=True):
            if isinstance(result, BaseException):
                logger.warning("Error processing HN search %r. Error: %s", query, result)
                continue
            successful_requests += 1
            for candidate in result:
                if candidate.id not in seen_ids:
                    seen_ids.add(candidate.id)
                    candidates.append(candidate)

        usage = Usage(hn_requests=successful_requests)
        return (self._select(candidates, self._history_min_score), usage)

    def _select(self, candidates: list[CandidateStory], min_score: int) -> list[CandidateStory]:
        """Keyword filter, score threshold, sort by score descending, cap."""
        kept = [
            c
            for c in candidates
            if c.score > min_score and is_ai_related(c.title, self._keywords)
        ]
        kept.sort(key=lambda c: c.score, reverse=True)
        return kept[: self._max_candidates]

    async def _fetch_ids(self, client: httpx.AsyncClient, listing: str) -> list[int]:
        response = await client.get(f"{HN_FIREBASE_URL}/{listing}.json")
        response.raise_for_status()
        return [int(i) for i in response.json() or []]

    async def _fetch_item(
        self,
        client: httpx.AsyncClient,
        semaphore: asyncio.Semaphore,
        story_id: int,
    ) -> CandidateStory | None:
        async with semaphore:
            response = await client.get(f"{HN_FIREBASE_URL}/item/{story_id}.json")
        response.raise_for_status()
        item = response.json()
        if not item or item.get("dead") or item.get("deleted") or item.get("type") != "story":
            return None
        if not item.get("title"):
            return None

        return CandidateStory(
            id=str(item["id"]),
            title=item["title"],
            url=item.get("url") or f"https://news.ycombinator.com/item?id={item['id']}",
            score=int(item.get("score") or 0),
            text=_excerpt(item.get("text")),
        )

    async def _search_day(
        self,
        client: httpx.AsyncClient,
        query: str,
        start: int,
        end: int,
    ) -> list[CandidateStory]:
        """Execute a single date-bounded Algolia search."""
        params: dict[str, str | int] = {
            "query": query,
            "tags": "story",
            "numericFilters": f"created_at_i>={start},created_at_i<{end}",
            "hitsPerPage": 50,
        }
        response = await client.get(HN_ALGOLIA_URL, params=params)
        response.raise_for_status()
        data = response.json()

        candidates: list[CandidateStory] = []
        for hit in data.get("hits", []):
            object_id = hit.get("objectID")
            title = hit.get("title")
            if not object_id or not title:
                continue
            candidates.append(
                CandidateStory(
                    id=str(object_id),
                    title=title,
                    url=hit.get("url") or f"https://news.ycombinator.com/item?id={object_id}",
                    score=int(hit.get("points") or 0),
                    text=_excerpt(hit.get("story_text")),
                )
            )
        return candidates


def _excerpt(raw: Any) -> str | None:
    """Plain-text excerpt from an HN HTML text field."""
    if not raw:
        return None
    text = clean_summary(html.unescape(str(raw)))
    return text[:EXCERPT_CHARS] or None
