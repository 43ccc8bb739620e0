"""Claude-based summarizer producing fixed-shape story JSON."""

import logging
import os
from dataclasses import replace
from enum import StrEnum

import anthropic

from ai_digest.data import APICallUsage, CandidateStory, Story, Usage
from ai_digest.errors import EmptyResultError, UpstreamParseError
from ai_digest.parsing import extract_json_array, parse_story, response_text
from ai_digest.retry import call_with_rate_limit_retry

logger = logging.getLogger(__name__)


class SummaryStrategy(StrEnum):
    """How the model maps candidates to stories.

    ``select``: the model picks the most important 6-12 candidates and
    reports the 1-based index of each pick.
    ``echo``: the model summarizes every candidate (at most 8), one story
    per candidate, in input order.
    """

    SELECT = "select"
    ECHO = "echo"


ECHO_MAX_CANDIDATES = 8

_STYLE_RULES = """\
- "headline": at most 10 words
- "tag": exactly one of: Model, Research, Policy, Business, Safety, Infrastructure
- "summary": 2-3 sentences in plain, conversational language with no jargon

The summaries will be read aloud by a speech synthesizer: no markdown, no \
bullet points, no HTML, no citation markers.\
"""

SELECT_SYSTEM_PROMPT = f"""\
You are an AI news curator preparing a spoken daily digest for {{date_key}}.
From the numbered stories provided, choose the {{min_stories}}-{{max_stories}} most \
important ones. Cover model releases, research breakthroughs, major company \
moves, policy/regulation, safety and infrastructure where possible.

For each chosen story produce an object with:
- "index": the number of the source story you summarized
{_STYLE_RULES}

Respond ONLY with a JSON array, most important story first. No preamble.\
"""

ECHO_SYSTEM_PROMPT = f"""\
You are an AI news curator preparing a spoken daily digest for {{date_key}}.
Summarize EVERY numbered story provided, one object per story, in exactly the \
same order as the input. Do not skip, merge or reorder stories.

For each story produce an object with:
{_STYLE_RULES}

Respond ONLY with a JSON array of exactly {{count}} objects. No preamble.\
"""


def _candidate_to_prompt_text(candidate: CandidateStory, index: int) -> str:
    """Format a candidate for inclusion in the summarization prompt."""
    parts = [f"Story {index + 1}:"]
    parts.append(f"  Title: {candidate.title}")
    parts.append(f"  Points: {candidate.score}")
    if candidate.url:
        parts.append(f"  URL: {candidate.url}")
    if candidate.text:
        parts.append(f"  Excerpt: {candidate.text}")
    return "\n".join(parts)


class ClaudeSummarizer:
    """Summarize candidates into read-aloud stories using Claude.

    URLs are attached by a stable correlation key: the returned ``index``
    under the ``select`` strategy, input position under ``echo``.

    Args:
        model: Anthropic model to use.
        api_key: API key (defaults to ANTHROPIC_API_KEY env var).
        strategy: Summarization strategy.
        min_stories: Lower bound requested under ``select``.
        max_stories: Upper bound requested under ``select``.
        max_retries: Attempts on rate limit errors.
        retry_base_delay: First backoff delay in seconds.
    """

    def __init__(
        self,
        model: str = "claude-haiku-4-5-20251001",
        api_key: str | None = None,
        *,
        strategy: SummaryStrategy = SummaryStrategy.SELECT,
        min_stories: int = 6,
        max_stories: int = 12,
        max_retries: int = 3,
        retry_base_delay: float = 10.0,
    ) -> None:
        resolved_key = api_key or os.environ.get("ANTHROPIC_API_KEY")
        # Rate-limit retries are owned by call_with_rate_limit_retry
        self._client = anthropic.AsyncAnthropic(api_key=resolved_key, max_retries=0)
        self._model = model
        self._strategy = strategy
        self._min_stories = min_stories
        self._max_stories = max_stories
        self._max_retries = max_retries
        self._retry_base_delay = retry_base_delay

    @property
    def strategy(self) -> SummaryStrategy:
        return self._strategy

    async def summarize(
        self,
        candidates: list[CandidateStory],
        *,
        date_key: str,
    ) -> tuple[list[Story], Usage]:
        """Summarize candidates according to the configured strategy.

        Raises:
            UpstreamParseError: If the response cannot be parsed, or the
                ``echo`` strategy returns the wrong number of stories.
            EmptyResultError: If there are no candidates or no valid stories.
        """
        if not candidates:
            raise EmptyResultError("No candidate stories to summarize")

        if self._strategy is SummaryStrategy.ECHO:
            candidates = candidates[:ECHO_MAX_CANDIDATES]
            system = ECHO_SYSTEM_PROMPT.format(date_key=date_key, count=len(candidates))
        else:
            system = SELECT_SYSTEM_PROMPT.format(
                date_key=date_key,
                min_stories=min(self._min_stories, len(candidates)),
                max_stories=min(self._max_stories, len(candidates)),
            )

        candidate_texts = [_candidate_to_prompt_text(c, i) for i, c in enumerate(candidates)]
        user_prompt = f"Summarize these {len(candidates)} stories:\n\n" + "\n\n".join(
            candidate_texts
        )

        response = await call_with_rate_limit_retry(
            lambda: self._client.messages.create(
                model=self._model,
                max_tokens=4096,
                system=system,
                messages=[{"role": "user", "content": user_prompt}],
            ),
            retries=self._max_retries,
            base_delay=self._retry_base_delay,
        )
        usage = Usage(api_calls=[APICallUsage.from_response(self._model, response)])

        items = extract_json_array(response_text(response))
        if self._strategy is SummaryStrategy.ECHO:
            stories = self._pair_positionally(items, candidates)
        else:
            stories = self._pair_by_index(items, candidates)

        if not stories:
            raise EmptyResultError("No valid stories in model response")
        return (stories, usage)

    def _pair_by_index(
        self, items: list[object], candidates: list[CandidateStory]
    ) -> list[Story]:
        """Attach each story's URL from the candidate its ``index`` names."""
        stories: list[Story] = []
        used: set[int] = set()
        for item in items[: self._max_stories]:
            url: str | None = None
            index = item.get("index") if isinstance(item, dict) else None
            if isinstance(index, int) and not isinstance(index, bool):
                if 1 <= index <= len(candidates) and index not in used:
                    used.add(index)
                    url = candidates[index - 1].url
                else:
                    logger.warning("Story index %r out of range or repeated, no URL", index)
            story = parse_story(item)
            if story is not None:
                stories.append(replace(story, url=url))
        return stories

    def _pair_positionally(
        self, items: list[object], candidates: list[CandidateStory]
    ) -> list[Story]:
        """Attach URLs by input position; the counts must match exactly."""
        if len(items) != len(candidates):
            raise UpstreamParseError(
                f"Expected {len(candidates)} stories in input order, got {len(items)}"
            )
        stories: list[Story] = []
        for item, candidate in zip(items, candidates, strict=True):
            story = parse_story(item)
            if story is not None:
                stories.append(replace(story, url=candidate.url))
        return stories
