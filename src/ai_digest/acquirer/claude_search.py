"""Claude web-search acquirer implementation."""

import logging
import os
import time
from datetime import date
from typing import Any

import anthropic

from ai_digest.data import APICallUsage, Story, Usage
from ai_digest.errors import NotFoundError
from ai_digest.parsing import extract_json_array, parse_stories, response_text
from ai_digest.retry import call_with_rate_limit_retry
from ai_digest.run_logger import RunLogger, RunRecord

logger = logging.getLogger(__name__)


class ClaudeSearchAcquirer:
    """Single Claude call that searches the web and writes the digest.

    Claude's server-side web search tool finds the stories and the same
    call returns them as strict story JSON, so no separate summarizer runs.
    Web search results carry no verifiable publication date, so this
    acquirer never reconstructs past days.

    Args:
        model: Anthropic model to use.
        api_key: API key (defaults to ANTHROPIC_API_KEY env var).
        min_stories: Lower bound of stories requested.
        max_stories: Upper bound of stories requested and kept.
        max_searches: Max web searches the model may run.
        max_retries: Attempts on rate limit errors.
        retry_base_delay: First backoff delay in seconds.
        run_logger: Optional RunLogger for intermediate result logging.
    """

    SYSTEM_PROMPT = """\
You are an AI news curator. Today is {date_key}.
Search for the {min_stories}-{max_stories} most important AI news stories from \
the last 48 hours. Cover: model releases, research breakthroughs, major company \
moves, policy/regulation, safety, and infrastructure.

The summaries will be read aloud: no markdown, no bullet points, no citation \
markers.

Respond ONLY with a valid JSON array, no markdown, no preamble:
[{{"headline":"Max 10 word headline",\
"tag":"Model|Research|Policy|Business|Safety|Infrastructure",\
"summary":"2 sentences max. Conversational, no jargon.",\
"url":"Link to the main source"}}]\
"""

    MAX_CONTINUATIONS = 3

    def __init__(
        self,
        model: str = "claude-haiku-4-5-20251001",
        api_key: str | None = None,
        *,
        min_stories: int = 6,
        max_stories: int = 12,
        max_searches: int = 5,
        max_retries: int = 3,
        retry_base_delay: float = 10.0,
        run_logger: RunLogger | None = None,
    ) -> None:
        resolved_key = api_key or os.environ.get("ANTHROPIC_API_KEY")
        # Rate-limit retries are owned by call_with_rate_limit_retry
        self._client = anthropic.AsyncAnthropic(api_key=resolved_key, max_retries=0)
        self._model = model
        self._min_stories = min_stories
        self._max_stories = max_stories
        self._max_searches = max_searches
        self._max_retries = max_retries
        self._retry_base_delay = retry_base_delay
        self._run_logger = run_logger

    @property
    def supports_history(self) -> bool:
        return False

    async def acquire(
        self,
        date_key: str,
        day: date,
        *,
        historical: bool = False,
    ) -> tuple[list[Story], Usage]:
        """Search for and summarize today's stories in one call.

        The run log is written whether the run succeeds or fails.

        Raises:
            NotFoundError: If asked for a past day.
            UpstreamParseError: If the response holds no parseable array.
            EmptyResultError: If the array is empty or has no valid stories.
            RateLimitError: If rate limited on every attempt.
        """
        if historical:
            raise NotFoundError(f"No digest for {date_key}")

        record = self._run_logger.start_run("claude_search", date_key) if self._run_logger else None
        usage = Usage()

        try:
            stories = await self._run(record, date_key, usage)
        except Exception as e:
            if self._run_logger:
                self._run_logger.finish_run(record, [], usage, error=e)
            raise

        if self._run_logger:
            self._run_logger.finish_run(record, stories, usage)
        return (stories, usage)

    async def _run(self, record: RunRecord | None, date_key: str, usage: Usage) -> list[Story]:
        system = self.SYSTEM_PROMPT.format(
            date_key=date_key,
            min_stories=self._min_stories,
            max_stories=self._max_stories,
        )
        messages: list[dict[str, Any]] = [
            {"role": "user", "content": "Top AI news last 48 hours as JSON array."}
        ]

        t0 = time.monotonic()
        response = await self._create(system, messages)
        usage.api_calls.append(APICallUsage.from_response(self._model, response))

        # A long search turn is paused server-side; send it back to continue
        continuations = 0
        while response.stop_reason == "pause_turn":
            if continuations >= self.MAX_CONTINUATIONS:
                logger.warning(
                    "Search turn still paused after %d continuations; parsing partial response",
                    continuations,
                )
                break
            continuations += 1
            messages = [messages[0], {"role": "assistant", "content": response.content}]
            response = await self._create(system, messages)
            usage.api_calls.append(APICallUsage.from_response(self._model, response))

        text = response_text(response)
        stories = parse_stories(extract_json_array(text))[: self._max_stories]
        duration = time.monotonic() - t0

        logger.info("Claude search returned %d stories for %s", len(stories), date_key)

        if self._run_logger:
            self._run_logger.log_stage(
                record,
                stage="search_and_summarize",
                component="ClaudeSearchAcquirer",
                input_data={"date": date_key, "continuations": continuations},
                output_data=stories,
                usage=usage,
                duration_seconds=duration,
            )

        return stories

    async def _create(self, system: str, messages: list[dict[str, Any]]) -> Any:
        return await call_with_rate_limit_retry(
            lambda: self._client.messages.create(
                model=self._model,
                max_tokens=4096,
                system=system,
                tools=[
                    {
                        "type": "web_search_20250305",
                        "name": "web_search",
                        "max_uses": self._max_searches,
                    }
                ],
                messages=messages,
            ),
            retries=self._max_retries,
            base_delay=self._retry_base_delay,
        )
