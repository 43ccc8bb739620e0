"""Tests for acquirers."""

import json
from datetime import date
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from ai_digest.acquirer.claude_search import ClaudeSearchAcquirer
from ai_digest.acquirer.composable import ComposableAcquirer
from ai_digest.data import APICallUsage, CandidateStory, Story, StoryTag, Usage
from ai_digest.errors import (
    EmptyResultError,
    NotFoundError,
    RateLimitError,
    UpstreamParseError,
)
from ai_digest.run_logger import RunLogger

DAY = date(2026, 2, 5)
KEY = "February 5, 2026"


def _make_mock_api_response(
    text: str, web_searches: int = 0, stop_reason: str = "end_turn"
) -> MagicMock:
    """Create a mock Anthropic API response."""
    text_block = MagicMock()
    text_block.text = text
    text_block.type = "text"

    tool_block = MagicMock()
    tool_block.type = "server_tool_use"

    usage = MagicMock()
    usage.input_tokens = 2000
    usage.output_tokens = 600
    usage.cache_creation_input_tokens = 0
    usage.cache_read_input_tokens = 0
    usage.server_tool_use = MagicMock(web_search_requests=web_searches)

    response = MagicMock()
    response.content = [tool_block, text_block]
    response.usage = usage
    response.stop_reason = stop_reason
    return response


class TestClaudeSearchAcquirer:
    """Tests for ClaudeSearchAcquirer."""

    @pytest.fixture
    def stories_json(self) -> str:
        return "Here you go:\n```json\n" + json.dumps(
            [
                {"headline": "Lab ships model", "tag": "Model", "summary": "It is big [1]."},
                {"headline": "Bad tag", "tag": "Sports", "summary": "Dropped."},
                {"headline": "Chips", "tag": "Infrastructure", "summary": "More GPUs."},
            ]
        ) + "\n```"

    @pytest.fixture
    def acquirer(self, stories_json: str) -> ClaudeSearchAcquirer:
        acquirer = ClaudeSearchAcquirer(api_key="test-key")
        acquirer._client = MagicMock()
        acquirer._client.messages.create = AsyncMock(
            return_value=_make_mock_api_response(stories_json, web_searches=3)
        )
        return acquirer

    async def test_acquire_returns_clean_stories(self, acquirer: ClaudeSearchAcquirer) -> None:
        stories, usage = await acquirer.acquire(KEY, DAY)

        assert [s.headline for s in stories] == ["Lab ships model", "Chips"]
        assert stories[0].summary == "It is big."
        assert stories[1].tag == StoryTag.INFRASTRUCTURE
        assert usage.web_searches == 3
        assert usage.input_tokens == 2000

    async def test_acquire_uses_web_search_tool(self, acquirer: ClaudeSearchAcquirer) -> None:
        await acquirer.acquire(KEY, DAY)
        kwargs = acquirer._client.messages.create.call_args.kwargs
        assert kwargs["tools"][0]["type"] == "web_search_20250305"
        assert kwargs["tools"][0]["max_uses"] == 5
        assert KEY in kwargs["system"]

    async def test_never_reconstructs_history(self, acquirer: ClaudeSearchAcquirer) -> None:
        assert acquirer.supports_history is False
        with pytest.raises(NotFoundError):
            await acquirer.acquire(KEY, DAY, historical=True)
        acquirer._client.messages.create.assert_not_called()

    async def test_unparseable_response_raises(self) -> None:
        acquirer = ClaudeSearchAcquirer(api_key="test-key")
        acquirer._client = MagicMock()
        acquirer._client.messages.create = AsyncMock(
            return_value=_make_mock_api_response("No news today, sorry.")
        )
        with pytest.raises(UpstreamParseError):
            await acquirer.acquire(KEY, DAY)

    async def test_caps_at_max_stories(self, stories_json: str) -> None:
        acquirer = ClaudeSearchAcquirer(api_key="test-key", max_stories=1)
        acquirer._client = MagicMock()
        acquirer._client.messages.create = AsyncMock(
            return_value=_make_mock_api_response(stories_json)
        )
        stories, _ = await acquirer.acquire(KEY, DAY)
        assert len(stories) == 1

    async def test_writes_run_log(self, acquirer: ClaudeSearchAcquirer, tmp_path: Path) -> None:
        acquirer._run_logger = RunLogger(log_dir=tmp_path)
        await acquirer.acquire(KEY, DAY)
        logs = list(tmp_path.glob("run_*.json"))
        assert len(logs) == 1
        data = json.loads(logs[0].read_text())
        assert data["acquirer_type"] == "claude_search"
        assert data["final_story_count"] == 2

    def test_client_has_no_sdk_retries(self) -> None:
        acquirer = ClaudeSearchAcquirer(api_key="test-key")
        assert acquirer._client.max_retries == 0

    async def test_paused_turn_is_continued(self, stories_json: str) -> None:
        acquirer = ClaudeSearchAcquirer(api_key="test-key")
        acquirer._client = MagicMock()
        paused = _make_mock_api_response("Searching...", web_searches=2, stop_reason="pause_turn")
        acquirer._client.messages.create = AsyncMock(
            side_effect=[paused, _make_mock_api_response(stories_json, web_searches=1)]
        )

        stories, usage = await acquirer.acquire(KEY, DAY)

        assert len(stories) == 2
        assert acquirer._client.messages.create.await_count == 2
        messages = acquirer._client.messages.create.call_args_list[1].kwargs["messages"]
        assert [m["role"] for m in messages] == ["user", "assistant"]
        assert messages[1]["content"] is paused.content
        assert usage.input_tokens == 4000
        assert usage.web_searches == 3

    async def test_stops_continuing_after_limit(self, stories_json: str) -> None:
        acquirer = ClaudeSearchAcquirer(api_key="test-key")
        acquirer._client = MagicMock()
        acquirer._client.messages.create = AsyncMock(
            return_value=_make_mock_api_response(stories_json, stop_reason="pause_turn")
        )

        stories, _ = await acquirer.acquire(KEY, DAY)

        assert len(stories) == 2
        expected_calls = ClaudeSearchAcquirer.MAX_CONTINUATIONS + 1
        assert acquirer._client.messages.create.await_count == expected_calls

    async def test_failed_run_writes_log_with_raw_response(self, tmp_path: Path) -> None:
        acquirer = ClaudeSearchAcquirer(api_key="test-key", run_logger=RunLogger(tmp_path))
        acquirer._client = MagicMock()
        acquirer._client.messages.create = AsyncMock(
            return_value=_make_mock_api_response("No news today, sorry.")
        )
        with pytest.raises(UpstreamParseError):
            await acquirer.acquire(KEY, DAY)

        logs = list(tmp_path.glob("run_*.json"))
        assert len(logs) == 1
        data = json.loads(logs[0].read_text())
        assert data["error"].startswith("UpstreamParseError")
        assert data["raw_response"] == "No news today, sorry."
        assert data["final_story_count"] == 0
        assert data["total_usage"]["input_tokens"] == 2000


class TestComposableAcquirer:
    """Tests for ComposableAcquirer."""

    @pytest.fixture
    def candidates(self) -> list[CandidateStory]:
        return [CandidateStory(id="1", title="GPT-5 launches", url="https://e.com/1", score=300)]

    @pytest.fixture
    def mock_source(self, candidates: list[CandidateStory]) -> MagicMock:
        source = MagicMock()
        source.fetch_current = AsyncMock(return_value=(candidates, Usage(hn_requests=5)))
        source.fetch_for_day = AsyncMock(return_value=(candidates, Usage(hn_requests=6)))
        return source

    @pytest.fixture
    def mock_summarizer(self) -> MagicMock:
        summarizer = MagicMock()
        summarizer.summarize = AsyncMock(
            return_value=(
                [Story(headline="GPT-5", tag=StoryTag.MODEL, summary="S", url="https://e.com/1")],
                Usage(api_calls=[APICallUsage(model="m", input_tokens=10, output_tokens=5)]),
            )
        )
        return summarizer

    async def test_current_day_uses_fetch_current(
        self, mock_source: MagicMock, mock_summarizer: MagicMock
    ) -> None:
        acquirer = ComposableAcquirer(mock_source, mock_summarizer)
        stories, usage = await acquirer.acquire(KEY, DAY)

        mock_source.fetch_current.assert_awaited_once()
        mock_source.fetch_for_day.assert_not_awaited()
        assert stories[0].headline == "GPT-5"
        assert usage.hn_requests == 5
        assert usage.input_tokens == 10

    async def test_historical_uses_dated_query(
        self, mock_source: MagicMock, mock_summarizer: MagicMock
    ) -> None:
        acquirer = ComposableAcquirer(mock_source, mock_summarizer)
        assert acquirer.supports_history is True
        _, usage = await acquirer.acquire(KEY, DAY, historical=True)

        mock_source.fetch_for_day.assert_awaited_once_with(DAY)
        mock_source.fetch_current.assert_not_awaited()
        assert usage.hn_requests == 6

    async def test_passes_date_key_to_summarizer(
        self,
        mock_source: MagicMock,
        mock_summarizer: MagicMock,
        candidates: list[CandidateStory],
    ) -> None:
        await ComposableAcquirer(mock_source, mock_summarizer).acquire(KEY, DAY)
        mock_summarizer.summarize.assert_awaited_once_with(candidates, date_key=KEY)

    async def test_no_candidates_raises(
        self, mock_source: MagicMock, mock_summarizer: MagicMock
    ) -> None:
        mock_source.fetch_current = AsyncMock(return_value=([], Usage(hn_requests=2)))
        with pytest.raises(EmptyResultError):
            await ComposableAcquirer(mock_source, mock_summarizer).acquire(KEY, DAY)
        mock_summarizer.summarize.assert_not_awaited()

    async def test_writes_run_log_with_both_stages(
        self, mock_source: MagicMock, mock_summarizer: MagicMock, tmp_path: Path
    ) -> None:
        run_logger = RunLogger(log_dir=tmp_path)
        acquirer = ComposableAcquirer(mock_source, mock_summarizer, run_logger=run_logger)
        await acquirer.acquire(KEY, DAY)

        assert run_logger.last_log_path is not None
        data = json.loads(run_logger.last_log_path.read_text())
        assert [s["stage"] for s in data["stages"]] == ["fetch", "summarize"]

    async def test_failed_summarize_writes_log_with_error(
        self, mock_source: MagicMock, mock_summarizer: MagicMock, tmp_path: Path
    ) -> None:
        mock_summarizer.summarize = AsyncMock(side_effect=UpstreamParseError("bad", raw="junk"))
        run_logger = RunLogger(log_dir=tmp_path)
        acquirer = ComposableAcquirer(mock_source, mock_summarizer, run_logger=run_logger)
        with pytest.raises(UpstreamParseError):
            await acquirer.acquire(KEY, DAY)

        assert run_logger.last_log_path is not None
        data = json.loads(run_logger.last_log_path.read_text())
        assert [s["stage"] for s in data["stages"]] == ["fetch"]
        assert data["error"] == "UpstreamParseError: bad"
        assert data["raw_response"] == "junk"
        assert data["total_usage"]["hn_requests"] == 5

    async def test_empty_fetch_writes_log_with_error(
        self, mock_source: MagicMock, mock_summarizer: MagicMock, tmp_path: Path
    ) -> None:
        mock_source.fetch_current = AsyncMock(return_value=([], Usage(hn_requests=2)))
        run_logger = RunLogger(log_dir=tmp_path)
        acquirer = ComposableAcquirer(mock_source, mock_summarizer, run_logger=run_logger)
        with pytest.raises(EmptyResultError):
            await acquirer.acquire(KEY, DAY)

        data = json.loads(run_logger.last_log_path.read_text())
        assert data["error"].startswith("EmptyResultError")
        assert data["raw_response"] is None

    async def test_rate_limited_summarize_writes_log(
        self, mock_source: MagicMock, mock_summarizer: MagicMock, tmp_path: Path
    ) -> None:
        mock_summarizer.summarize = AsyncMock(side_effect=RateLimitError("Rate limited"))
        run_logger = RunLogger(log_dir=tmp_path)
        acquirer = ComposableAcquirer(mock_source, mock_summarizer, run_logger=run_logger)
        with pytest.raises(RateLimitError):
            await acquirer.acquire(KEY, DAY)

        data = json.loads(run_logger.last_log_path.read_text())
        assert data["error"] == "RateLimitError: Rate limited"
