"""Composable acquirer implementation."""

import logging
import time
from datetime import date

from ai_digest.data import Story, Usage
from ai_digest.errors import EmptyResultError
from ai_digest.run_logger import RunLogger, RunRecord
from ai_digest.sources.base import NewsSource
from ai_digest.summarizer.base import Summarizer

logger = logging.getLogger(__name__)


class ComposableAcquirer:
    """Acquirer composed of a news source and a summarizer.

    Flow:
    1. The source fetches, filters and ranks candidates for the day
    2. The summarizer turns the candidates into stories

    Args:
        source: News source supplying candidates.
        summarizer: Summarizer producing the final stories.
        run_logger: Optional RunLogger for intermediate result logging.
    """

    def __init__(
        self,
        source: NewsSource,
        summarizer: Summarizer,
        run_logger: RunLogger | None = None,
    ) -> None:
        self._source = source
        self._summarizer = summarizer
        self._run_logger = run_logger

    @property
    def supports_history(self) -> bool:
        return True

    async def acquire(
        self,
        date_key: str,
        day: date,
        *,
        historical: bool = False,
    ) -> tuple[list[Story], Usage]:
        """Fetch candidates for the day and summarize them.

        The run log is written whether the run succeeds or fails.

        Raises:
            EmptyResultError: If the source yields no candidates.
        """
        record = self._run_logger.start_run("composable", date_key) if self._run_logger else None
        total_usage = Usage()

        try:
            stories = await self._run(record, date_key, day, historical, total_usage)
        except Exception as e:
            if self._run_logger:
                self._run_logger.finish_run(record, [], total_usage, error=e)
            raise

        if self._run_logger:
            self._run_logger.finish_run(record, stories, total_usage)
        return (stories, total_usage)

    async def _run(
        self,
        record: RunRecord | None,
        date_key: str,
        day: date,
        historical: bool,
        total_usage: Usage,
    ) -> list[Story]:
        # Step 1: Fetch candidates
        t0 = time.monotonic()
        if historical:
            candidates, fetch_usage = await self._source.fetch_for_day(day)
        else:
            candidates, fetch_usage = await self._source.fetch_current()
        fetch_duration = time.monotonic() - t0
        total_usage += fetch_usage

        logger.info("Fetched %d candidates for %s", len(candidates), date_key)

        if self._run_logger:
            self._run_logger.log_stage(
                record,
                stage="fetch",
                component=type(self._source).__name__,
                input_data={"date": date_key, "historical": historical},
                output_data=candidates,
                usage=fetch_usage,
                duration_seconds=fetch_duration,
            )

        if not candidates:
            raise EmptyResultError(f"No AI stories found for {date_key}")

        # Step 2: Summarize
        t0 = time.monotonic()
        stories, summary_usage = await self._summarizer.summarize(candidates, date_key=date_key)
        summary_duration = time.monotonic() - t0
        total_usage += summary_usage

        if self._run_logger:
            self._run_logger.log_stage(
                record,
                stage="summarize",
                component=type(self._summarizer).__name__,
                input_data={"candidate_count": len(candidates)},
                output_data=stories,
                usage=summary_usage,
                duration_seconds=summary_duration,
            )

        return stories
