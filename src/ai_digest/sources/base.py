from datetime import date
from typing import Protocol

from ai_digest.data import CandidateStory, Usage


class NewsSource(Protocol):
    """Interface for fetching raw candidate stories."""

    async def fetch_current(self) -> tuple[list[CandidateStory], Usage]:
        """Fetch AI-related candidates for the current day.

        Returns:
            Tuple of (candidates sorted by score descending, usage).
        """
        ...

    async def fetch_for_day(self, day: date) -> tuple[list[CandidateStory], Usage]:
        """Fetch AI-related candidates verifiably dated to ``day``.

        Returns:
            Tuple of (candidates sorted by score descending, usage).
        """
        ...
