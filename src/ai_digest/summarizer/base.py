"""Protocol for story summarization."""

from typing import Protocol

from ai_digest.data import CandidateStory, Story, Usage


class Summarizer(Protocol):
    """Interface for turning raw candidates into read-aloud stories."""

    async def summarize(
        self,
        candidates: list[CandidateStory],
        *,
        date_key: str,
    ) -> tuple[list[Story], Usage]:
        """Summarize candidates into stories.

        Args:
            candidates: Candidates in the order the source ranked them.
            date_key: Canonical date of the digest being built.

        Returns:
            Tuple of (stories, usage).
        """
        ...
