"""Acquirer protocol: produce a day's stories from external sources."""

from datetime import date
from typing import Protocol

from ai_digest.data import Story, Usage


class DigestAcquirer(Protocol):
    """Interface for end-to-end story acquisition."""

    @property
    def supports_history(self) -> bool:
        """Whether past days can be reconstructed from a dated source query."""
        ...

    async def acquire(
        self,
        date_key: str,
        day: date,
        *,
        historical: bool = False,
    ) -> tuple[list[Story], Usage]:
        """Acquire and summarize the stories for a day.

        Args:
            date_key: Canonical date string of the digest.
            day: The calendar day ``date_key`` names.
            historical: True when ``day`` is before today.

        Returns:
            Tuple of (non-empty story list, usage).
        """
        ...
