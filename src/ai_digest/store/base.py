"""Digest store protocol."""

from typing import Protocol

from ai_digest.data import Digest


class DigestStore(Protocol):
    """Durable, per-day digest records keyed by canonical date string.

    Implementations enforce at most one record per date key.
    """

    async def get(self, date_key: str) -> Digest | None:
        """Return the digest for ``date_key``, or None if absent."""
        ...

    async def insert_if_absent(self, digest: Digest) -> Digest:
        """Atomically store ``digest`` unless its date already has a record.

        Returns:
            The stored digest: ``digest`` itself, or the record that won.
        """
        ...

    async def list_dates(self) -> list[str]:
        """All stored date keys, newest ``createdAt`` first."""
        ...

    async def close(self) -> None: ...
