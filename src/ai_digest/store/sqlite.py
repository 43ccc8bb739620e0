"""SQLite digest store for single-host deployments.

Database Schema:
    digests table:
        - date (TEXT, PK): Canonical date key, e.g. "February 25, 2026"
        - stories (TEXT): JSON array of story objects
        - created_at (TEXT): ISO-8601 creation timestamp (UTC)

The primary key on ``date`` plus ``INSERT OR IGNORE`` make the
first-of-day write atomic. Blocking sqlite calls run in a worker thread.
"""

import asyncio
import json
import logging
import sqlite3
import threading
from pathlib import Path

from ai_digest.data import Digest
from ai_digest.errors import StoreError

logger = logging.getLogger(__name__)


class SQLiteDigestStore:
    """Store digests in a local SQLite file."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(self.path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._init_schema()

    def _init_schema(self) -> None:
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS digests (
                date TEXT PRIMARY KEY,
                stories TEXT NOT NULL,
                created_at TEXT NOT NULL
            )
            """
        )
        self._conn.commit()

    def _row_to_digest(self, row: sqlite3.Row) -> Digest:
        return Digest.from_record(
            {
                "date": row["date"],
                "stories": json.loads(row["stories"]),
                "createdAt": row["created_at"],
            }
        )

    def _get(self, date_key: str) -> Digest | None:
        with self._lock:
            row = self._conn.execute(
                "SELECT date, stories, created_at FROM digests WHERE date = ?", (date_key,)
            ).fetchone()
        return self._row_to_digest(row) if row else None

    def _insert_if_absent(self, digest: Digest) -> Digest:
        record = digest.to_record()
        with self._lock:
            cursor = self._conn.execute(
                "INSERT OR IGNORE INTO digests (date, stories, created_at) VALUES (?, ?, ?)",
                (record["date"], json.dumps(record["stories"]), record["createdAt"]),
            )
            self._conn.commit()
            inserted = cursor.rowcount == 1
        if inserted:
            return digest

        logger.info("Digest for %s already stored, keeping existing record", digest.date)
        stored = self._get(digest.date)
        if stored is None:
            raise StoreError(f"Digest for {digest.date} vanished after insert")
        return stored

    def _list_dates(self) -> list[str]:
        with self._lock:
            rows = self._conn.execute(
                "SELECT date FROM digests ORDER BY created_at DESC"
            ).fetchall()
        return [row["date"] for row in rows]

    async def get(self, date_key: str) -> Digest | None:
        try:
            return await asyncio.to_thread(self._get, date_key)
        except sqlite3.Error as e:
            raise StoreError(f"Digest lookup failed: {e}") from e

    async def insert_if_absent(self, digest: Digest) -> Digest:
        try:
            return await asyncio.to_thread(self._insert_if_absent, digest)
        except sqlite3.Error as e:
            raise StoreError(f"Digest insert failed: {e}") from e

    async def list_dates(self) -> list[str]:
        try:
            return await asyncio.to_thread(self._list_dates)
        except sqlite3.Error as e:
            raise StoreError(f"Date listing failed: {e}") from e

    async def close(self) -> None:
        with self._lock:
            self._conn.close()
