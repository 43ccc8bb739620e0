"""MongoDB digest store using the pymongo async client."""

import logging
import os

from pymongo import AsyncMongoClient
from pymongo.errors import DuplicateKeyError, PyMongoError

from ai_digest.data import Digest
from ai_digest.errors import StoreError

logger = logging.getLogger(__name__)


class MongoDigestStore:
    """Store digests in a MongoDB collection, one document per day.

    A unique index on ``date`` plus an ``$setOnInsert`` upsert make the
    first-of-day write atomic across processes.

    Args:
        uri: Connection string (defaults to MONGODB_URI env var).
        database: Database name.
        collection: Collection name.
        timeout_ms: Server selection and connect timeout.
    """

    def __init__(
        self,
        *,
        uri: str | None = None,
        database: str = "ai-digest",
        collection: str = "digests",
        timeout_ms: int = 10_000,
    ) -> None:
        resolved_uri = uri or os.environ.get("MONGODB_URI")
        if not resolved_uri:
            raise ValueError("MongoDB URI required. Pass uri or set MONGODB_URI env var.")
        self._client = AsyncMongoClient(
            resolved_uri,
            serverSelectionTimeoutMS=timeout_ms,
            connectTimeoutMS=timeout_ms,
            tz_aware=True,
        )
        self._collection = self._client[database][collection]
        self._index_ready = False

    async def _ensure_index(self) -> None:
        if self._index_ready:
            return
        await self._collection.create_index("date", unique=True)
        self._index_ready = True

    async def get(self, date_key: str) -> Digest | None:
        try:
            doc = await self._collection.find_one({"date": date_key}, {"_id": 0})
        except PyMongoError as e:
            raise StoreError(f"Digest lookup failed: {e}") from e
        return Digest.from_record(doc) if doc else None

    async def insert_if_absent(self, digest: Digest) -> Digest:
        record = digest.to_record()
        record["createdAt"] = digest.created_at  # stored as a BSON date
        try:
            await self._ensure_index()
            result = await self._collection.update_one(
                {"date": digest.date},
                {"$setOnInsert": record},
                upsert=True,
            )
            if result.upserted_id is not None:
                return digest
        except DuplicateKeyError:
            # Concurrent upsert from another writer won the unique index
            logger.info("Digest for %s was inserted concurrently", digest.date)
        except PyMongoError as e:
            raise StoreError(f"Digest insert failed: {e}") from e

        stored = await self.get(digest.date)
        if stored is None:
            raise StoreError(f"Digest for {digest.date} vanished after insert")
        return stored

    async def list_dates(self) -> list[str]:
        try:
            cursor = self._collection.find({}, {"date": 1, "createdAt": 1, "_id": 0})
            cursor = cursor.sort("createdAt", -1)
            docs = await cursor.to_list()
        except PyMongoError as e:
            raise StoreError(f"Date listing failed: {e}") from e
        return [doc["date"] for doc in docs]

    async def close(self) -> None:
        await self._client.close()
