"""Digest stores."""

from ai_digest.store.base import DigestStore
from ai_digest.store.mongo import MongoDigestStore
from ai_digest.store.sqlite import SQLiteDigestStore

__all__ = [
    "DigestStore",
    "MongoDigestStore",
    "SQLiteDigestStore",
]
