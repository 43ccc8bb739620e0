"""Acquirers producing a day's stories end to end."""

from ai_digest.acquirer.base import DigestAcquirer
from ai_digest.acquirer.claude_search import ClaudeSearchAcquirer
from ai_digest.acquirer.composable import ComposableAcquirer

__all__ = [
    "ClaudeSearchAcquirer",
    "ComposableAcquirer",
    "DigestAcquirer",
]
