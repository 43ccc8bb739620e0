"""News sources supplying raw candidate stories."""

from ai_digest.sources.base import NewsSource
from ai_digest.sources.hacker_news import HackerNewsSource
from ai_digest.sources.keywords import AI_KEYWORDS, is_ai_related

__all__ = [
    "AI_KEYWORDS",
    "HackerNewsSource",
    "NewsSource",
    "is_ai_related",
]
