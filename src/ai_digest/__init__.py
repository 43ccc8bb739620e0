"""AI Digest: a daily AI news briefing, read aloud, with follow-up questions."""

from ai_digest.acquirer.base import DigestAcquirer
from ai_digest.acquirer.claude_search import ClaudeSearchAcquirer
from ai_digest.acquirer.composable import ComposableAcquirer
from ai_digest.ask import AskHandler, AskRequest, QAPair, build_prompt
from ai_digest.config import DigestConfig, create_from_config, load_config
from ai_digest.data import (
    APICallUsage,
    CandidateStory,
    Digest,
    QAItem,
    Story,
    StoryTag,
    Usage,
)
from ai_digest.dates import TODAY, canonical_date, parse_date_key, resolve_date_key
from ai_digest.errors import (
    AuthError,
    DigestError,
    EmptyResultError,
    InvalidDateError,
    NotFoundError,
    RateLimitError,
    StoreError,
    UpstreamParseError,
)
from ai_digest.parsing import clean_summary, extract_json_array, parse_stories
from ai_digest.run_logger import RunLogger
from ai_digest.service import DigestService, HistoryPolicy
from ai_digest.sources.base import NewsSource
from ai_digest.sources.hacker_news import HackerNewsSource
from ai_digest.sources.keywords import AI_KEYWORDS, is_ai_related
from ai_digest.store.base import DigestStore
from ai_digest.store.mongo import MongoDigestStore
from ai_digest.store.sqlite import SQLiteDigestStore
from ai_digest.summarizer.base import Summarizer
from ai_digest.summarizer.claude import ClaudeSummarizer, SummaryStrategy

__all__ = [
    "AI_KEYWORDS",
    "APICallUsage",
    "AskHandler",
    "AskRequest",
    "AuthError",
    "CandidateStory",
    "ClaudeSearchAcquirer",
    "ClaudeSummarizer",
    "ComposableAcquirer",
    "Digest",
    "DigestAcquirer",
    "DigestConfig",
    "DigestError",
    "DigestService",
    "DigestStore",
    "EmptyResultError",
    "HackerNewsSource",
    "HistoryPolicy",
    "InvalidDateError",
    "MongoDigestStore",
    "NewsSource",
    "NotFoundError",
    "QAItem",
    "QAPair",
    "RateLimitError",
    "RunLogger",
    "SQLiteDigestStore",
    "StoreError",
    "Story",
    "StoryTag",
    "Summarizer",
    "SummaryStrategy",
    "TODAY",
    "UpstreamParseError",
    "Usage",
    "build_prompt",
    "canonical_date",
    "clean_summary",
    "create_from_config",
    "extract_json_array",
    "is_ai_related",
    "load_config",
    "parse_date_key",
    "parse_stories",
    "resolve_date_key",
]
