"""Pydantic configuration models for AI Digest components."""

from typing import Annotated, Literal

from pydantic import BaseModel, Field

from ai_digest.service import HistoryPolicy
from ai_digest.summarizer.claude import SummaryStrategy

# ============================================================
# Source Configs
# ============================================================


class HackerNewsSourceConfig(BaseModel):
    """Configuration for HackerNewsSource."""

    type: Literal["hacker_news"] = "hacker_news"
    min_score: int = 50
    history_min_score: int = 10
    max_candidates: int = 12
    max_ids: int = 120
    concurrency: int = 10

    model_config = {"frozen": True}


# ============================================================
# Summarizer Configs
# ============================================================


class ClaudeSummarizerConfig(BaseModel):
    """Configuration for ClaudeSummarizer."""

    type: Literal["claude"] = "claude"
    model: str = "claude-haiku-4-5-20251001"
    strategy: SummaryStrategy = SummaryStrategy.SELECT
    min_stories: int = 6
    max_stories: int = 12

    model_config = {"frozen": True}


# ============================================================
# Acquirer Configs
# ============================================================


class ComposableAcquirerConfig(BaseModel):
    """Configuration for the source + summarizer acquirer."""

    type: Literal["composable"] = "composable"
    source: HackerNewsSourceConfig = Field(default_factory=HackerNewsSourceConfig)
    summarizer: ClaudeSummarizerConfig = Field(default_factory=ClaudeSummarizerConfig)

    model_config = {"frozen": True}


class ClaudeSearchAcquirerConfig(BaseModel):
    """Configuration for the single-call Claude web search acquirer."""

    type: Literal["claude_search"] = "claude_search"
    model: str = "claude-haiku-4-5-20251001"
    min_stories: int = 6
    max_stories: int = 12
    max_searches: int = 5

    model_config = {"frozen": True}


AcquirerConfig = Annotated[
    ComposableAcquirerConfig | ClaudeSearchAcquirerConfig,
    Field(discriminator="type"),
]


# ============================================================
# Store Configs
# ============================================================


class MongoStoreConfig(BaseModel):
    """Configuration for MongoDigestStore. The URI comes from MONGODB_URI."""

    type: Literal["mongo"] = "mongo"
    database: str = "ai-digest"
    collection: str = "digests"
    timeout_ms: int = 10_000

    model_config = {"frozen": True}


class SQLiteStoreConfig(BaseModel):
    """Configuration for SQLiteDigestStore."""

    type: Literal["sqlite"] = "sqlite"
    path: str = "data/digests.db"

    model_config = {"frozen": True}


StoreConfig = Annotated[
    MongoStoreConfig | SQLiteStoreConfig,
    Field(discriminator="type"),
]


# ============================================================
# Ask, Retry, Server and Logging Configs
# ============================================================


class AskConfig(BaseModel):
    """Configuration for the follow-up question handler."""

    model: str = "claude-sonnet-4-5-20250929"
    max_tokens: int = 400

    model_config = {"frozen": True}


class RetryConfig(BaseModel):
    """Backoff on provider rate limits."""

    max_retries: int = Field(default=3, ge=1)
    base_delay: float = Field(default=10.0, ge=0.0)

    model_config = {"frozen": True}


class ServerConfig(BaseModel):
    """HTTP server settings. The shared secret comes from ``secret_env``."""

    host: str = "127.0.0.1"
    port: int = 8000
    secret_env: str = "DIGEST_SECRET"
    history_policy: HistoryPolicy = HistoryPolicy.FAIL_CLOSED
    cors_origins: list[str] = Field(default_factory=list)

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Log level and optional per-acquisition JSON logs."""

    level: str = "INFO"
    enabled: bool = False
    log_dir: str = "logs"

    model_config = {"frozen": True}


# ============================================================
# Root Config
# ============================================================


class DigestConfig(BaseModel):
    """Root configuration for AI Digest."""

    acquirer: ComposableAcquirerConfig | ClaudeSearchAcquirerConfig = Field(
        default_factory=ComposableAcquirerConfig, discriminator="type"
    )
    store: MongoStoreConfig | SQLiteStoreConfig = Field(
        default_factory=SQLiteStoreConfig, discriminator="type"
    )
    ask: AskConfig = Field(default_factory=AskConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}
