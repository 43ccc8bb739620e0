"""Configuration module for AI Digest."""

from ai_digest.config.factory import Components, create_from_config
from ai_digest.config.loader import get_default_config_path, load_config
from ai_digest.config.models import (
    AcquirerConfig,
    AskConfig,
    ClaudeSearchAcquirerConfig,
    ClaudeSummarizerConfig,
    ComposableAcquirerConfig,
    DigestConfig,
    HackerNewsSourceConfig,
    LoggingConfig,
    MongoStoreConfig,
    RetryConfig,
    ServerConfig,
    SQLiteStoreConfig,
    StoreConfig,
)

__all__ = [
    "AcquirerConfig",
    "AskConfig",
    "ClaudeSearchAcquirerConfig",
    "ClaudeSummarizerConfig",
    "Components",
    "ComposableAcquirerConfig",
    "DigestConfig",
    "HackerNewsSourceConfig",
    "LoggingConfig",
    "MongoStoreConfig",
    "RetryConfig",
    "SQLiteStoreConfig",
    "ServerConfig",
    "StoreConfig",
    "create_from_config",
    "get_default_config_path",
    "load_config",
]
