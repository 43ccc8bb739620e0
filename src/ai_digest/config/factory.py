"""Factory functions to create components from configuration."""

from dataclasses import dataclass
from pathlib import Path

from ai_digest.acquirer.base import DigestAcquirer
from ai_digest.acquirer.claude_search import ClaudeSearchAcquirer
from ai_digest.acquirer.composable import ComposableAcquirer
from ai_digest.ask import AskHandler
from ai_digest.config.models import (
    AskConfig,
    ClaudeSearchAcquirerConfig,
    ClaudeSummarizerConfig,
    ComposableAcquirerConfig,
    DigestConfig,
    HackerNewsSourceConfig,
    MongoStoreConfig,
    RetryConfig,
    SQLiteStoreConfig,
)
from ai_digest.run_logger import RunLogger
from ai_digest.service import DigestService
from ai_digest.sources.base import NewsSource
from ai_digest.sources.hacker_news import HackerNewsSource
from ai_digest.store.base import DigestStore
from ai_digest.store.mongo import MongoDigestStore
from ai_digest.store.sqlite import SQLiteDigestStore
from ai_digest.summarizer.base import Summarizer
from ai_digest.summarizer.claude import ClaudeSummarizer


@dataclass
class Components:
    """Everything the server needs, built from one config."""

    service: DigestService
    ask_handler: AskHandler
    store: DigestStore
    run_logger: RunLogger | None = None


def create_source(config: HackerNewsSourceConfig) -> NewsSource:
    """Create a news source from config."""
    if isinstance(config, HackerNewsSourceConfig):
        return HackerNewsSource(
            min_score=config.min_score,
            history_min_score=config.history_min_score,
            max_candidates=config.max_candidates,
            max_ids=config.max_ids,
            concurrency=config.concurrency,
        )
    msg = f"Unknown source config type: {type(config)}"
    raise ValueError(msg)


def create_summarizer(
    config: ClaudeSummarizerConfig,
    retry: RetryConfig | None = None,
) -> Summarizer:
    """Create a summarizer from config."""
    retry = retry or RetryConfig()
    if isinstance(config, ClaudeSummarizerConfig):
        return ClaudeSummarizer(
            model=config.model,
            strategy=config.strategy,
            min_stories=config.min_stories,
            max_stories=config.max_stories,
            max_retries=retry.max_retries,
            retry_base_delay=retry.base_delay,
        )
    msg = f"Unknown summarizer config type: {type(config)}"
    raise ValueError(msg)


def create_acquirer(
    config: ComposableAcquirerConfig | ClaudeSearchAcquirerConfig,
    retry: RetryConfig | None = None,
    run_logger: RunLogger | None = None,
) -> DigestAcquirer:
    """Create an acquirer from config."""
    retry = retry or RetryConfig()
    if isinstance(config, ComposableAcquirerConfig):
        return ComposableAcquirer(
            source=create_source(config.source),
            summarizer=create_summarizer(config.summarizer, retry),
            run_logger=run_logger,
        )
    if isinstance(config, ClaudeSearchAcquirerConfig):
        return ClaudeSearchAcquirer(
            model=config.model,
            min_stories=config.min_stories,
            max_stories=config.max_stories,
            max_searches=config.max_searches,
            max_retries=retry.max_retries,
            retry_base_delay=retry.base_delay,
            run_logger=run_logger,
        )
    msg = f"Unknown acquirer config type: {type(config)}"
    raise ValueError(msg)


def create_store(config: MongoStoreConfig | SQLiteStoreConfig) -> DigestStore:
    """Create a digest store from config."""
    if isinstance(config, MongoStoreConfig):
        return MongoDigestStore(
            database=config.database,
            collection=config.collection,
            timeout_ms=config.timeout_ms,
        )
    if isinstance(config, SQLiteStoreConfig):
        return SQLiteDigestStore(config.path)
    msg = f"Unknown store config type: {type(config)}"
    raise ValueError(msg)


def create_ask_handler(config: AskConfig) -> AskHandler:
    """Create the follow-up question handler from config."""
    return AskHandler(model=config.model, max_tokens=config.max_tokens)


def create_from_config(
    config: DigestConfig,
    *,
    log_override: bool | None = None,
    log_dir_override: str | None = None,
) -> Components:
    """Create the service, ask handler and store from root config.

    Args:
        config: Root configuration.
        log_override: Override the config's logging.enabled setting.
        log_dir_override: Override the config's logging.log_dir setting.

    Returns:
        Components; run_logger is None if run logging is disabled.
    """
    log_enabled = log_override if log_override is not None else config.logging.enabled
    log_dir = Path(log_dir_override if log_dir_override is not None else config.logging.log_dir)

    run_logger: RunLogger | None = None
    if log_enabled:
        run_logger = RunLogger(log_dir=log_dir, enabled=True)

    store = create_store(config.store)
    acquirer = create_acquirer(config.acquirer, config.retry, run_logger=run_logger)
    service = DigestService(
        store,
        acquirer,
        history_policy=config.server.history_policy,
    )
    return Components(
        service=service,
        ask_handler=create_ask_handler(config.ask),
        store=store,
        run_logger=run_logger,
    )
