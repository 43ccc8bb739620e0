"""Story summarization module."""

from ai_digest.summarizer.base import Summarizer
from ai_digest.summarizer.claude import ClaudeSummarizer, SummaryStrategy

__all__ = [
    "ClaudeSummarizer",
    "Summarizer",
    "SummaryStrategy",
]
