"""Data models for AI Digest."""

from ai_digest.data.models import (
    APICallUsage,
    CandidateStory,
    Digest,
    QAItem,
    Story,
    StoryTag,
    Usage,
)

__all__ = [
    "APICallUsage",
    "CandidateStory",
    "Digest",
    "QAItem",
    "Story",
    "StoryTag",
    "Usage",
]
