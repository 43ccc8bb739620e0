"""Turning raw model text into validated stories.

The content is read aloud, so summaries are stripped of citation tags and
markup before they are stored.
"""

import json
import logging
import re
from typing import Any

from ai_digest.data import Story, StoryTag
from ai_digest.errors import EmptyResultError, UpstreamParseError

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\s*", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")
_CITATION_RE = re.compile(r"\[\d+(?:,\s*\d+)*\]")
_MARKDOWN_LINK_RE = re.compile(r"\[([^\]]+)\]\([^)]*\)")
_EMPHASIS_RE = re.compile(r"(\*\*|__|\*|`)")
_LINE_MARKER_RE = re.compile(r"^\s*(?:#{1,6}|[-*•]|\d+\.)\s+", re.MULTILINE)
_WHITESPACE_RE = re.compile(r"\s+")


def extract_json_array(text: str) -> list[Any]:
    """Extract the JSON array embedded in a model response.

    Markdown code fences are removed, then the substring from the first
    ``[`` to the last ``]`` is parsed strictly.

    Raises:
        UpstreamParseError: If no array can be found or parsed.
        EmptyResultError: If the array is empty.
    """
    stripped = _FENCE_RE.sub("", text)
    start = stripped.find("[")
    end = stripped.rfind("]")
    if start == -1 or end <= start:
        raise UpstreamParseError("Could not parse news response", raw=text)

    try:
        parsed = json.loads(stripped[start : end + 1])
    except json.JSONDecodeError:
        raise UpstreamParseError("Could not parse news response", raw=text) from None

    if not isinstance(parsed, list):
        raise UpstreamParseError("News response is not a JSON array", raw=text)
    if not parsed:
        raise EmptyResultError("Empty or invalid stories array")
    return parsed


def clean_summary(text: str) -> str:
    """Strip citation tags, HTML and markdown so the text reads aloud cleanly."""
    cleaned = _TAG_RE.sub("", text)
    cleaned = _MARKDOWN_LINK_RE.sub(r"\1", cleaned)
    cleaned = _CITATION_RE.sub("", cleaned)
    cleaned = _LINE_MARKER_RE.sub("", cleaned)
    cleaned = _EMPHASIS_RE.sub("", cleaned)
    cleaned = _WHITESPACE_RE.sub(" ", cleaned).strip()
    # Removing a citation can leave "word ." behind
    return re.sub(r"\s+([.,;:!?])", r"\1", cleaned)


def parse_story(raw: Any) -> Story | None:
    """Validate a single story object from the model.

    Returns None (and logs a warning) for items that fail validation,
    including any tag outside the fixed category set.
    """
    if not isinstance(raw, dict):
        logger.warning("Rejected story: expected an object, got %s", type(raw).__name__)
        return None

    headline = clean_summary(str(raw.get("headline") or ""))
    summary = clean_summary(str(raw.get("summary") or ""))
    if not headline or not summary:
        logger.warning("Rejected story with empty headline or summary: %r", raw)
        return None

    tag_str = str(raw.get("tag") or "").strip()
    try:
        tag = StoryTag(tag_str)
    except ValueError:
        logger.warning("Rejected story %r: unknown tag %r", headline, tag_str)
        return None

    raw_url = raw.get("url")
    url = raw_url.strip() if isinstance(raw_url, str) and raw_url.strip() else None

    return Story(headline=headline, tag=tag, summary=summary, url=url)


def parse_stories(items: list[Any]) -> list[Story]:
    """Validate every item, dropping rejected ones.

    Raises:
        EmptyResultError: If no item survives validation.
    """
    stories = [story for item in items if (story := parse_story(item)) is not None]
    if not stories:
        raise EmptyResultError("No valid stories in model response")
    return stories


def response_text(response: Any) -> str:
    """Join the text blocks of an Anthropic ``Message``."""
    return "".join(block.text for block in response.content if getattr(block, "type", "") == "text")
