"""HTTP surface for AI Digest."""

from ai_digest.api.app import DigestRequest, create_app, require_secret

__all__ = [
    "DigestRequest",
    "create_app",
    "require_secret",
]
