"""Shared-secret header used between the server and its clients."""

import secrets

SECRET_HEADER = "x-digest-secret"


def secret_matches(given: str | None, expected: str | None) -> bool:
    """Constant-time check of a presented secret. An unset secret never matches."""
    if not expected or not given:
        return False
    return secrets.compare_digest(given.encode(), expected.encode())
