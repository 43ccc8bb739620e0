"""Exception hierarchy for digest requests.

Every error is terminal for the request that raised it. ``status_code`` is
the HTTP status the API layer responds with.
"""


class DigestError(Exception):
    """Base class for all AI Digest errors."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_body(self) -> dict[str, str]:
        return {"error": self.message}


class AuthError(DigestError):
    """Missing or mismatched shared secret."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class InvalidDateError(DigestError):
    """Date key is not a canonical date string, or lies in the future."""

    status_code = 400


class NotFoundError(DigestError):
    """No digest exists for a past date and none will be fabricated."""

    status_code = 404


class RateLimitError(DigestError):
    """Provider kept rate limiting after all retries."""

    status_code = 429


class UpstreamParseError(DigestError):
    """Model output could not be turned into a story list."""

    status_code = 502

    def __init__(self, message: str, raw: str = "") -> None:
        super().__init__(message)
        self.raw = raw[:500]

    def to_body(self) -> dict[str, str]:
        body = super().to_body()
        if self.raw:
            body["raw"] = self.raw
        return body


class EmptyResultError(DigestError):
    """Pipeline produced a syntactically valid but empty story list."""

    status_code = 502


class StoreError(DigestError):
    """Digest store connection or query failure."""

    status_code = 500
