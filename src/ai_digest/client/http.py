"""HTTP client for the digest service."""

import logging
import os
from collections.abc import AsyncIterator
from typing import Any

import httpx

from ai_digest.ask import AskRequest
from ai_digest.auth import SECRET_HEADER
from ai_digest.data import Story
from ai_digest.dates import TODAY
from ai_digest.errors import (
    AuthError,
    DigestError,
    EmptyResultError,
    InvalidDateError,
    NotFoundError,
    RateLimitError,
    UpstreamParseError,
)

logger = logging.getLogger(__name__)

_ERRORS_BY_STATUS: dict[int, type[DigestError]] = {
    400: InvalidDateError,
    401: AuthError,
    404: NotFoundError,
    429: RateLimitError,
    502: EmptyResultError,
}


def error_from_response(status_code: int, body: Any) -> DigestError:
    """Rebuild the server's error from an ``{error, raw?}`` response body."""
    message = body.get("error") if isinstance(body, dict) else None
    message = message or f"Server error {status_code}"
    if status_code == 502 and isinstance(body, dict) and body.get("raw"):
        return UpstreamParseError(message, raw=body["raw"])
    error_cls = _ERRORS_BY_STATUS.get(status_code, DigestError)
    return error_cls(message)


class DigestClient:
    """Talk to a running AI Digest server.

    Args:
        base_url: Server root, e.g. ``http://127.0.0.1:8000``.
        secret: Shared secret (defaults to DIGEST_SECRET env var).
        timeout: Request timeout in seconds. A cold digest request runs a
            full acquisition, so keep this generous.
        transport: Optional httpx transport, used by tests.
    """

    def __init__(
        self,
        base_url: str,
        secret: str | None = None,
        *,
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._secret = secret if secret is not None else os.environ.get("DIGEST_SECRET", "")
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={SECRET_HEADER: self._secret},
            timeout=timeout,
            transport=transport,
        )

    async def get_digest(self, date_key: str = TODAY) -> list[Story]:
        """Fetch the stories for a date key.

        Raises:
            DigestError: The server's error, rebuilt from its response.
            httpx.HTTPError: On transport failure.
        """
        response = await self._client.post("/digest", json={"date": date_key})
        body = _json_or_none(response)
        if response.status_code != 200:
            raise error_from_response(response.status_code, body)
        if not isinstance(body, list):
            raise UpstreamParseError("Digest response is not a JSON array", raw=response.text)
        logger.debug("Digest for %s (%s)", date_key, response.headers.get("X-Cache", "?"))
        return [Story.from_dict(item) for item in body]

    async def list_dates(self) -> list[str]:
        """Stored date keys, newest first."""
        response = await self._client.get("/dates")
        body = _json_or_none(response)
        if response.status_code != 200:
            raise error_from_response(response.status_code, body)
        return list(body)

    async def ask(self, request: AskRequest) -> AsyncIterator[str]:
        """Yield answer text as the server streams it."""
        payload = request.model_dump(by_alias=True)
        async with self._client.stream("POST", "/ask", json=payload) as response:
            if response.status_code != 200:
                await response.aread()
                raise error_from_response(response.status_code, _json_or_none(response))
            async for chunk in response.aiter_text():
                if chunk:
                    yield chunk

    async def close(self) -> None:
        await self._client.aclose()


def _json_or_none(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None
