"""FastAPI application serving digests, stored dates and streamed answers."""

import logging
import os
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Header, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel

from ai_digest.ask import AskHandler, AskRequest
from ai_digest.auth import SECRET_HEADER, secret_matches
from ai_digest.config import Components, DigestConfig, create_from_config
from ai_digest.errors import AuthError, DigestError
from ai_digest.service import DigestService

logger = logging.getLogger(__name__)


class DigestRequest(BaseModel):
    """Body of ``POST /digest``; a missing date means today."""

    date: str | None = None


def require_secret(
    request: Request,
    x_digest_secret: str | None = Header(default=None),
) -> None:
    """Reject the request unless the shared secret header matches.

    An unset server secret rejects every request.
    """
    if not secret_matches(x_digest_secret, request.app.state.secret):
        raise AuthError()


def get_service(request: Request) -> DigestService:
    return request.app.state.components.service


def get_ask_handler(request: Request) -> AskHandler:
    return request.app.state.components.ask_handler


def create_app(
    config: DigestConfig | None = None,
    *,
    components: Components | None = None,
    secret: str | None = None,
) -> FastAPI:
    """Build the HTTP application.

    Args:
        config: Root configuration (defaults are used when omitted).
        components: Prebuilt components; built from ``config`` at startup
            when omitted.
        secret: Shared secret; read from the configured env var when omitted.

    Returns:
        The FastAPI app. The store is closed on shutdown.
    """
    config = config or DigestConfig()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if app.state.components is None:
            app.state.components = create_from_config(config)
        if not app.state.secret:
            logger.warning(
                "%s is not set; every request will be rejected", config.server.secret_env
            )
        try:
            yield
        finally:
            await app.state.components.store.close()

    app = FastAPI(
        title="AI Digest",
        description="Daily AI news digest with streamed follow-up answers",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.components = components
    app.state.secret = secret if secret is not None else os.environ.get(config.server.secret_env)

    if config.server.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.server.cors_origins,
            allow_methods=["GET", "POST"],
            allow_headers=["content-type", SECRET_HEADER],
            expose_headers=["X-Cache"],
        )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log method, path, status and duration of every request."""
        start_time = time.monotonic()
        try:
            response = await call_next(request)
        except Exception:
            duration = time.monotonic() - start_time
            logger.exception(
                "%s %s failed after %.3fs", request.method, request.url.path, duration
            )
            raise
        duration = time.monotonic() - start_time
        logger.info(
            "%s %s -> %d (%.3fs)",
            request.method,
            request.url.path,
            response.status_code,
            duration,
        )
        return response

    @app.exception_handler(DigestError)
    async def digest_error_handler(request: Request, exc: DigestError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_body())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        first = exc.errors()[0] if exc.errors() else {}
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"Invalid request: {field} {first.get('msg', '')}".strip()
        return JSONResponse(status_code=400, content={"error": message})

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "healthy"}

    @app.post("/digest", dependencies=[Depends(require_secret)])
    async def get_digest(
        body: DigestRequest | None = None,
        service: DigestService = Depends(get_service),
    ) -> JSONResponse:
        """Return the day's stories, acquiring them on the first request."""
        digest, cache_hit = await service.get_digest(body.date if body else None)
        return JSONResponse(
            content=[story.to_dict() for story in digest.stories],
            headers={"X-Cache": "HIT" if cache_hit else "MISS"},
        )

    @app.get("/dates", dependencies=[Depends(require_secret)])
    async def list_dates(service: DigestService = Depends(get_service)) -> list[str]:
        """Stored date keys, newest first."""
        return await service.list_dates()

    @app.post("/ask", dependencies=[Depends(require_secret)])
    async def ask(
        body: AskRequest,
        handler: AskHandler = Depends(get_ask_handler),
    ) -> StreamingResponse:
        """Stream a plain-text answer to a follow-up question."""
        return StreamingResponse(
            handler.stream_answer(body),
            media_type="text/plain; charset=utf-8",
        )

    return app
