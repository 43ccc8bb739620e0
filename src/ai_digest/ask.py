"""Follow-up questions about a story, answered by a streamed Claude reply."""

import logging
import os
from collections.abc import AsyncIterator

import anthropic
from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "Answer follow-up questions about a news story. Be concise (2-4 sentences), "
    "conversational, direct. No markdown, no bullets, no lists: this will be read aloud."
)


class QAPair(BaseModel):
    """A prior question and answer about the same story."""

    q: str
    a: str


class AskRequest(BaseModel):
    """Body of ``POST /ask``. The client supplies the whole conversation."""

    question: str = Field(min_length=1, max_length=2000)
    headline: str
    summary: str
    prior_qa: list[QAPair] = Field(default_factory=list, alias="priorQA")

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)


def build_prompt(request: AskRequest) -> str:
    """Story context, prior Q&A, then the new question."""
    context = f'Story: "{request.headline}"\n{request.summary}'
    if request.prior_qa:
        prev = "\n\n".join(f"Q: {p.q}\nA: {p.a}" for p in request.prior_qa)
        context += f"\n\nPrior Q&A:\n{prev}"
    return f"{context}\n\nQuestion: {request.question}"


class AskHandler:
    """Stream answers to follow-up questions using Claude.

    Nothing is persisted: every request carries its own prior Q&A.

    Args:
        model: Anthropic model to use.
        api_key: API key (defaults to ANTHROPIC_API_KEY env var).
        max_tokens: Answer length cap.
    """

    def __init__(
        self,
        model: str = "claude-sonnet-4-5-20250929",
        api_key: str | None = None,
        *,
        max_tokens: int = 400,
    ) -> None:
        resolved_key = api_key or os.environ.get("ANTHROPIC_API_KEY")
        self._client = anthropic.AsyncAnthropic(api_key=resolved_key)
        self._model = model
        self._max_tokens = max_tokens

    async def stream_answer(self, request: AskRequest) -> AsyncIterator[str]:
        """Yield answer text chunks as the model produces them.

        A provider failure ends the stream; text already yielded stays
        delivered and the caller sees a short or empty answer.
        """
        try:
            async with self._client.messages.stream(
                model=self._model,
                max_tokens=self._max_tokens,
                system=SYSTEM_PROMPT,
                messages=[{"role": "user", "content": build_prompt(request)}],
            ) as stream:
                async for text in stream.text_stream:
                    yield text
        except anthropic.APIError:
            logger.exception("Answer stream failed for %r", request.headline)
