"""Drive the playback state machine against real I/O."""

import asyncio
import logging
from collections import deque
from collections.abc import Callable, Coroutine
from typing import Any

import httpx

from ai_digest.ask import AskRequest, QAPair
from ai_digest.client.http import DigestClient
from ai_digest.client.speech import SpeechEngine
from ai_digest.data import QAItem
from ai_digest.dates import TODAY
from ai_digest.errors import DigestError
from ai_digest.playback import (
    AdvanceDue,
    AnswerChunk,
    AnswerFailed,
    AnswerFinished,
    CancelSpeech,
    ChangeDate,
    DigestFailed,
    DigestLoaded,
    Effect,
    FetchDigest,
    Loading,
    PauseSpeech,
    PlaybackEvent,
    PlaybackState,
    RecordAnswer,
    ResumeSpeech,
    ScheduleAdvance,
    SendQuestion,
    Speak,
    SpeechFinished,
    SpeechOutcome,
    transition,
)

logger = logging.getLogger(__name__)


class PlaybackController:
    """Own the playback state, feed it events and perform its effects.

    Events raised while effects are being performed are queued and applied
    in order, so ``transition`` always sees one event at a time. Q&A history
    is kept per story index and cleared whenever a digest is fetched.

    Args:
        client: Digest service client.
        speech: Speech engine.
        on_state: Called with the new state after every event.
    """

    def __init__(
        self,
        client: DigestClient,
        speech: SpeechEngine,
        *,
        on_state: Callable[[PlaybackState], None] | None = None,
    ) -> None:
        self._client = client
        self._speech = speech
        self._on_state = on_state
        self._state: PlaybackState = Loading(date=TODAY)
        self._qa: dict[int, list[QAItem]] = {}
        self._pending: deque[PlaybackEvent] = deque()
        self._dispatching = False
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def state(self) -> PlaybackState:
        return self._state

    def qa_history(self, index: int) -> list[QAItem]:
        """Questions and answers so far for the story at ``index``."""
        return list(self._qa.get(index, []))

    def start(self, date_key: str = TODAY) -> None:
        self.dispatch(ChangeDate(date_key))

    def dispatch(self, event: PlaybackEvent) -> None:
        self._pending.append(event)
        if self._dispatching:
            return
        self._dispatching = True
        try:
            while self._pending:
                current = self._pending.popleft()
                self._state, effects = transition(self._state, current)
                for effect in effects:
                    self._perform(effect)
                if self._on_state:
                    self._on_state(self._state)
        finally:
            self._dispatching = False

    async def wait_idle(self) -> None:
        """Wait for in-flight fetches and questions to settle."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        self._speech.cancel()
        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _perform(self, effect: Effect) -> None:
        if isinstance(effect, FetchDigest):
            self._qa.clear()
            self._spawn(self._fetch(effect.date))
        elif isinstance(effect, Speak):
            self._speech.speak(effect.utterance, effect.text, self._speech_finished)
        elif isinstance(effect, CancelSpeech):
            self._speech.cancel()
        elif isinstance(effect, PauseSpeech):
            self._speech.pause()
        elif isinstance(effect, ResumeSpeech):
            self._speech.resume()
        elif isinstance(effect, ScheduleAdvance):
            asyncio.get_running_loop().call_later(
                effect.delay, self.dispatch, AdvanceDue(effect.utterance)
            )
        elif isinstance(effect, SendQuestion):
            self._spawn(self._ask(effect))
        elif isinstance(effect, RecordAnswer):
            self._qa.setdefault(effect.index, []).append(effect.item)

    def _speech_finished(self, utterance: int, outcome: SpeechOutcome) -> None:
        self.dispatch(SpeechFinished(utterance, outcome))

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _fetch(self, date_key: str) -> None:
        try:
            stories = await self._client.get_digest(date_key)
        except (DigestError, httpx.HTTPError, KeyError, ValueError) as e:
            logger.warning("Digest fetch for %s failed: %s", date_key, e)
            self.dispatch(DigestFailed(date_key, str(e) or type(e).__name__))
            return
        self.dispatch(DigestLoaded(date_key, tuple(stories)))

    async def _ask(self, effect: SendQuestion) -> None:
        request = AskRequest(
            question=effect.question,
            headline=effect.story.headline,
            summary=effect.story.summary,
            prior_qa=[QAPair(q=item.q, a=item.a) for item in self._qa.get(effect.index, [])],
        )
        try:
            async for chunk in self._client.ask(request):
                self.dispatch(AnswerChunk(effect.request, chunk))
        except (DigestError, httpx.HTTPError) as e:
            logger.warning("Question failed: %s", e)
            self.dispatch(AnswerFailed(effect.request))
            return
        self.dispatch(AnswerFinished(effect.request))
