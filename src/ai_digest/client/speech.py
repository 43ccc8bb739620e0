"""Speech engines for the listening client."""

import asyncio
import time
from collections.abc import Callable
from typing import Protocol

from ai_digest.playback import SpeechOutcome

SpeechCallback = Callable[[int, SpeechOutcome], None]


class SpeechEngine(Protocol):
    """Reads text aloud and reports how each utterance ended.

    ``on_finished`` is called exactly once per utterance, never from inside
    ``speak`` or ``cancel`` themselves.
    """

    def speak(self, utterance: int, text: str, on_finished: SpeechCallback) -> None:
        """Start speaking, replacing any current utterance."""
        ...

    def cancel(self) -> None:
        """Stop the current utterance; it reports CANCELLED."""
        ...

    def pause(self) -> None: ...

    def resume(self) -> None: ...


class ConsoleSpeechEngine:
    """Print text instead of speaking it, taking as long as reading it would.

    Args:
        words_per_second: Simulated speaking rate.
        echo: Where text goes (defaults to print).
    """

    def __init__(
        self,
        words_per_second: float = 3.0,
        echo: Callable[[str], None] = print,
    ) -> None:
        self._words_per_second = words_per_second
        self._echo = echo
        self._task: asyncio.Task[None] | None = None
        self._utterance: int | None = None
        self._on_finished: SpeechCallback | None = None
        self._remaining = 0.0
        self._started_at = 0.0

    def speak(self, utterance: int, text: str, on_finished: SpeechCallback) -> None:
        self.cancel()
        self._echo(text)
        self._utterance = utterance
        self._on_finished = on_finished
        self._remaining = len(text.split()) / self._words_per_second
        self._start_timer()

    def cancel(self) -> None:
        if self._utterance is None:
            return
        self._stop_timer()
        self._report(SpeechOutcome.CANCELLED)

    def pause(self) -> None:
        if self._task is None:
            return
        self._remaining = max(0.0, self._remaining - (time.monotonic() - self._started_at))
        self._stop_timer()

    def resume(self) -> None:
        if self._utterance is not None and self._task is None:
            self._start_timer()

    def _start_timer(self) -> None:
        self._started_at = time.monotonic()
        self._task = asyncio.get_running_loop().create_task(self._run(self._remaining))

    def _stop_timer(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def _run(self, duration: float) -> None:
        await asyncio.sleep(duration)
        self._task = None
        self._report(SpeechOutcome.COMPLETED)

    def _report(self, outcome: SpeechOutcome) -> None:
        utterance, callback = self._utterance, self._on_finished
        self._utterance = None
        self._on_finished = None
        if utterance is not None and callback is not None:
            asyncio.get_running_loop().call_soon(callback, utterance, outcome)
