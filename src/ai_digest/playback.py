"""Listening client state machine.

The whole player is one tagged-union state and one pure function,
``transition(state, event) -> (state, effects)``. Effects describe the I/O
the caller performs (speech, network, timers); their results come back as
events. Every ``Speak`` gets a fresh utterance id and every question a
fresh request id, so completions that belong to superseded work are
recognised and ignored.
"""

from dataclasses import dataclass, replace
from enum import StrEnum

from ai_digest.data import QAItem, Story

ADVANCE_DELAY = 0.7
ANSWER_FAILED_TEXT = "Something went wrong. Try again."
NO_STORIES_TEXT = "No stories returned"

# ============================================================
# States
# ============================================================


@dataclass(frozen=True)
class Loading:
    date: str
    seq: int = 0


@dataclass(frozen=True)
class Paused:
    """Stopped on a story. ``suspended_utterance`` is set when speech was
    paused mid-story and can be resumed."""

    stories: tuple[Story, ...]
    index: int = 0
    suspended_utterance: int | None = None
    seq: int = 0

    @property
    def speech_suspended(self) -> bool:
        return self.suspended_utterance is not None


@dataclass(frozen=True)
class Playing:
    """Reading a story. ``settling`` is set once its utterance has completed
    and the advance to the next story is pending."""

    stories: tuple[Story, ...]
    index: int
    utterance: int
    settling: bool = False
    seq: int = 0


@dataclass(frozen=True)
class Answering:
    """A follow-up question is in flight or its answer is being spoken.

    ``utterance`` is None while the answer streams in and set once the
    answer is being read aloud.
    """

    stories: tuple[Story, ...]
    index: int
    resume_playing: bool
    question: str
    request: int
    partial: str = ""
    utterance: int | None = None
    seq: int = 0


@dataclass(frozen=True)
class Done:
    stories: tuple[Story, ...]
    index: int
    seq: int = 0


@dataclass(frozen=True)
class Error:
    date: str
    message: str
    seq: int = 0


PlaybackState = Loading | Paused | Playing | Answering | Done | Error


# ============================================================
# Events
# ============================================================


class SpeechOutcome(StrEnum):
    """How an utterance ended. CANCELLED is always self-induced."""

    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass(frozen=True)
class DigestLoaded:
    date: str
    stories: tuple[Story, ...]


@dataclass(frozen=True)
class DigestFailed:
    date: str
    message: str


@dataclass(frozen=True)
class TogglePlay:
    pass


@dataclass(frozen=True)
class Next:
    pass


@dataclass(frozen=True)
class Previous:
    pass


@dataclass(frozen=True)
class JumpTo:
    index: int


@dataclass(frozen=True)
class SpeechFinished:
    utterance: int
    outcome: SpeechOutcome


@dataclass(frozen=True)
class AdvanceDue:
    utterance: int


@dataclass(frozen=True)
class QuestionAsked:
    text: str


@dataclass(frozen=True)
class AnswerChunk:
    request: int
    text: str


@dataclass(frozen=True)
class AnswerFinished:
    request: int


@dataclass(frozen=True)
class AnswerFailed:
    request: int


@dataclass(frozen=True)
class ChangeDate:
    date: str


@dataclass(frozen=True)
class Retry:
    pass


PlaybackEvent = (
    DigestLoaded
    | DigestFailed
    | TogglePlay
    | Next
    | Previous
    | JumpTo
    | SpeechFinished
    | AdvanceDue
    | QuestionAsked
    | AnswerChunk
    | AnswerFinished
    | AnswerFailed
    | ChangeDate
    | Retry
)


# ============================================================
# Effects
# ============================================================


@dataclass(frozen=True)
class FetchDigest:
    date: str


@dataclass(frozen=True)
class Speak:
    utterance: int
    text: str


@dataclass(frozen=True)
class CancelSpeech:
    pass


@dataclass(frozen=True)
class PauseSpeech:
    pass


@dataclass(frozen=True)
class ResumeSpeech:
    pass


@dataclass(frozen=True)
class ScheduleAdvance:
    utterance: int
    delay: float = ADVANCE_DELAY


@dataclass(frozen=True)
class SendQuestion:
    """Ask about ``story``; the performer attaches that story's prior Q&A."""

    request: int
    index: int
    story: Story
    question: str


@dataclass(frozen=True)
class RecordAnswer:
    index: int
    item: QAItem


Effect = (
    FetchDigest
    | Speak
    | CancelSpeech
    | PauseSpeech
    | ResumeSpeech
    | ScheduleAdvance
    | SendQuestion
    | RecordAnswer
)

Transition = tuple[PlaybackState, list[Effect]]


def story_text(stories: tuple[Story, ...], index: int) -> str:
    """What is read aloud for a story."""
    story = stories[index]
    return f"Story {index + 1}. {story.headline}. {story.summary}"


def _play(stories: tuple[Story, ...], index: int, seq: int) -> Transition:
    utterance = seq + 1
    state = Playing(stories=stories, index=index, utterance=utterance, seq=utterance)
    return (state, [Speak(utterance, story_text(stories, index))])


def _navigate(
    state: Paused | Playing | Answering | Done,
    event: Next | Previous | JumpTo,
) -> Transition:
    if isinstance(event, Next):
        target = state.index + 1
    elif isinstance(event, Previous):
        target = state.index - 1
    else:
        target = event.index
    target = max(0, min(target, len(state.stories) - 1))
    new_state, effects = _play(state.stories, target, state.seq)
    return (new_state, [CancelSpeech(), *effects])


def _after_answer(state: Answering) -> Transition:
    if state.resume_playing:
        return _play(state.stories, state.index, state.seq)
    return (Paused(stories=state.stories, index=state.index, seq=state.seq), [])


def transition(state: PlaybackState, event: PlaybackEvent) -> Transition:
    """Apply one event. Events not valid for the state change nothing."""
    unchanged: Transition = (state, [])

    # Date changes and retries work from anywhere they make sense
    if isinstance(event, ChangeDate):
        return (Loading(date=event.date, seq=state.seq), [CancelSpeech(), FetchDigest(event.date)])
    if isinstance(event, Retry):
        if isinstance(state, Error):
            return (Loading(date=state.date, seq=state.seq), [FetchDigest(state.date)])
        return unchanged

    if isinstance(state, Loading):
        if isinstance(event, DigestLoaded) and event.date == state.date:
            if not event.stories:
                return (Error(date=state.date, message=NO_STORIES_TEXT, seq=state.seq), [])
            return (Paused(stories=event.stories, index=0, seq=state.seq), [])
        if isinstance(event, DigestFailed) and event.date == state.date:
            return (Error(date=state.date, message=event.message, seq=state.seq), [])
        return unchanged

    if isinstance(state, Error):
        return unchanged

    if isinstance(event, Next | Previous | JumpTo):
        return _navigate(state, event)

    if isinstance(event, QuestionAsked):
        question = event.text.strip()
        if not question or isinstance(state, Answering):
            return unchanged
        request = state.seq + 1
        answering = Answering(
            stories=state.stories,
            index=state.index,
            resume_playing=isinstance(state, Playing),
            question=question,
            request=request,
            seq=request,
        )
        story = state.stories[state.index]
        return (answering, [CancelSpeech(), SendQuestion(request, state.index, story, question)])

    if isinstance(state, Paused):
        return _paused(state, event)
    if isinstance(state, Playing):
        return _playing(state, event)
    if isinstance(state, Answering):
        return _answering(state, event)
    if isinstance(state, Done) and isinstance(event, TogglePlay):
        return _play(state.stories, 0, state.seq)
    return unchanged


def _paused(state: Paused, event: PlaybackEvent) -> Transition:
    if isinstance(event, TogglePlay):
        if state.suspended_utterance is not None:
            playing = Playing(
                stories=state.stories,
                index=state.index,
                utterance=state.suspended_utterance,
                seq=state.seq,
            )
            return (playing, [ResumeSpeech()])
        return _play(state.stories, state.index, state.seq)
    if (
        isinstance(event, SpeechFinished)
        and event.outcome is not SpeechOutcome.CANCELLED
        and event.utterance == state.suspended_utterance
    ):
        # The paused utterance ended on its own; the next play starts fresh
        return (replace(state, suspended_utterance=None), [])
    return (state, [])


def _playing(state: Playing, event: PlaybackEvent) -> Transition:
    if isinstance(event, TogglePlay):
        if state.settling:
            # Nothing is speaking; the next play re-reads the current story
            return (Paused(stories=state.stories, index=state.index, seq=state.seq), [])
        paused = Paused(
            stories=state.stories,
            index=state.index,
            suspended_utterance=state.utterance,
            seq=state.seq,
        )
        return (paused, [PauseSpeech()])
    if (
        isinstance(event, SpeechFinished)
        and event.utterance == state.utterance
        and not state.settling
    ):
        if event.outcome is SpeechOutcome.COMPLETED:
            return (replace(state, settling=True), [ScheduleAdvance(state.utterance)])
        if event.outcome is SpeechOutcome.FAILED:
            return (Paused(stories=state.stories, index=state.index, seq=state.seq), [])
    if isinstance(event, AdvanceDue) and state.settling and event.utterance == state.utterance:
        if state.index + 1 < len(state.stories):
            return _play(state.stories, state.index + 1, state.seq)
        return (Done(stories=state.stories, index=state.index, seq=state.seq), [])
    return (state, [])


def _answering(state: Answering, event: PlaybackEvent) -> Transition:
    streaming = state.utterance is None
    if isinstance(event, AnswerChunk) and streaming and event.request == state.request:
        return (replace(state, partial=state.partial + event.text), [])
    if isinstance(event, AnswerFinished) and streaming and event.request == state.request:
        answer = state.partial.strip()
        if not answer:
            return _answer_failed(state)
        utterance = state.seq + 1
        speaking = replace(state, partial=answer, utterance=utterance, seq=utterance)
        record = RecordAnswer(state.index, QAItem(q=state.question, a=answer))
        return (speaking, [record, Speak(utterance, answer)])
    if isinstance(event, AnswerFailed) and streaming and event.request == state.request:
        return _answer_failed(state)
    if (
        isinstance(event, SpeechFinished)
        and not streaming
        and event.utterance == state.utterance
        and event.outcome is not SpeechOutcome.CANCELLED
    ):
        return _after_answer(state)
    return (state, [])


def _answer_failed(state: Answering) -> Transition:
    record = RecordAnswer(state.index, QAItem(q=state.question, a=ANSWER_FAILED_TEXT))
    return (Paused(stories=state.stories, index=state.index, seq=state.seq), [record])
