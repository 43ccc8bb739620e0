"""Listening client: service client, speech engines and playback driver."""

from ai_digest.client.controller import PlaybackController
from ai_digest.client.http import DigestClient, error_from_response
from ai_digest.client.speech import ConsoleSpeechEngine, SpeechEngine

__all__ = [
    "ConsoleSpeechEngine",
    "DigestClient",
    "PlaybackController",
    "SpeechEngine",
    "error_from_response",
]
