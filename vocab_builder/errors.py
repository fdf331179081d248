"""Error types raised by the word-data layer and the quiz engine."""
from __future__ import annotations


class VocabError(Exception):
    """Base error; its message is shown to the user as-is."""


class FormatError(VocabError):
    """The model response did not match the expected JSON shape."""

    def __init__(self, message: str = "The API returned an unexpected format.", reason: str = ""):
        super().__init__(message)
        self.reason = reason


class NoAudioError(VocabError):
    def __init__(self, message: str = "No audio data returned from API."):
        super().__init__(message)


class InsufficientDataError(VocabError):
    def __init__(self, available: int, required: int = 4, source: str = "history"):
        super().__init__(
            f"You need at least {required} words in your {source} to start a quiz."
        )
        self.available = available
        self.required = required


class ProviderError(VocabError):
    """Unexpected transport or SDK failure while talking to a provider."""
