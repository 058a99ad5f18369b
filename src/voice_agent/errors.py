"""Error taxonomy shared by the provider clients, orchestrator and routers."""

from __future__ import annotations

from fastapi import status


class VoiceAgentError(RuntimeError):
    """Base error carrying the HTTP status it should be reported with."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, *, stage: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.stage = stage


class ValidationError(VoiceAgentError):
    """Raised when caller input is missing or malformed."""

    status_code = status.HTTP_400_BAD_REQUEST


class UnsupportedAudioType(ValidationError):
    """Raised when an upload is not one of the accepted audio MIME types."""


class AudioTooLarge(ValidationError):
    """Raised when an upload exceeds the configured size limit."""

    status_code = 413


class InvalidVoice(VoiceAgentError):
    """Raised when a voice outside the supported set is requested."""

    status_code = status.HTTP_400_BAD_REQUEST


class ProviderError(VoiceAgentError):
    """Wrap transport or API failures when communicating with the provider."""


class TranscriptionFailed(ProviderError):
    pass


class DialogueFailed(ProviderError):
    pass


class SynthesisFailed(ProviderError):
    pass


__all__ = [
    "AudioTooLarge",
    "DialogueFailed",
    "InvalidVoice",
    "ProviderError",
    "SynthesisFailed",
    "TranscriptionFailed",
    "UnsupportedAudioType",
    "ValidationError",
    "VoiceAgentError",
]
