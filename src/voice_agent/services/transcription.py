"""Speech-to-text client backed by the OpenAI Whisper API."""

from __future__ import annotations

import logging
from typing import Any, Optional

import openai

from ..errors import TranscriptionFailed, ValidationError
from .provider import describe_provider_error

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "en"
DEFAULT_FILENAME = "audio.webm"
DEFAULT_CONTENT_TYPE = "audio/webm"


class TranscriptionClient:
    """Convert raw audio buffers into text."""

    def __init__(
        self,
        openai_client: openai.AsyncOpenAI,
        *,
        model: str = "whisper-1",
    ) -> None:
        self._client = openai_client
        self._model = model

    @property
    def model(self) -> str:
        return self._model

    async def transcribe(
        self,
        audio: bytes,
        language: str = DEFAULT_LANGUAGE,
        filename: str = DEFAULT_FILENAME,
        content_type: Optional[str] = None,
    ) -> str:
        """Transcribe ``audio`` and return the provider text verbatim."""

        result = await self._create(
            audio,
            language=language,
            filename=filename,
            content_type=content_type,
            response_format="text",
        )
        # The SDK returns a bare string for the text format
        if isinstance(result, str):
            return result
        return str(getattr(result, "text", result))

    async def transcribe_detailed(
        self,
        audio: bytes,
        language: str = DEFAULT_LANGUAGE,
        filename: str = DEFAULT_FILENAME,
        content_type: Optional[str] = None,
    ) -> dict[str, Any]:
        """Transcribe ``audio`` requesting segment-level timing metadata."""

        result = await self._create(
            audio,
            language=language,
            filename=filename,
            content_type=content_type,
            response_format="verbose_json",
        )
        if hasattr(result, "model_dump"):
            payload = result.model_dump()
        elif isinstance(result, dict):
            payload = dict(result)
        else:
            payload = {"text": str(result)}
        return {
            "text": payload.get("text", ""),
            "language": payload.get("language"),
            "duration": payload.get("duration"),
            "segments": payload.get("segments") or [],
        }

    async def _create(
        self,
        audio: bytes,
        *,
        language: str,
        filename: str,
        content_type: Optional[str],
        response_format: str,
    ) -> Any:
        if not audio:
            raise ValidationError("No audio data provided")

        upload = (
            filename or DEFAULT_FILENAME,
            audio,
            content_type or DEFAULT_CONTENT_TYPE,
        )
        logger.info(
            "Transcribing %d bytes (file=%s, language=%s, format=%s)",
            len(audio),
            upload[0],
            language or DEFAULT_LANGUAGE,
            response_format,
        )
        try:
            return await self._client.audio.transcriptions.create(
                file=upload,
                model=self._model,
                language=language or DEFAULT_LANGUAGE,
                response_format=response_format,
            )
        except openai.OpenAIError as exc:
            detail = describe_provider_error(exc)
            logger.error(f"Whisper transcription error: {detail}")
            raise TranscriptionFailed(f"Transcription failed: {detail}") from exc


__all__ = [
    "DEFAULT_FILENAME",
    "DEFAULT_LANGUAGE",
    "TranscriptionClient",
]
