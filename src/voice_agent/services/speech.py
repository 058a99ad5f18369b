"""Text-to-speech client backed by the OpenAI speech API."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

import openai

from ..errors import InvalidVoice, SynthesisFailed, ValidationError
from .provider import describe_provider_error

logger = logging.getLogger(__name__)

# Available OpenAI TTS voices
AVAILABLE_VOICES: tuple[str, ...] = (
    "alloy",  # Neutral, balanced
    "echo",  # Neutral
    "fable",  # Expressive, British
    "onyx",  # Deep
    "nova",  # Bright
    "shimmer",  # Soft
)

STANDARD_MODEL = "tts-1"
HD_MODEL = "tts-1-hd"
AVAILABLE_MODELS: tuple[str, ...] = (STANDARD_MODEL, HD_MODEL)

STREAM_CHUNK_BYTES = 4096


class SpeechSynthesisClient:
    """Convert text into encoded (mp3) audio."""

    def __init__(
        self,
        openai_client: openai.AsyncOpenAI,
        *,
        default_voice: str = "alloy",
        default_model: str = STANDARD_MODEL,
    ) -> None:
        self._client = openai_client
        self._default_voice = AVAILABLE_VOICES[0]
        self.set_default_voice(default_voice)
        self._default_model = self._resolve_model(default_model)

    @property
    def default_voice(self) -> str:
        return self._default_voice

    @property
    def default_model(self) -> str:
        return self._default_model

    def get_available_voices(self) -> list[str]:
        return list(AVAILABLE_VOICES)

    def set_default_voice(self, voice: str) -> None:
        """Change the voice used when a call does not name one."""

        self._default_voice = self._resolve_voice(voice)

    def validate_voice(self, voice: str) -> str:
        """Return ``voice`` if it is supported, else raise :class:`InvalidVoice`."""

        return self._resolve_voice(voice)

    def _resolve_voice(self, voice: str) -> str:
        if voice not in AVAILABLE_VOICES:
            raise InvalidVoice(
                f"Invalid voice. Available voices: {', '.join(AVAILABLE_VOICES)}"
            )
        return voice

    def _resolve_model(self, model: str) -> str:
        if model not in AVAILABLE_MODELS:
            raise ValidationError(
                f"Invalid TTS model. Available models: {', '.join(AVAILABLE_MODELS)}"
            )
        return model

    async def text_to_speech(
        self,
        text: str,
        voice: Optional[str] = None,
        model: Optional[str] = None,
        output_path: Optional[Union[str, Path]] = None,
    ) -> bytes:
        """Synthesize ``text`` and return the complete audio buffer.

        When ``output_path`` is given the buffer is also written there,
        creating any missing parent directories first.
        """

        if not text:
            raise ValidationError("Text is required for speech synthesis")

        resolved_voice = self._resolve_voice(voice) if voice else self._default_voice
        resolved_model = self._resolve_model(model) if model else self._default_model

        logger.info(
            f"OpenAI TTS: synthesizing {len(text)} chars "
            f"(model={resolved_model}, voice={resolved_voice})"
        )

        buffer = bytearray()
        try:
            async with self._client.audio.speech.with_streaming_response.create(
                model=resolved_model,
                voice=resolved_voice,
                input=text,
            ) as response:
                async for audio_chunk in response.iter_bytes(STREAM_CHUNK_BYTES):
                    buffer.extend(audio_chunk)
        except openai.OpenAIError as exc:
            detail = describe_provider_error(exc)
            logger.error(f"OpenAI TTS API error: {detail}")
            raise SynthesisFailed(f"TTS generation failed: {detail}") from exc

        audio = bytes(buffer)
        logger.info(f"OpenAI TTS: received {len(audio)} bytes of audio")

        if output_path is not None:
            self._write_audio(Path(output_path), audio)

        return audio

    @staticmethod
    def _write_audio(path: Path, audio: bytes) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(audio)
        except OSError as exc:
            logger.error(f"Failed to save synthesized audio to {path}: {exc}")
            raise SynthesisFailed(f"TTS generation failed: {exc}") from exc
        logger.debug(f"Saved synthesized audio to {path}")


__all__ = [
    "AVAILABLE_MODELS",
    "AVAILABLE_VOICES",
    "HD_MODEL",
    "STANDARD_MODEL",
    "SpeechSynthesisClient",
]
