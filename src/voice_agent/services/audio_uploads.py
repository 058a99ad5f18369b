"""Validation of uploaded audio files."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import UploadFile

from ..errors import AudioTooLarge, UnsupportedAudioType, ValidationError
from .transcription import DEFAULT_FILENAME

logger = logging.getLogger(__name__)


ALLOWED_AUDIO_MIME_TYPES: frozenset[str] = frozenset(
    {
        "audio/mpeg",
        "audio/mp3",
        "audio/wav",
        "audio/webm",
        "audio/ogg",
        "audio/m4a",
    }
)

_READ_CHUNK_BYTES = 1024 * 1024


@dataclass(frozen=True)
class AudioUpload:
    data: bytes
    filename: str
    content_type: str


def normalize_mime_type(raw: str | None) -> str:
    """Lower-case a MIME type and drop parameters such as ``;codecs=opus``."""

    if not raw:
        return ""
    return raw.split(";", 1)[0].strip().lower()


def check_audio_mime_type(raw: str | None) -> str:
    mime_type = normalize_mime_type(raw)
    if mime_type not in ALLOWED_AUDIO_MIME_TYPES:
        logger.warning("Rejected upload with MIME type %r", raw)
        raise UnsupportedAudioType(
            "Invalid file type. Only audio files are allowed."
        )
    return mime_type


async def read_audio_upload(upload: UploadFile | None, *, max_bytes: int) -> AudioUpload:
    """Validate ``upload`` and read it fully into memory."""

    if upload is None:
        raise ValidationError("No audio file provided")

    mime_type = check_audio_mime_type(upload.content_type)

    buffer = bytearray()
    while True:
        chunk = await upload.read(_READ_CHUNK_BYTES)
        if not chunk:
            break
        buffer.extend(chunk)
        if len(buffer) > max_bytes:
            raise AudioTooLarge(f"Audio file exceeded {max_bytes} bytes limit")

    if not buffer:
        raise ValidationError("Uploaded audio file was empty")

    return AudioUpload(
        data=bytes(buffer),
        filename=upload.filename or DEFAULT_FILENAME,
        content_type=mime_type,
    )


__all__ = [
    "ALLOWED_AUDIO_MIME_TYPES",
    "AudioUpload",
    "check_audio_mime_type",
    "normalize_mime_type",
    "read_audio_upload",
]
