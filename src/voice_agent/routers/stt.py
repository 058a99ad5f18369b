from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from ..chat import VoiceExchangeOrchestrator
from ..config import Settings
from ..schemas.api import TranscriptionResponse
from ..services.audio_uploads import read_audio_upload
from .dependencies import get_app_settings, get_orchestrator

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["stt"])


@router.post(
    "/transcribe",
    response_model=TranscriptionResponse,
    response_model_exclude_none=True,
)
async def transcribe_audio(
    audio: Optional[UploadFile] = File(default=None),
    language: Optional[str] = Form(default=None),
    detailed: bool = Form(default=False),
    orchestrator: VoiceExchangeOrchestrator = Depends(get_orchestrator),
    settings: Settings = Depends(get_app_settings),
) -> TranscriptionResponse:
    upload = await read_audio_upload(audio, max_bytes=settings.max_upload_bytes)
    logger.info(
        "Transcription request: file=%s, type=%s, bytes=%d",
        upload.filename,
        upload.content_type,
        len(upload.data),
    )

    if detailed:
        details = await orchestrator.transcribe(
            upload.data,
            language,
            upload.filename,
            upload.content_type,
            detailed=True,
        )
        return TranscriptionResponse(transcription=details["text"], details=details)

    transcription = await orchestrator.transcribe(
        upload.data,
        language,
        upload.filename,
        upload.content_type,
    )
    return TranscriptionResponse(transcription=transcription)


__all__ = ["router"]
