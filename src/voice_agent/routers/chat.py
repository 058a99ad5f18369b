"""Chat and voice exchange API routes."""

from __future__ import annotations

import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sse_starlette.sse import EventSourceResponse

from ..chat import VoiceExchangeOrchestrator
from ..config import Settings
from ..errors import ValidationError, VoiceAgentError
from ..schemas.api import (
    ChatRequest,
    ChatResponse,
    ChatStreamRequest,
    ClearConversationResponse,
    ConversationHistoryResponse,
    VoiceChatResponse,
)
from ..services.audio_uploads import read_audio_upload
from .dependencies import get_app_settings, get_orchestrator

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["chat"])


@router.post("/chat", response_model=ChatResponse, response_model_exclude_none=True)
async def chat(
    payload: ChatRequest,
    orchestrator: VoiceExchangeOrchestrator = Depends(get_orchestrator),
) -> ChatResponse:
    """Process a text message and optionally synthesize the reply."""

    if not payload.message:
        raise ValidationError("Message is required")

    result = await orchestrator.chat(
        payload.message,
        session_id=payload.session_id,
        generate_audio=payload.generate_audio,
        voice=payload.voice,
    )
    return ChatResponse(response=result.response, audio=result.audio_base64)


@router.post("/chat/stream", response_model=None)
async def stream_chat(
    payload: ChatStreamRequest,
    orchestrator: VoiceExchangeOrchestrator = Depends(get_orchestrator),
) -> EventSourceResponse:
    """Stream reply fragments through Server-Sent Events."""

    if not payload.message:
        raise ValidationError("Message is required")
    message = payload.message

    async def event_publisher():
        parts: list[str] = []
        try:
            async for fragment in orchestrator.stream_chat(
                message, session_id=payload.session_id
            ):
                parts.append(fragment)
                yield {"event": "message", "data": json.dumps({"content": fragment})}
        except VoiceAgentError as exc:
            logger.warning("Streaming chat failed: %s", exc)
            yield {
                "event": "error",
                "data": json.dumps({"success": False, "error": str(exc)}),
            }
            return
        yield {"event": "done", "data": json.dumps({"response": "".join(parts)})}

    return EventSourceResponse(event_publisher())


@router.post("/voice-chat", response_model=VoiceChatResponse)
async def voice_chat(
    audio: Optional[UploadFile] = File(default=None),
    session_id: Optional[str] = Form(default=None, alias="sessionId"),
    language: Optional[str] = Form(default=None),
    voice: Optional[str] = Form(default=None),
    orchestrator: VoiceExchangeOrchestrator = Depends(get_orchestrator),
    settings: Settings = Depends(get_app_settings),
) -> VoiceChatResponse:
    """Complete voice-to-voice pipeline: STT -> LLM -> TTS."""

    upload = await read_audio_upload(audio, max_bytes=settings.max_upload_bytes)
    result = await orchestrator.voice_chat(
        upload.data,
        session_id=session_id,
        language=language,
        voice=voice or None,
        filename=upload.filename,
        content_type=upload.content_type,
    )
    return VoiceChatResponse(
        transcription=result.transcription,
        response=result.response,
        audio=result.audio_base64,
    )


@router.get("/conversation/{session_id}", response_model=ConversationHistoryResponse)
async def get_conversation(
    session_id: str,
    orchestrator: VoiceExchangeOrchestrator = Depends(get_orchestrator),
) -> ConversationHistoryResponse:
    return ConversationHistoryResponse(
        session_id=session_id,
        history=orchestrator.history(session_id),
    )


@router.delete("/conversation/{session_id}", response_model=ClearConversationResponse)
async def clear_conversation(
    session_id: str,
    orchestrator: VoiceExchangeOrchestrator = Depends(get_orchestrator),
) -> ClearConversationResponse:
    orchestrator.clear_session(session_id)
    return ClearConversationResponse(message="Conversation history cleared")


__all__ = ["router"]
