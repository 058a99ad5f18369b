"""Pydantic models for HTTP requests and responses."""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .conversation import ConversationTurn


class ChatRequest(BaseModel):
    """Incoming text chat payload."""

    model_config = ConfigDict(populate_by_name=True)

    # Optional here so an absent message is reported with the API error envelope
    message: Optional[str] = None
    session_id: Optional[str] = Field(default=None, alias="sessionId")
    generate_audio: bool = Field(default=False, alias="generateAudio")
    voice: Optional[str] = None


class ChatStreamRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: Optional[str] = None
    session_id: Optional[str] = Field(default=None, alias="sessionId")


class TranscriptionResponse(BaseModel):
    success: Literal[True] = True
    transcription: str
    details: Optional[Dict[str, Any]] = None


class ChatResponse(BaseModel):
    success: Literal[True] = True
    response: str
    audio: Optional[str] = None


class VoiceChatResponse(BaseModel):
    success: Literal[True] = True
    transcription: str
    response: str
    audio: str


class VoicesResponse(BaseModel):
    success: Literal[True] = True
    voices: List[str]
    default: str


class ConversationHistoryResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: Literal[True] = True
    session_id: str = Field(alias="sessionId")
    history: List[ConversationTurn]


class ClearConversationResponse(BaseModel):
    success: Literal[True] = True
    message: str


__all__ = [
    "ChatRequest",
    "ChatResponse",
    "ChatStreamRequest",
    "ClearConversationResponse",
    "ConversationHistoryResponse",
    "TranscriptionResponse",
    "VoiceChatResponse",
    "VoicesResponse",
]
