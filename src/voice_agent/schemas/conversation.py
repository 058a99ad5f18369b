"""Conversation data model shared by the session store and orchestrator."""

from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict

Role = Literal["user", "assistant", "system"]


class ConversationTurn(BaseModel):
    """A single message attributed to the user, the assistant or the system."""

    role: Role
    content: str

    model_config = ConfigDict(frozen=True)

    def to_message(self) -> dict[str, str]:
        """Return the chat-completion message payload for this turn."""

        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class VoiceExchangeResult:
    """Outcome of one full transcribe, respond, synthesize pass."""

    transcription: str
    response: str
    audio: bytes

    @property
    def audio_base64(self) -> str:
        return base64.b64encode(self.audio).decode("ascii")


@dataclass(frozen=True)
class ChatResult:
    """Outcome of a text-only exchange, with audio when it was requested."""

    response: str
    audio: Optional[bytes] = None

    @property
    def audio_base64(self) -> Optional[str]:
        if self.audio is None:
            return None
        return base64.b64encode(self.audio).decode("ascii")


__all__ = ["ChatResult", "ConversationTurn", "Role", "VoiceExchangeResult"]
