"""Voice exchange orchestrator coordinating the three provider clients."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import AsyncGenerator, Optional

from ..errors import VoiceAgentError
from ..schemas.conversation import ChatResult, ConversationTurn, VoiceExchangeResult
from ..services.dialogue import DialogueClient
from ..services.session_store import DEFAULT_SESSION_ID, SessionStore
from ..services.speech import SpeechSynthesisClient
from ..services.transcription import (
    DEFAULT_FILENAME,
    DEFAULT_LANGUAGE,
    TranscriptionClient,
)

logger = logging.getLogger(__name__)


class ExchangeStage(str, Enum):
    START = "start"
    TRANSCRIBING = "transcribing"
    DIALOGUE = "dialogue"
    SYNTHESIZING = "synthesizing"
    DONE = "done"
    FAILED = "failed"


@dataclass
class ExchangeTrace:
    """Tracks the stage of one exchange for logging and fault attribution."""

    session_id: str
    kind: str
    exchange_id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    stage: ExchangeStage = ExchangeStage.START
    failed_stage: Optional[ExchangeStage] = None

    def advance(self, stage: ExchangeStage) -> None:
        self.stage = stage
        logger.info(
            "%s %s (session=%s): %s",
            self.kind,
            self.exchange_id,
            self.session_id,
            stage.value,
        )

    def fail(self, exc: VoiceAgentError) -> None:
        self.failed_stage = self.stage
        self.stage = ExchangeStage.FAILED
        exc.stage = self.failed_stage.value
        logger.error(
            "%s %s (session=%s) failed during %s: %s",
            self.kind,
            self.exchange_id,
            self.session_id,
            self.failed_stage.value,
            exc,
        )


def _resolve_session(session_id: Optional[str]) -> str:
    return session_id or DEFAULT_SESSION_ID


class VoiceExchangeOrchestrator:
    """Sequence transcription, dialogue and synthesis for each request.

    A requested voice is validated before any provider call. History is committed right after a successful dialogue step. A later
    synthesis failure therefore still leaves the text exchange recorded.
    """

    def __init__(
        self,
        transcriber: TranscriptionClient,
        dialogue: DialogueClient,
        synthesizer: SpeechSynthesisClient,
        sessions: SessionStore,
    ) -> None:
        self._transcriber = transcriber
        self._dialogue = dialogue
        self._synthesizer = synthesizer
        self._sessions = sessions

    @property
    def sessions(self) -> SessionStore:
        return self._sessions

    @property
    def dialogue(self) -> DialogueClient:
        return self._dialogue

    @property
    def synthesizer(self) -> SpeechSynthesisClient:
        return self._synthesizer

    async def transcribe(
        self,
        audio: bytes,
        language: Optional[str] = None,
        filename: Optional[str] = None,
        content_type: Optional[str] = None,
        *,
        detailed: bool = False,
    ) -> str | dict:
        kwargs = {
            "language": language or DEFAULT_LANGUAGE,
            "filename": filename or DEFAULT_FILENAME,
            "content_type": content_type,
        }
        if detailed:
            return await self._transcriber.transcribe_detailed(audio, **kwargs)
        return await self._transcriber.transcribe(audio, **kwargs)

    async def voice_chat(
        self,
        audio: bytes,
        session_id: Optional[str] = None,
        language: Optional[str] = None,
        voice: Optional[str] = None,
        filename: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> VoiceExchangeResult:
        """Run the full speech-to-speech pipeline for one request."""

        session = _resolve_session(session_id)
        trace = ExchangeTrace(session_id=session, kind="Voice exchange")
        try:
            if voice:
                self._synthesizer.validate_voice(voice)

            trace.advance(ExchangeStage.TRANSCRIBING)
            transcription = await self._transcriber.transcribe(
                audio,
                language or DEFAULT_LANGUAGE,
                filename or DEFAULT_FILENAME,
                content_type,
            )

            trace.advance(ExchangeStage.DIALOGUE)
            response = await self._respond_and_commit(session, transcription)

            trace.advance(ExchangeStage.SYNTHESIZING)
            audio_out = await self._synthesizer.text_to_speech(response, voice)
        except VoiceAgentError as exc:
            trace.fail(exc)
            raise

        trace.advance(ExchangeStage.DONE)
        return VoiceExchangeResult(
            transcription=transcription,
            response=response,
            audio=audio_out,
        )

    async def chat(
        self,
        message: str,
        session_id: Optional[str] = None,
        generate_audio: bool = False,
        voice: Optional[str] = None,
    ) -> ChatResult:
        """Text-only exchange; synthesizes the reply only when asked to."""

        session = _resolve_session(session_id)
        trace = ExchangeTrace(session_id=session, kind="Chat exchange")
        audio_out: Optional[bytes] = None
        try:
            if generate_audio and voice:
                self._synthesizer.validate_voice(voice)

            trace.advance(ExchangeStage.DIALOGUE)
            response = await self._respond_and_commit(session, message)

            if generate_audio:
                trace.advance(ExchangeStage.SYNTHESIZING)
                audio_out = await self._synthesizer.text_to_speech(response, voice)
        except VoiceAgentError as exc:
            trace.fail(exc)
            raise

        trace.advance(ExchangeStage.DONE)
        return ChatResult(response=response, audio=audio_out)

    async def stream_chat(
        self,
        message: str,
        session_id: Optional[str] = None,
    ) -> AsyncGenerator[str, None]:
        """Yield reply fragments; history is committed once the stream ends.

        A consumer that stops iterating early leaves history untouched.
        """

        session = _resolve_session(session_id)
        trace = ExchangeTrace(session_id=session, kind="Streaming chat")
        async with self._sessions.lock(session):
            history = self._sessions.get(session)
            trace.advance(ExchangeStage.DIALOGUE)
            parts: list[str] = []
            fragments = self._dialogue.stream_response(message, history)
            try:
                async for fragment in fragments:
                    parts.append(fragment)
                    yield fragment
            except VoiceAgentError as exc:
                trace.fail(exc)
                raise
            finally:
                await fragments.aclose()

            self._commit(session, message, "".join(parts))
        trace.advance(ExchangeStage.DONE)

    async def _respond_and_commit(self, session: str, message: str) -> str:
        async with self._sessions.lock(session):
            history = self._sessions.get(session)
            response = await self._dialogue.generate_response(message, history)
            self._commit(session, message, response)
        return response

    def _commit(self, session: str, message: str, response: str) -> None:
        self._sessions.append(
            session,
            [
                ConversationTurn(role="user", content=message),
                ConversationTurn(role="assistant", content=response),
            ],
        )

    def history(self, session_id: str) -> list[ConversationTurn]:
        return self._sessions.get(session_id)

    def clear_session(self, session_id: str) -> bool:
        return self._sessions.clear(session_id)

    def available_voices(self) -> list[str]:
        return self._synthesizer.get_available_voices()


__all__ = ["ExchangeStage", "ExchangeTrace", "VoiceExchangeOrchestrator"]
