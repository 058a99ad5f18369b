"""Speech synthesis metadata routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ..chat import VoiceExchangeOrchestrator
from ..schemas.api import VoicesResponse
from .dependencies import get_orchestrator

router = APIRouter(prefix="/api", tags=["tts"])


@router.get("/voices", response_model=VoicesResponse)
async def list_voices(
    orchestrator: VoiceExchangeOrchestrator = Depends(get_orchestrator),
) -> VoicesResponse:
    return VoicesResponse(
        voices=orchestrator.available_voices(),
        default=orchestrator.synthesizer.default_voice,
    )


__all__ = ["router"]
