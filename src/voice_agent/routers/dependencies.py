"""Request-scoped dependencies shared by the API routers."""

from __future__ import annotations

from fastapi import HTTPException, Request

from ..chat import VoiceExchangeOrchestrator
from ..config import Settings, get_settings


def get_orchestrator(request: Request) -> VoiceExchangeOrchestrator:
    orchestrator = getattr(request.app.state, "voice_orchestrator", None)
    if orchestrator is None:
        raise HTTPException(status_code=500, detail="Voice orchestrator unavailable")
    return orchestrator


def get_app_settings(request: Request) -> Settings:
    settings = getattr(request.app.state, "settings", None)
    if settings is None:
        return get_settings()
    return settings


__all__ = ["get_app_settings", "get_orchestrator"]
