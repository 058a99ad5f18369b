"""Exchange orchestration."""

from .orchestrator import ExchangeStage, VoiceExchangeOrchestrator

__all__ = ["ExchangeStage", "VoiceExchangeOrchestrator"]
