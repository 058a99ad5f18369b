"""Schema exports."""

from .conversation import ChatResult, ConversationTurn, VoiceExchangeResult

__all__ = ["ChatResult", "ConversationTurn", "VoiceExchangeResult"]
