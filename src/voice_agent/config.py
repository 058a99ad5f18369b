"""Application configuration using environment variables."""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, AnyHttpUrl, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve the project root once so that `.env` is discovered regardless of CWD
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
PACKAGE_DIR = Path(__file__).resolve().parent

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful AI assistant. Respond concisely and naturally."
)


class Settings(BaseSettings):
    """Load configuration from environment variables and `.env`."""

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    openai_api_key: SecretStr = Field(
        ...,
        validation_alias=AliasChoices("OPENAI_API_KEY", "openai_api_key"),
    )
    openai_base_url: Optional[AnyHttpUrl] = Field(
        default=None,
        validation_alias=AliasChoices("OPENAI_BASE_URL", "openai_base_url"),
    )
    request_timeout: float = Field(
        default=60.0,
        validation_alias=AliasChoices("OPENAI_TIMEOUT", "request_timeout"),
        ge=1,
    )
    max_retries: int = Field(
        default=0,
        validation_alias=AliasChoices("OPENAI_MAX_RETRIES", "max_retries"),
        ge=0,
    )

    transcription_model: str = Field(
        default="whisper-1",
        validation_alias=AliasChoices("TRANSCRIPTION_MODEL", "transcription_model"),
    )
    chat_model: str = Field(
        default="gpt-3.5-turbo",
        validation_alias=AliasChoices("CHAT_MODEL", "chat_model"),
    )
    system_prompt: str = Field(
        default=DEFAULT_SYSTEM_PROMPT,
        validation_alias=AliasChoices("SYSTEM_PROMPT", "system_prompt"),
    )
    tts_voice: str = Field(
        default="alloy",
        validation_alias=AliasChoices("TTS_VOICE", "tts_voice"),
    )
    tts_model: str = Field(
        default="tts-1",
        validation_alias=AliasChoices("TTS_MODEL", "tts_model"),
    )

    # Whisper rejects files above 25 MB
    max_upload_bytes: int = Field(
        default=25 * 1024 * 1024,
        ge=1,
        validation_alias=AliasChoices("MAX_UPLOAD_BYTES", "max_upload_bytes"),
    )
    serialize_sessions: bool = Field(
        default=True,
        validation_alias=AliasChoices("SERIALIZE_SESSIONS", "serialize_sessions"),
    )
    static_dir: Path = Field(
        default_factory=lambda: PACKAGE_DIR / "static",
        validation_alias=AliasChoices("STATIC_DIR", "static_dir"),
    )

    host: str = Field(
        default="0.0.0.0",
        validation_alias=AliasChoices("HOST", "host"),
    )
    port: int = Field(
        default=3000,
        validation_alias=AliasChoices("PORT", "port"),
        ge=1,
        le=65535,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached `Settings` instance."""

    return Settings()  # pyright: ignore[reportCallIssue]


__all__ = ["DEFAULT_SYSTEM_PROMPT", "Settings", "get_settings"]
