"""Shared OpenAI client construction."""

from __future__ import annotations

import logging

import openai

from ..config import Settings

logger = logging.getLogger(__name__)


def create_openai_client(settings: Settings) -> openai.AsyncOpenAI:
    """Build the AsyncOpenAI client used by every provider wrapper.

    Retries are disabled by default; timeouts come from ``OPENAI_TIMEOUT``.
    """

    base_url = str(settings.openai_base_url) if settings.openai_base_url else None
    client = openai.AsyncOpenAI(
        api_key=settings.openai_api_key.get_secret_value(),
        base_url=base_url,
        timeout=settings.request_timeout,
        max_retries=settings.max_retries,
    )
    logger.info(
        "Created AsyncOpenAI client (base_url=%s, timeout=%.0fs, max_retries=%d)",
        base_url or "default",
        settings.request_timeout,
        settings.max_retries,
    )
    return client


def describe_provider_error(exc: Exception) -> str:
    """Return the most useful human-readable message for a provider failure."""

    if isinstance(exc, openai.APIStatusError):
        body = exc.body
        if isinstance(body, dict):
            error = body.get("error", body)
            if isinstance(error, dict) and isinstance(error.get("message"), str):
                return error["message"]
        return exc.message
    return str(exc)


__all__ = ["create_openai_client", "describe_provider_error"]
