"""CLI entrypoint for running the FastAPI app with uvicorn."""

from __future__ import annotations

import logging
import sys

import uvicorn
from pydantic import ValidationError

from .config import get_settings

logger = logging.getLogger(__name__)


def main() -> None:
    """Run the ASGI server."""

    try:
        settings = get_settings()
    except ValidationError as exc:
        logging.basicConfig(level=logging.INFO)
        logger.error("Failed to initialize services: %s", exc)
        logger.error("Make sure OPENAI_API_KEY is set in your .env file")
        sys.exit(1)

    uvicorn.run(
        "voice_agent.app:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=False,
    )


if __name__ == "__main__":  # pragma: no cover - manual invocation
    main()
