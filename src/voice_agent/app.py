"""Application factory for the FastAPI service."""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .chat import VoiceExchangeOrchestrator
from .config import Settings, get_settings
from .errors import VoiceAgentError
from .routers.chat import router as chat_router
from .routers.stt import router as stt_router
from .routers.tts import router as tts_router
from .services.dialogue import DialogueClient
from .services.provider import create_openai_client
from .services.session_store import InMemorySessionStore
from .services.speech import SpeechSynthesisClient
from .services.transcription import TranscriptionClient

logger = logging.getLogger(__name__)

_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def _configure_logging() -> None:
    """Configure logging based on LOG_LEVEL environment variable."""
    # Load .env file first to ensure LOG_FILE is available
    load_dotenv()

    log_level_str = os.getenv("LOG_LEVEL", "INFO").upper()
    log_level = getattr(logging, log_level_str, logging.INFO)

    formatter = logging.Formatter(_LOG_FORMAT, datefmt=_LOG_DATEFMT)
    handlers: list[logging.Handler] = []

    log_file = os.getenv("LOG_FILE")
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    handlers.append(console_handler)

    logging.basicConfig(level=log_level, handlers=handlers, force=True)

    logging.getLogger("voice_agent").setLevel(log_level)
    logging.getLogger("uvicorn").setLevel(log_level)
    logging.getLogger("uvicorn.access").setLevel(log_level)
    logging.getLogger("uvicorn.error").setLevel(log_level)

    # Quiet down noisy third-party libraries unless debugging
    for name in ("httpx", "httpcore", "openai"):
        logging.getLogger(name).setLevel(
            log_level if log_level <= logging.DEBUG else logging.WARNING
        )


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message},
    )


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(VoiceAgentError)
    async def _voice_agent_error(request: Request, exc: VoiceAgentError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        else:
            logger.warning("%s %s rejected: %s", request.method, request.url.path, exc)
        return _error_response(exc.status_code, str(exc))

    @app.exception_handler(RequestValidationError)
    async def _request_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = exc.errors()
        if errors:
            first = errors[0]
            location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
            message = first.get("msg", "Invalid request")
            detail = f"{location}: {message}" if location else message
        else:
            detail = "Invalid request"
        logger.warning("%s %s rejected: %s", request.method, request.url.path, detail)
        return _error_response(400, detail)

    @app.exception_handler(StarletteHTTPException)
    async def _http_exception(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
        return _error_response(exc.status_code, detail)

    @app.exception_handler(Exception)
    async def _unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error in %s %s", request.method, request.url.path)
        return _error_response(500, str(exc) or exc.__class__.__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    # Configure logging first thing
    _configure_logging()

    settings = settings or get_settings()

    openai_client = create_openai_client(settings)
    orchestrator = VoiceExchangeOrchestrator(
        transcriber=TranscriptionClient(
            openai_client,
            model=settings.transcription_model,
        ),
        dialogue=DialogueClient(
            openai_client,
            model=settings.chat_model,
            system_prompt=settings.system_prompt,
        ),
        synthesizer=SpeechSynthesisClient(
            openai_client,
            default_voice=settings.tts_voice,
            default_model=settings.tts_model,
        ),
        sessions=InMemorySessionStore(serialize=settings.serialize_sessions),
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "Voice agent ready (chat_model=%s, voice=%s, serialize_sessions=%s)",
            settings.chat_model,
            settings.tts_voice,
            settings.serialize_sessions,
        )
        try:
            yield
        finally:
            await openai_client.close()
            logger.info("Closed OpenAI client")

    app = FastAPI(
        title="Voice Agent Backend",
        version="0.1.0",
        description="Speech-to-speech chat backend powered by OpenAI.",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.voice_orchestrator = orchestrator

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_exception_handlers(app)

    app.include_router(chat_router)
    app.include_router(stt_router)
    app.include_router(tts_router)

    index_path = Path(settings.static_dir) / "index.html"

    @app.get("/", include_in_schema=False, response_model=None)
    async def index() -> FileResponse | JSONResponse:
        if index_path.exists():
            return FileResponse(index_path)
        return _error_response(404, "UI not available")

    @app.get("/health", tags=["health"])
    async def healthcheck() -> dict[str, str | int]:
        return {
            "status": "ok",
            "chat_model": settings.chat_model,
            "sessions": len(orchestrator.sessions.session_ids()),
        }

    return app


__all__ = ["create_app"]
