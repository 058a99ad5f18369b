from __future__ import annotations

import base64
import io
import json
import logging
from collections.abc import Generator

import httpx
import openai
import pytest
from fastapi.testclient import TestClient

from voice_agent.app import create_app
from voice_agent.chat import VoiceExchangeOrchestrator
from voice_agent.config import get_settings
from voice_agent.routers.dependencies import get_orchestrator
from voice_agent.services.dialogue import DialogueClient
from voice_agent.services.session_store import InMemorySessionStore
from voice_agent.services.speech import SpeechSynthesisClient
from voice_agent.services.transcription import TranscriptionClient


@pytest.fixture
def client(monkeypatch, fake_openai) -> Generator[TestClient, None, None]:
    """Test client whose orchestrator talks to the fake provider."""
    monkeypatch.setenv("OPENAI_API_KEY", "test-key")
    monkeypatch.setenv("MAX_UPLOAD_BYTES", "1024")
    get_settings.cache_clear()

    app = create_app()
    orchestrator = VoiceExchangeOrchestrator(
        TranscriptionClient(fake_openai),
        DialogueClient(fake_openai),
        SpeechSynthesisClient(fake_openai),
        InMemorySessionStore(),
    )
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator

    with TestClient(app) as test_client:
        yield test_client

    get_settings.cache_clear()


def _audio_file(content_type: str = "audio/webm", data: bytes = b"\x1aE\xdf\xa3webm"):
    return {"audio": ("clip.webm", io.BytesIO(data), content_type)}


def test_transcribe_returns_text(client: TestClient, fake_openai) -> None:
    fake_openai.transcriptions.result = "turn on the lights"

    response = client.post(
        "/api/transcribe",
        data={"language": "en"},
        files=_audio_file("audio/webm;codecs=opus"),
    )

    assert response.status_code == 200
    assert response.json() == {"success": True, "transcription": "turn on the lights"}
    call = fake_openai.transcriptions.calls[0]
    assert call["file"][0] == "clip.webm"
    assert call["file"][2] == "audio/webm"


def test_transcribe_detailed_includes_details(client: TestClient, fake_openai) -> None:
    fake_openai.transcriptions.result = {
        "text": "hi",
        "language": "english",
        "duration": 0.5,
        "segments": [{"id": 0, "start": 0.0, "end": 0.5, "text": "hi"}],
    }

    response = client.post(
        "/api/transcribe", data={"detailed": "true"}, files=_audio_file("audio/mpeg")
    )

    assert response.status_code == 200
    body = response.json()
    assert body["transcription"] == "hi"
    assert body["details"]["segments"][0]["end"] == 0.5


def test_transcribe_rejects_plain_text_before_provider(client: TestClient, fake_openai) -> None:
    response = client.post(
        "/api/transcribe",
        files={"audio": ("notes.txt", io.BytesIO(b"hello"), "text/plain")},
    )

    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "error": "Invalid file type. Only audio files are allowed.",
    }
    assert fake_openai.transcriptions.calls == []


def test_transcribe_requires_file(client: TestClient) -> None:
    response = client.post("/api/transcribe", data={"language": "en"})

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "No audio file provided"}


def test_transcribe_rejects_oversized_upload(client: TestClient, fake_openai) -> None:
    response = client.post("/api/transcribe", files=_audio_file(data=b"x" * 2048))

    assert response.status_code == 413
    assert response.json()["success"] is False
    assert fake_openai.transcriptions.calls == []


def test_transcribe_provider_failure_is_500(client: TestClient, fake_openai) -> None:
    request = httpx.Request("POST", "https://api.openai.com/v1/audio/transcriptions")
    fake_openai.transcriptions.error = openai.APIConnectionError(request=request)

    response = client.post("/api/transcribe", files=_audio_file())

    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert body["error"].startswith("Transcription failed:")


def test_chat_threads_session_history(client: TestClient, fake_openai) -> None:
    first = client.post("/api/chat", json={"message": "Hello", "sessionId": "s1"})
    second = client.post("/api/chat", json={"message": "Hello", "sessionId": "s1"})

    assert first.status_code == 200
    assert first.json() == {"success": True, "response": "Hi there!"}
    assert second.status_code == 200
    assert fake_openai.completions.submitted_history(0) == []
    assert fake_openai.completions.submitted_history(1) == [
        {"role": "user", "content": "Hello"},
        {"role": "assistant", "content": "Hi there!"},
    ]


def test_delete_conversation_resets_history(client: TestClient, fake_openai) -> None:
    client.post("/api/chat", json={"message": "Hello", "sessionId": "s1"})

    cleared = client.delete("/api/conversation/s1")
    client.post("/api/chat", json={"message": "Hello", "sessionId": "s1"})

    assert cleared.status_code == 200
    assert cleared.json() == {"success": True, "message": "Conversation history cleared"}
    assert fake_openai.completions.submitted_history(-1) == []


def test_delete_unknown_conversation_is_noop(client: TestClient) -> None:
    response = client.delete("/api/conversation/never-seen")

    assert response.status_code == 200
    assert response.json()["success"] is True


def test_get_conversation_lists_turns(client: TestClient) -> None:
    client.post("/api/chat", json={"message": "Hello", "sessionId": "s9"})

    response = client.get("/api/conversation/s9")

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "sessionId": "s9",
        "history": [
            {"role": "user", "content": "Hello"},
            {"role": "assistant", "content": "Hi there!"},
        ],
    }


def test_chat_requires_message(client: TestClient, fake_openai) -> None:
    response = client.post("/api/chat", json={"sessionId": "s1"})

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Message is required"}
    assert fake_openai.completions.calls == []


def test_chat_rejects_malformed_body(client: TestClient) -> None:
    response = client.post(
        "/api/chat",
        content=b"not json",
        headers={"content-type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_chat_generates_audio_when_requested(client: TestClient, fake_openai) -> None:
    response = client.post(
        "/api/chat",
        json={"message": "Hello", "generateAudio": True, "voice": "onyx"},
    )

    assert response.status_code == 200
    body = response.json()
    assert base64.b64decode(body["audio"]) == b"ID3-fake-mp3-bytes"
    assert fake_openai.speech.calls[0]["voice"] == "onyx"


def test_chat_invalid_voice_is_400_without_side_effects(client: TestClient, fake_openai) -> None:
    response = client.post(
        "/api/chat",
        json={"message": "Hello", "sessionId": "s1", "generateAudio": True, "voice": "robot"},
    )

    assert response.status_code == 400
    assert "Invalid voice" in response.json()["error"]
    assert fake_openai.completions.calls == []
    assert fake_openai.speech.calls == []
    assert client.get("/api/conversation/s1").json()["history"] == []


def test_voice_chat_invalid_voice_is_400_without_side_effects(
    client: TestClient, fake_openai
) -> None:
    response = client.post(
        "/api/voice-chat",
        data={"sessionId": "v4", "voice": "robot"},
        files=_audio_file(),
    )

    assert response.status_code == 400
    assert fake_openai.transcriptions.calls == []
    assert fake_openai.completions.calls == []
    assert client.get("/api/conversation/v4").json()["history"] == []


def test_voice_chat_full_pipeline(client: TestClient, fake_openai) -> None:
    fake_openai.transcriptions.result = "what's the weather"
    fake_openai.completions.replies = ["Sunny and warm."]

    response = client.post(
        "/api/voice-chat",
        data={"sessionId": "v1", "language": "en", "voice": "shimmer"},
        files=_audio_file(),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["transcription"] == "what's the weather"
    assert body["response"] == "Sunny and warm."
    assert base64.b64decode(body["audio"]) == b"ID3-fake-mp3-bytes"
    assert fake_openai.speech.calls[0] == {
        "model": "tts-1",
        "voice": "shimmer",
        "input": "Sunny and warm.",
    }


def test_voice_chat_synthesis_failure_still_records_turns(client: TestClient, fake_openai) -> None:
    request = httpx.Request("POST", "https://api.openai.com/v1/audio/speech")
    fake_openai.speech.error = openai.APITimeoutError(request=request)

    response = client.post("/api/voice-chat", data={"sessionId": "v2"}, files=_audio_file())

    assert response.status_code == 500
    assert response.json()["error"].startswith("TTS generation failed:")
    history = client.get("/api/conversation/v2").json()["history"]
    assert [turn["role"] for turn in history] == ["user", "assistant"]


def test_voice_chat_transcription_failure_records_nothing(client: TestClient, fake_openai) -> None:
    request = httpx.Request("POST", "https://api.openai.com/v1/audio/transcriptions")
    fake_openai.transcriptions.error = openai.APIConnectionError(request=request)

    response = client.post("/api/voice-chat", data={"sessionId": "v3"}, files=_audio_file())

    assert response.status_code == 500
    assert fake_openai.completions.calls == []
    assert client.get("/api/conversation/v3").json()["history"] == []


def test_voices_lists_fixed_set(client: TestClient) -> None:
    response = client.get("/api/voices")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert set(body["voices"]) == {"alloy", "echo", "fable", "onyx", "nova", "shimmer"}
    assert body["default"] == "alloy"


def test_chat_stream_emits_fragments_then_done(client: TestClient, fake_openai) -> None:
    with client.stream("POST", "/api/chat/stream", json={"message": "Hi", "sessionId": "st"}) as response:
        assert response.status_code == 200
        payload = "".join(response.iter_text())

    events = [
        (block.split("\n")[0], block.split("data: ", 1)[1])
        for block in payload.replace("\r\n", "\n").strip().split("\n\n")
        if block.startswith("event:")
    ]
    names = [name.removeprefix("event: ") for name, _ in events]
    assert names == ["message", "message", "message", "done"]
    assert json.loads(events[-1][1]) == {"response": "Hi there!"}
    history = client.get("/api/conversation/st").json()["history"]
    assert history[-1] == {"role": "assistant", "content": "Hi there!"}


def test_chat_stream_reports_provider_failure_as_error_event(
    client: TestClient, fake_openai, caplog: pytest.LogCaptureFixture
) -> None:
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    fake_openai.completions.stream_error = openai.APIConnectionError(request=request)

    with caplog.at_level(logging.WARNING, logger="voice_agent.routers.chat"):
        with client.stream(
            "POST", "/api/chat/stream", json={"message": "Hi", "sessionId": "se"}
        ) as response:
            payload = "".join(response.iter_text())

    assert "event: error" in payload
    assert "LLM streaming failed" in payload
    assert "event: done" not in payload
    assert "Streaming chat failed" in caplog.text
    assert client.get("/api/conversation/se").json()["history"] == []

def test_unknown_route_uses_error_envelope(client: TestClient) -> None:
    response = client.get("/api/nope")

    assert response.status_code == 404
    assert response.json()["success"] is False


def test_index_serves_static_page(client: TestClient) -> None:
    response = client.get("/")

    assert response.status_code == 200
    assert "text/html" in response.headers["content-type"]
