import pathlib
import sys
from contextlib import asynccontextmanager
from types import SimpleNamespace
from typing import Any

import pytest

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))


class FakeTranscriptions:
    """Stand-in for ``client.audio.transcriptions``."""

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self.result: Any = "hello world"
        self.error: Exception | None = None

    async def create(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.result


class FakeChatStream:
    def __init__(self, fragments: list[str], error: Exception | None = None) -> None:
        self._fragments = fragments
        self._error = error
        self.closed = False

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for fragment in self._fragments:
            yield SimpleNamespace(
                choices=[SimpleNamespace(delta=SimpleNamespace(content=fragment))]
            )
        if self._error is not None:
            raise self._error

    async def close(self) -> None:
        self.closed = True


class FakeCompletions:
    """Stand-in for ``client.chat.completions`` recording submitted messages."""

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self.replies: list[str] = []
        self.default_reply = "Hi there!"
        self.error: Exception | None = None
        self.stream_fragments: list[str] = ["Hi", " there", "!"]
        self.stream_error: Exception | None = None
        self.streams: list[FakeChatStream] = []

    async def create(self, **kwargs: Any) -> Any:
        kwargs["messages"] = [dict(message) for message in kwargs["messages"]]
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        if kwargs.get("stream"):
            stream = FakeChatStream(list(self.stream_fragments), self.stream_error)
            self.streams.append(stream)
            return stream
        reply = self.replies.pop(0) if self.replies else self.default_reply
        return SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=reply))]
        )

    def submitted_history(self, index: int = -1) -> list[dict[str, str]]:
        """Messages of call ``index`` minus the system prompt and new user turn."""

        return self.calls[index]["messages"][1:-1]


class FakeSpeechResponse:
    def __init__(self, audio: bytes) -> None:
        self._audio = audio

    async def iter_bytes(self, chunk_size: int | None = None):
        size = chunk_size or len(self._audio) or 1
        for start in range(0, len(self._audio), size):
            yield self._audio[start : start + size]


class FakeStreamingSpeech:
    """Stand-in for ``client.audio.speech.with_streaming_response``."""

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self.audio = b"ID3-fake-mp3-bytes"
        self.error: Exception | None = None

    @asynccontextmanager
    async def create(self, **kwargs: Any):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        yield FakeSpeechResponse(self.audio)


class FakeOpenAI:
    def __init__(self) -> None:
        self.transcriptions = FakeTranscriptions()
        self.completions = FakeCompletions()
        self.speech = FakeStreamingSpeech()
        self.audio = SimpleNamespace(
            transcriptions=self.transcriptions,
            speech=SimpleNamespace(with_streaming_response=self.speech),
        )
        self.chat = SimpleNamespace(completions=self.completions)
        self.closed = False

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_openai() -> FakeOpenAI:
    return FakeOpenAI()
