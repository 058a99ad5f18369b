"""Chat-completion client used to generate assistant replies."""

from __future__ import annotations

import inspect
import logging
from typing import Any, AsyncGenerator, Awaitable, Callable, Optional, Sequence, Union

import openai

from ..config import DEFAULT_SYSTEM_PROMPT
from ..errors import DialogueFailed, ValidationError
from ..schemas.conversation import ConversationTurn
from .provider import describe_provider_error

logger = logging.getLogger(__name__)

DEFAULT_CHAT_MODEL = "gpt-3.5-turbo"
TEMPERATURE = 0.7
MAX_TOKENS = 500

ChunkSink = Callable[[str], Union[None, Awaitable[None]]]


class DialogueClient:
    """Generate replies from a prompt plus ordered conversation history."""

    def __init__(
        self,
        openai_client: openai.AsyncOpenAI,
        *,
        model: str = DEFAULT_CHAT_MODEL,
        system_prompt: Optional[str] = None,
    ) -> None:
        self._client = openai_client
        self._model = model
        self._system_prompt = system_prompt or DEFAULT_SYSTEM_PROMPT

    @property
    def model(self) -> str:
        return self._model

    @property
    def system_prompt(self) -> str:
        return self._system_prompt

    def set_system_prompt(self, prompt: str) -> None:
        """Replace the instruction prefix used by subsequent calls."""

        self._system_prompt = prompt
        logger.info("System prompt updated (%d chars)", len(prompt))

    def build_messages(
        self,
        user_message: str,
        history: Sequence[ConversationTurn] = (),
    ) -> list[dict[str, str]]:
        if not user_message:
            raise ValidationError("Message is required")

        messages = [{"role": "system", "content": self._system_prompt}]
        messages.extend(turn.to_message() for turn in history)
        messages.append({"role": "user", "content": user_message})
        return messages

    def _completion_params(
        self, messages: list[dict[str, str]], model: Optional[str]
    ) -> dict[str, Any]:
        return {
            "model": model or self._model,
            "messages": messages,
            "temperature": TEMPERATURE,
            "max_tokens": MAX_TOKENS,
        }

    async def generate_response(
        self,
        user_message: str,
        history: Sequence[ConversationTurn] = (),
        model: Optional[str] = None,
    ) -> str:
        """Return the top reply for ``user_message`` given ``history``."""

        messages = self.build_messages(user_message, history)
        params = self._completion_params(messages, model)
        logger.info(
            "Chat completion request: model=%s, history_turns=%d",
            params["model"],
            len(history),
        )
        try:
            completion = await self._client.chat.completions.create(**params)
        except openai.OpenAIError as exc:
            detail = describe_provider_error(exc)
            logger.error(f"Chat completion error: {detail}")
            raise DialogueFailed(f"LLM generation failed: {detail}") from exc

        if not completion.choices:
            raise DialogueFailed("LLM generation failed: provider returned no choices")
        return completion.choices[0].message.content or ""

    async def stream_response(
        self,
        user_message: str,
        history: Sequence[ConversationTurn] = (),
        model: Optional[str] = None,
    ) -> AsyncGenerator[str, None]:
        """Yield reply fragments in generation order.

        Closing the generator early closes the underlying provider stream.
        """

        messages = self.build_messages(user_message, history)
        params = self._completion_params(messages, model)
        logger.info(
            "Streaming chat completion request: model=%s, history_turns=%d",
            params["model"],
            len(history),
        )
        try:
            stream = await self._client.chat.completions.create(**params, stream=True)
        except openai.OpenAIError as exc:
            detail = describe_provider_error(exc)
            logger.error(f"Chat completion streaming error: {detail}")
            raise DialogueFailed(f"LLM streaming failed: {detail}") from exc

        try:
            async for chunk in stream:
                if not chunk.choices:
                    continue
                content = chunk.choices[0].delta.content
                if content:
                    yield content
        except openai.OpenAIError as exc:
            detail = describe_provider_error(exc)
            logger.error(f"Chat completion streaming error: {detail}")
            raise DialogueFailed(f"LLM streaming failed: {detail}") from exc
        finally:
            await stream.close()

    async def generate_response_streaming(
        self,
        user_message: str,
        history: Sequence[ConversationTurn] = (),
        on_chunk: Optional[ChunkSink] = None,
        model: Optional[str] = None,
    ) -> str:
        """Push every fragment to ``on_chunk`` and return the full reply."""

        parts: list[str] = []
        async for fragment in self.stream_response(user_message, history, model):
            parts.append(fragment)
            if on_chunk is not None:
                result = on_chunk(fragment)
                if inspect.isawaitable(result):
                    await result
        return "".join(parts)


__all__ = ["DEFAULT_CHAT_MODEL", "DialogueClient", "MAX_TOKENS", "TEMPERATURE"]
