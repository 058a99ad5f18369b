"""Process-lifetime storage of per-session conversation history."""

from __future__ import annotations

import asyncio
import logging
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import AsyncIterator, Iterable, Protocol

from ..schemas.conversation import ConversationTurn

logger = logging.getLogger(__name__)

DEFAULT_SESSION_ID = "default"


class SessionStore(Protocol):
    """Keyed conversation history storage used by the orchestrator."""

    def get(self, session_id: str) -> list[ConversationTurn]: ...

    def append(self, session_id: str, turns: Iterable[ConversationTurn]) -> None: ...

    def clear(self, session_id: str) -> bool: ...

    def session_ids(self) -> list[str]: ...

    def lock(self, session_id: str) -> AbstractAsyncContextManager[None]: ...


class InMemorySessionStore:
    """Dict-backed history store.

    With ``serialize`` enabled, :meth:`lock` yields one lock per session so
    the read, respond and commit section of concurrent exchanges on the same
    session runs one at a time. Without it, concurrent exchanges may read
    the same snapshot. Both commits are kept, but neither reply saw the
    other exchange's turns.
    """

    def __init__(self, *, serialize: bool = True) -> None:
        self._histories: dict[str, list[ConversationTurn]] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._serialize = serialize

    def get(self, session_id: str) -> list[ConversationTurn]:
        return list(self._histories.get(session_id, ()))

    def append(self, session_id: str, turns: Iterable[ConversationTurn]) -> None:
        new_turns = list(turns)
        self._histories[session_id] = self.get(session_id) + new_turns
        logger.debug(
            "Session %s: appended %d turn(s), %d total",
            session_id,
            len(new_turns),
            len(self._histories[session_id]),
        )

    def clear(self, session_id: str) -> bool:
        # The session lock survives so exchanges still in flight keep serializing
        existed = self._histories.pop(session_id, None) is not None
        if existed:
            logger.info("Cleared conversation history for session %s", session_id)
        return existed

    def session_ids(self) -> list[str]:
        return list(self._histories)

    @asynccontextmanager
    async def lock(self, session_id: str) -> AsyncIterator[None]:
        if not self._serialize:
            yield
            return
        lock = self._locks.get(session_id)
        if lock is None:
            lock = self._locks[session_id] = asyncio.Lock()
        async with lock:
            yield


__all__ = ["DEFAULT_SESSION_ID", "InMemorySessionStore", "SessionStore"]
