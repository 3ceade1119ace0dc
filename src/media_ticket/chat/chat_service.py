"""Chat sessions relayed to the model provider as a text stream."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from datetime import timedelta

from ..exceptions import SessionNotFoundError
from ..providers.providers_base import ChatRequest, ChatTurn, ModelProvider
from .chat_sessions import (
    ChatSession,
    InMemorySessionStore,
    SessionClock,
    SessionStore,
    new_session_id,
    utcnow,
)

logger = logging.getLogger(__name__)

DEFAULT_CHAT_MODEL = "gemini-2.5-flash-preview-09-2025"


@dataclass(slots=True)
class ChatService:
    """Creates chat sessions and streams replies for them.

    Sessions older than ``session_ttl_seconds`` are pruned whenever a new
    one is created.
    """

    provider: ModelProvider
    model: str = DEFAULT_CHAT_MODEL
    session_ttl_seconds: int = 3600
    store: SessionStore = field(default_factory=InMemorySessionStore)
    clock: SessionClock = utcnow
    use_search: bool = True
    log: logging.Logger = field(default_factory=lambda: logger)

    def create_session(self, system_instruction: str | None) -> str:
        now = self.clock()
        session = ChatSession(
            session_id=new_session_id(now),
            model=self.model,
            system_instruction=system_instruction or None,
            created_at=now,
        )
        self.store.put(session)
        evicted = self.store.evict_older_than(now - timedelta(seconds=self.session_ttl_seconds))
        self.log.info(
            "chat.session.created",
            extra={"session_id": session.session_id, "evicted_sessions": evicted},
        )
        return session.session_id

    def get_session(self, session_id: str) -> ChatSession:
        session = self.store.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def stream_message(self, session_id: str, message: str) -> AsyncIterator[str]:
        """Return an iterator over reply chunks.

        The session is resolved eagerly so an unknown id raises
        :class:`SessionNotFoundError` before any streaming starts.
        """

        session = self.get_session(session_id)
        return self._stream_reply(session, message)

    async def _stream_reply(self, session: ChatSession, message: str) -> AsyncIterator[str]:
        position = len(session.history)
        session.history.append(ChatTurn(role="user", text=message))
        request = ChatRequest(
            model=session.model,
            history=list(session.history),
            system_instruction=session.system_instruction,
            use_search=self.use_search,
        )
        self.log.info(
            "chat.message.start",
            extra={"session_id": session.session_id, "turns": len(session.history)},
        )
        chunks: list[str] = []
        try:
            async for chunk in self.provider.stream_chat(request):
                chunks.append(chunk)
                yield chunk
        except BaseException:
            del session.history[position:]
            self.log.warning(
                "chat.message.aborted",
                extra={"session_id": session.session_id, "chunks_sent": len(chunks)},
            )
            raise
        session.history.append(ChatTurn(role="model", text="".join(chunks)))
        self.log.info(
            "chat.message.done",
            extra={"session_id": session.session_id, "chunks_sent": len(chunks)},
        )
