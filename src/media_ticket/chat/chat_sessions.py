"""Chat session records and their in-process store."""

from __future__ import annotations

import secrets
import string
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone

from ..providers.providers_base import ChatTurn

_BASE36 = string.digits + string.ascii_lowercase
SESSION_SUFFIX_LENGTH = 9


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_session_id(now: datetime) -> str:
    """Return ``chat_<epoch_ms>_<9 base36 chars>``."""

    suffix = "".join(secrets.choice(_BASE36) for _ in range(SESSION_SUFFIX_LENGTH))
    return f"chat_{int(now.timestamp() * 1000)}_{suffix}"


@dataclass(slots=True)
class ChatSession:
    session_id: str
    model: str
    system_instruction: str | None
    created_at: datetime
    history: list[ChatTurn] = field(default_factory=list)


class SessionStore(ABC):
    """Keyed chat session storage with age-based eviction."""

    @abstractmethod
    def get(self, session_id: str) -> ChatSession | None:
        """Return the session or ``None`` when unknown."""

    @abstractmethod
    def put(self, session: ChatSession) -> None:
        """Insert or replace ``session``."""

    @abstractmethod
    def evict_older_than(self, cutoff: datetime) -> int:
        """Drop sessions created before ``cutoff`` and return how many went."""


class InMemorySessionStore(SessionStore):
    """Dictionary-backed store; safe to share between worker threads."""

    def __init__(self) -> None:
        self._sessions: dict[str, ChatSession] = {}
        self._lock = threading.Lock()

    def get(self, session_id: str) -> ChatSession | None:
        with self._lock:
            return self._sessions.get(session_id)

    def put(self, session: ChatSession) -> None:
        with self._lock:
            self._sessions[session.session_id] = session

    def evict_older_than(self, cutoff: datetime) -> int:
        with self._lock:
            stale = [sid for sid, session in self._sessions.items() if session.created_at < cutoff]
            for sid in stale:
                del self._sessions[sid]
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


SessionClock = Callable[[], datetime]
