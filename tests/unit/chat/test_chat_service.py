from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone

import pytest

from src.media_ticket.analysis.analysis_errors import ProviderCallError
from src.media_ticket.chat.chat_service import ChatService
from src.media_ticket.chat.chat_sessions import InMemorySessionStore, new_session_id
from src.media_ticket.exceptions import SessionNotFoundError
from tests.mocks.providers import FakeModelProvider

pytestmark = pytest.mark.unit

START = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def test_session_id_format() -> None:
    session_id = new_session_id(START)

    assert re.fullmatch(r"chat_\d+_[0-9a-z]{9}", session_id)
    assert session_id.startswith(f"chat_{int(START.timestamp() * 1000)}_")


def test_create_session_stores_instruction() -> None:
    store = InMemorySessionStore()
    service = ChatService(provider=FakeModelProvider(), store=store, clock=FakeClock(START))

    session_id = service.create_session("You reviewed these issues: ...")

    session = service.get_session(session_id)
    assert session.system_instruction == "You reviewed these issues: ..."
    assert session.history == []
    assert len(store) == 1


def test_creating_a_session_evicts_expired_ones() -> None:
    clock = FakeClock(START)
    store = InMemorySessionStore()
    service = ChatService(
        provider=FakeModelProvider(), store=store, clock=clock, session_ttl_seconds=3600
    )
    old_id = service.create_session(None)
    clock.now = START + timedelta(minutes=30)
    recent_id = service.create_session(None)

    clock.now = START + timedelta(hours=1, minutes=1)
    newest_id = service.create_session(None)

    assert store.get(old_id) is None
    assert store.get(recent_id) is not None
    assert store.get(newest_id) is not None
    with pytest.raises(SessionNotFoundError, match="not found or expired"):
        service.get_session(old_id)


def test_unknown_session_raises_before_streaming() -> None:
    service = ChatService(provider=FakeModelProvider())

    with pytest.raises(SessionNotFoundError):
        service.stream_message("chat_0_missing", "hello")


@pytest.mark.asyncio
async def test_stream_message_records_both_turns() -> None:
    provider = FakeModelProvider(chat_chunks=["The focus ", "issue is ", "critical."])
    service = ChatService(provider=provider, model="chat-model", use_search=True)
    session_id = service.create_session("Audit context")

    chunks = [chunk async for chunk in service.stream_message(session_id, "Which issue first?")]

    assert chunks == ["The focus ", "issue is ", "critical."]
    history = service.get_session(session_id).history
    assert [(turn.role, turn.text) for turn in history] == [
        ("user", "Which issue first?"),
        ("model", "The focus issue is critical."),
    ]
    [request] = provider.chat_requests
    assert request.model == "chat-model"
    assert request.system_instruction == "Audit context"
    assert request.use_search is True
    assert [turn.text for turn in request.history] == ["Which issue first?"]


@pytest.mark.asyncio
async def test_follow_up_message_carries_history() -> None:
    provider = FakeModelProvider(chat_chunks=["ok"])
    service = ChatService(provider=provider)
    session_id = service.create_session(None)

    _ = [chunk async for chunk in service.stream_message(session_id, "first")]
    _ = [chunk async for chunk in service.stream_message(session_id, "second")]

    assert [turn.text for turn in provider.chat_requests[1].history] == ["first", "ok", "second"]


@pytest.mark.asyncio
async def test_failed_reply_leaves_history_unchanged() -> None:
    provider = FakeModelProvider(
        chat_chunks=["partial"], chat_error=ProviderCallError("Quota exceeded 429")
    )
    service = ChatService(provider=provider)
    session_id = service.create_session(None)

    with pytest.raises(ProviderCallError):
        _ = [chunk async for chunk in service.stream_message(session_id, "hello")]

    assert service.get_session(session_id).history == []


@pytest.mark.asyncio
async def test_failed_repeat_message_rolls_back_only_the_latest_turn() -> None:
    provider = FakeModelProvider()
    service = ChatService(provider=provider)
    session_id = service.create_session(None)

    provider.chat_chunks = ["first answer"]
    _ = [chunk async for chunk in service.stream_message(session_id, "yes")]
    provider.chat_chunks = ["second answer"]
    _ = [chunk async for chunk in service.stream_message(session_id, "no")]

    provider.chat_chunks = []
    provider.chat_error = ProviderCallError("Quota exceeded 429")
    with pytest.raises(ProviderCallError):
        _ = [chunk async for chunk in service.stream_message(session_id, "yes")]

    history = service.get_session(session_id).history
    assert [(turn.role, turn.text) for turn in history] == [
        ("user", "yes"),
        ("model", "first answer"),
        ("user", "no"),
        ("model", "second answer"),
    ]
