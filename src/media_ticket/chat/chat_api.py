"""HTTP routes for follow-up chat about an analysis."""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, ConfigDict, Field

from ..analysis.analysis_errors import ProviderCallError, format_provider_error
from ..api.errors import ApiError
from .chat_service import ChatService

router = APIRouter(prefix="/api", tags=["chat"])
logger = logging.getLogger(__name__)

SSE_DONE = "data: [DONE]\n\n"


class CreateChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    system_instruction: str | None = Field(default=None, alias="systemInstruction")


class CreateChatResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(serialization_alias="sessionId")


class ChatMessageRequest(BaseModel):
    message: str | None = None


def get_chat_service(request: Request) -> ChatService:
    """Fetch chat service from application state."""
    try:
        return request.app.state.chat_service  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - misconfigured app
        raise RuntimeError("ChatService is not configured") from exc


def sse_event(payload: dict[str, str]) -> str:
    return f"data: {json.dumps(payload)}\n\n"


async def _relay(first: str | None, chunks: AsyncIterator[str], session_id: str) -> AsyncIterator[str]:
    if first is not None:
        yield sse_event({"text": first})
        try:
            async for chunk in chunks:
                yield sse_event({"text": chunk})
        except ProviderCallError as exc:
            # Headers are already out; report in-band and end the stream.
            logger.error(
                "chat.stream.failed",
                extra={"session_id": session_id, "error": str(exc), "error_kind": str(exc.kind)},
            )
            yield sse_event({"error": format_provider_error(exc)})
            return
    yield SSE_DONE


@router.post("/create-chat")
def create_chat(
    payload: CreateChatRequest,
    service: ChatService = Depends(get_chat_service),
) -> CreateChatResponse:
    session_id = service.create_session(payload.system_instruction)
    return CreateChatResponse(session_id=session_id)


@router.post("/chat/{session_id}/message")
async def send_message(
    session_id: str,
    payload: ChatMessageRequest,
    service: ChatService = Depends(get_chat_service),
) -> StreamingResponse:
    """Stream the reply as ``text/event-stream`` events ending in ``[DONE]``."""

    service.get_session(session_id)
    if not payload.message:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Message is required")

    chunks = service.stream_message(session_id, payload.message)
    # Pull the first chunk up front so provider failures still map to a 500.
    try:
        first: str | None = await anext(chunks)
    except StopAsyncIteration:
        first = None
    except ProviderCallError as exc:
        raise ApiError(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            format_provider_error(exc),
            details=str(exc),
        ) from exc

    return StreamingResponse(
        _relay(first, chunks, session_id),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )
