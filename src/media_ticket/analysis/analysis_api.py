"""HTTP routes for media analysis."""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from collections import Counter
from dataclasses import replace

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from ..api.errors import HTTP_CLIENT_CLOSED_REQUEST
from ..exceptions import AnalysisCancelledError
from ..prompts.prompt_builder import ORIGINAL_LANGUAGE, MediaContext, build_system_prompt
from ..prompts.response_schema import build_response_schema
from .analysis_models import AnalysisRequest, MediaKind
from .analysis_schemas import AnalysisResponse, AnalyzeMediaRequest, AnalyzeVideoRequest
from .analysis_service import MediaAnalysisService

router = APIRouter(prefix="/api", tags=["analysis"])
logger = logging.getLogger(__name__)

DISCONNECT_POLL_SECONDS = 0.5


def get_analysis_service(request: Request) -> MediaAnalysisService:
    """Fetch analysis service from application state."""
    try:
        return request.app.state.analysis_service  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - misconfigured app
        raise RuntimeError("MediaAnalysisService is not configured") from exc


async def _watch_disconnect(request: Request, cancel_event: asyncio.Event) -> None:
    while not cancel_event.is_set():
        if await request.is_disconnected():
            logger.info("analysis.client_disconnected", extra={"path": request.url.path})
            cancel_event.set()
            return
        await asyncio.sleep(DISCONNECT_POLL_SECONDS)


def media_context(analysis_request: AnalysisRequest, target_language: str) -> MediaContext:
    counts = Counter(item.kind for item in analysis_request.media)
    return MediaContext(
        video_count=counts[MediaKind.VIDEO],
        audio_count=counts[MediaKind.AUDIO],
        image_count=counts[MediaKind.IMAGE],
        pdf_count=counts[MediaKind.PDF],
        target_language=target_language,
    )


def with_default_prompt(
    request: Request,
    analysis_request: AnalysisRequest,
    target_language: str = ORIGINAL_LANGUAGE,
) -> AnalysisRequest:
    """Fill a missing system instruction or response schema server-side.

    The instruction is built from the stored prompt preferences.
    """

    if analysis_request.system_instruction and analysis_request.response_schema:
        return analysis_request
    system_instruction = analysis_request.system_instruction
    if not system_instruction:
        store = getattr(request.app.state, "prompt_settings_store", None)
        settings = store.load() if store is not None else None
        system_instruction = build_system_prompt(
            media_context(analysis_request, target_language), settings
        )
        logger.info(
            "analysis.default_prompt",
            extra={"prompt_chars": len(system_instruction), "target_language": target_language},
        )
    return replace(
        analysis_request,
        system_instruction=system_instruction,
        response_schema=analysis_request.response_schema or build_response_schema(),
    )


async def _run_analysis(
    request: Request,
    service: MediaAnalysisService,
    analysis_request: AnalysisRequest,
) -> AnalysisResponse | Response:
    cancel_event = asyncio.Event()
    watcher = asyncio.create_task(_watch_disconnect(request, cancel_event))
    try:
        result = await service.analyze(analysis_request, cancel_event=cancel_event)
    except AnalysisCancelledError:
        return Response(status_code=HTTP_CLIENT_CLOSED_REQUEST)
    finally:
        watcher.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await watcher

    issues = [issue.to_dict() for issue in result.issues]
    return AnalysisResponse(
        text=json.dumps(result.payload()),
        metadata=result.metadata(),
        issues=issues,
    )


@router.post("/analyze-media", response_model=None)
async def analyze_media(
    payload: AnalyzeMediaRequest,
    request: Request,
    service: MediaAnalysisService = Depends(get_analysis_service),
) -> AnalysisResponse | Response:
    """Analyse a mixed batch of videos, audio, screenshots and PDFs."""
    analysis_request = with_default_prompt(
        request, payload.to_analysis_request(), payload.target_language
    )
    return await _run_analysis(request, service, analysis_request)


@router.post("/analyze-video", response_model=None)
async def analyze_video(
    payload: AnalyzeVideoRequest,
    request: Request,
    service: MediaAnalysisService = Depends(get_analysis_service),
) -> AnalysisResponse | Response:
    """Single-video variant kept for older clients."""
    analysis_request = with_default_prompt(request, payload.to_analysis_request())
    return await _run_analysis(request, service, analysis_request)
