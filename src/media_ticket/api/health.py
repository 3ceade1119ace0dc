"""Liveness endpoint."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/health")
def health(request: Request) -> dict[str, object]:
    config = request.app.state.config
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "apiKeyConfigured": bool(config.gemini_api_key),
    }
