"""Dependency wiring helpers."""

from __future__ import annotations

from fastapi import Depends, FastAPI

from .analysis.analysis_api import router as analysis_router
from .analysis.analysis_service import MediaAnalysisService
from .api.health import router as health_router
from .api.rate_limit import ApiRateLimiter, enforce_rate_limit
from .chat.chat_api import router as chat_router
from .chat.chat_service import ChatService
from .chat.chat_sessions import InMemorySessionStore
from .config import AppConfig
from .prompts.prompt_settings import PromptSettingsStore
from .prompts.prompt_settings_api import router as prompt_settings_router
from .providers.providers_base import ModelProvider
from .providers.providers_factory import create_provider


def build_provider(config: AppConfig) -> ModelProvider:
    return create_provider(
        config.provider,
        api_key=config.gemini_api_key,
        api_url_base=config.gemini_api_url_base,
        timeout_seconds=config.request_timeout_seconds,
    )


def include_routers(
    app: FastAPI,
    config: AppConfig,
    *,
    provider: ModelProvider | None = None,
) -> None:
    """Mount module routers and attach services."""
    provider = provider or build_provider(config)

    app.state.config = config
    app.state.provider = provider
    app.state.analysis_service = MediaAnalysisService(
        provider=provider,
        model=config.analysis_model,
        pricing=config.pricing_table(),
        inter_call_delay_seconds=config.inter_call_delay_seconds,
    )
    app.state.chat_service = ChatService(
        provider=provider,
        model=config.chat_model,
        session_ttl_seconds=config.chat_session_ttl_seconds,
        store=InMemorySessionStore(),
        use_search=config.chat_use_search,
    )
    app.state.prompt_settings_store = PromptSettingsStore(config.prompt_settings_path)
    app.state.rate_limiter = (
        ApiRateLimiter(limit=config.rate_limit_per_hour)
        if config.rate_limit_per_hour > 0
        else None
    )

    limited = [Depends(enforce_rate_limit)]
    app.include_router(health_router)
    app.include_router(analysis_router, dependencies=limited)
    app.include_router(chat_router, dependencies=limited)
    app.include_router(prompt_settings_router, dependencies=limited)
