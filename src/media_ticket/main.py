"""FastAPI application entry point."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.errors import register_error_handlers
from .config import AppConfig, load_config
from .dependencies import include_routers
from .lifecycle import validate_models
from .logging import configure_logging
from .providers.providers_base import ModelProvider

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    config: AppConfig = app.state.config
    if not config.gemini_api_key:
        logger.warning("startup.api_key_missing")
    elif config.validate_models:
        await validate_models(app.state.provider, [config.analysis_model, config.chat_model])
    logger.info(
        "startup.ready",
        extra={"analysis_model": config.analysis_model, "chat_model": config.chat_model},
    )
    yield
    logger.info("shutdown.complete")


def create_app(
    config: AppConfig | None = None,
    *,
    provider: ModelProvider | None = None,
) -> FastAPI:
    """Build FastAPI instance with configured dependencies."""
    cfg = config or load_config()
    configure_logging(cfg.log_level)
    app = FastAPI(title="MediaToTicket", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[cfg.frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)
    include_routers(app, cfg, provider=provider)
    return app


app = create_app()


def run() -> None:
    """Serve the module-level app with uvicorn."""
    import uvicorn

    cfg = app.state.config
    uvicorn.run(app, host=cfg.host, port=cfg.port, log_config=None)
