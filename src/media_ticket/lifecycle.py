"""Startup checks run from the FastAPI lifespan."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from .analysis.analysis_errors import ProviderCallError, ProviderErrorKind
from .exceptions import ConfigurationError
from .providers.providers_base import ModelProvider

logger = logging.getLogger(__name__)


async def validate_models(provider: ModelProvider, models: Iterable[str]) -> list[str]:
    """Probe each model once and return the ones that answered.

    A model the provider does not know aborts startup; any other failure
    (quota, network) is only logged so the service can still come up.
    """

    verified: list[str] = []
    for model in dict.fromkeys(models):
        try:
            await provider.probe(model)
        except ProviderCallError as exc:
            if exc.kind is ProviderErrorKind.MODEL_NOT_FOUND:
                logger.error(
                    "startup.model_not_found",
                    extra={"model": model, "error": str(exc)},
                )
                raise ConfigurationError(
                    f"Model '{model}' is not available: {exc}"
                ) from exc
            logger.warning(
                "startup.model_probe_failed",
                extra={"model": model, "error": str(exc), "error_kind": str(exc.kind)},
            )
            continue
        logger.info("startup.model_verified", extra={"model": model})
        verified.append(model)
    return verified


__all__ = ["validate_models"]
