"""Factory for model provider drivers."""

from __future__ import annotations

from .providers_base import ModelProvider
from .providers_gemini import DEFAULT_API_URL_BASE, GeminiDriver


def create_provider(
    name: str,
    *,
    api_key: str | None = None,
    api_url_base: str = DEFAULT_API_URL_BASE,
    timeout_seconds: float = 600.0,
) -> ModelProvider:
    """Instantiate provider driver by name."""
    lower = name.lower()
    if lower == "gemini":
        return GeminiDriver(
            api_key=api_key,
            api_url_base=api_url_base,
            timeout_seconds=timeout_seconds,
        )
    raise ValueError(f"Unsupported provider '{name}'")
