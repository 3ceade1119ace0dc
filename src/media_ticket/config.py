"""Environment-driven settings for the MediaToTicket service.

Every field reads ``MEDIA_TICKET_<FIELD>`` except the Gemini key, which keeps
the conventional ``GEMINI_API_KEY`` name.
"""

from __future__ import annotations

from dataclasses import asdict
from pathlib import Path
from typing import Dict

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .analysis.analysis_service import DEFAULT_ANALYSIS_MODEL
from .analysis.analysis_telemetry import DEFAULT_MODEL_PRICING, ModelPricing
from .chat.chat_service import DEFAULT_CHAT_MODEL
from .providers.providers_gemini import DEFAULT_API_URL_BASE


def _default_pricing() -> Dict[str, Dict[str, float]]:
    return {model: asdict(rate) for model, rate in DEFAULT_MODEL_PRICING.items()}


class AppConfig(BaseSettings):
    """Pydantic settings container for the service layer."""

    model_config = SettingsConfigDict(env_prefix="MEDIA_TICKET_", extra="ignore")

    gemini_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("GEMINI_API_KEY", "gemini_api_key"),
        description="API key sent to the Gemini REST API.",
    )
    gemini_api_url_base: str = Field(
        default=DEFAULT_API_URL_BASE,
        description="Base URL of the Gemini REST API.",
    )
    provider: str = Field(
        default="gemini",
        description="Model provider driving analysis and chat.",
    )
    analysis_model: str = Field(default=DEFAULT_ANALYSIS_MODEL)
    chat_model: str = Field(default=DEFAULT_CHAT_MODEL)
    model_pricing: Dict[str, Dict[str, float]] = Field(
        default_factory=_default_pricing,
        description="USD per million tokens keyed by model, as {input, output}.",
    )
    inter_call_delay_seconds: float = Field(
        default=1.0,
        ge=0.0,
        description="Pause between sequential time-based media calls.",
    )
    request_timeout_seconds: float = Field(
        default=600.0,
        gt=0.0,
        description="httpx timeout for a single provider call.",
    )
    chat_session_ttl_seconds: int = Field(default=3600, ge=1)
    chat_use_search: bool = Field(
        default=True,
        description="Enable the Google Search tool for chat replies.",
    )
    rate_limit_per_hour: int = Field(
        default=10,
        ge=0,
        description="Requests per client IP per hour on /api routes; 0 disables the limit.",
    )
    frontend_url: str = Field(default="http://localhost:3000")
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3001, ge=1, le=65535)
    prompt_settings_path: Path = Field(default=Path("./var/prompt_settings.json"))
    validate_models: bool = Field(
        default=True,
        description="Probe configured models at startup when an API key is present.",
    )
    debug: bool = Field(
        default=False,
        description="Include error details in 500 responses.",
    )
    log_level: str = Field(default="INFO")

    def pricing_table(self) -> dict[str, ModelPricing]:
        table = dict(DEFAULT_MODEL_PRICING)
        for model, rate in self.model_pricing.items():
            table[model] = ModelPricing(
                input=float(rate.get("input", 0.0)),
                output=float(rate.get("output", 0.0)),
            )
        return table


def load_config() -> AppConfig:
    """Load configuration from the environment."""
    return AppConfig()


__all__ = ["AppConfig", "load_config"]
