"""Token cost and stage timeline bookkeeping for analysis runs."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field

from .analysis_models import CostBreakdown, StageTiming, TokenUsage

logger = logging.getLogger(__name__)

TOKENS_PER_UNIT = 1_000_000
FALLBACK_PRICING_MODEL = "gemini-2.5-flash"

STAGE_MEDIA_UPLOAD = "Media Upload"
STAGE_ANALYSIS = "Analysis"
STAGE_AGGREGATION = "Aggregation"


@dataclass(slots=True, frozen=True)
class ModelPricing:
    """USD per one million tokens."""

    input: float
    output: float


DEFAULT_MODEL_PRICING: dict[str, ModelPricing] = {
    "gemini-2.5-flash-preview-09-2025": ModelPricing(input=0.15, output=0.60),
    "gemini-2.5-flash": ModelPricing(input=0.30, output=2.50),
    "gemini-3-flash-preview": ModelPricing(input=0.50, output=3.00),
    "gemini-3-pro-preview": ModelPricing(input=2.50, output=10.00),
}


def now_ms() -> int:
    return int(time.time() * 1000)


def resolve_pricing(model: str, pricing: Mapping[str, ModelPricing]) -> ModelPricing:
    rate = pricing.get(model)
    if rate is not None:
        return rate
    logger.warning(
        "analysis.pricing.fallback",
        extra={"model": model, "fallback_model": FALLBACK_PRICING_MODEL},
    )
    return pricing.get(FALLBACK_PRICING_MODEL) or DEFAULT_MODEL_PRICING[FALLBACK_PRICING_MODEL]


def compute_cost(
    model: str,
    usage: TokenUsage,
    *,
    media_count: int,
    pricing: Mapping[str, ModelPricing] = DEFAULT_MODEL_PRICING,
) -> CostBreakdown:
    rate = resolve_pricing(model, pricing)
    return CostBreakdown(
        input_tokens=usage.input_tokens,
        output_tokens=usage.output_tokens,
        media_count=media_count,
        input_cost=usage.input_tokens / TOKENS_PER_UNIT * rate.input,
        output_cost=usage.output_tokens / TOKENS_PER_UNIT * rate.output,
    )


@dataclass(slots=True)
class StageTimeline:
    """Records named stages as epoch-millisecond intervals."""

    clock: Callable[[], int] = now_ms
    stages: list[StageTiming] = field(default_factory=list)

    def start(self, name: str) -> StageTiming:
        stage = StageTiming(name=name, start_ms=self.clock(), end_ms=0)
        self.stages.append(stage)
        return stage

    def finish(self, stage: StageTiming) -> None:
        stage.end_ms = self.clock()
