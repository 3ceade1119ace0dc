"""Data structures for the media analysis pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from ..issues.issue_models import Issue
from .analysis_errors import ProviderErrorKind

STATIC_BATCH_LABEL = "Static Media Batch"


class MediaKind(StrEnum):
    VIDEO = "video"
    AUDIO = "audio"
    IMAGE = "image"
    PDF = "pdf"

    @property
    def is_time_based(self) -> bool:
        return self in (MediaKind.VIDEO, MediaKind.AUDIO)


@dataclass(slots=True, frozen=True)
class MediaItem:
    """One uploaded file; ``content`` is the decoded payload."""

    id: str
    kind: MediaKind
    mime_type: str
    content: bytes = b""
    comment: str | None = None
    name: str | None = None

    @property
    def has_content(self) -> bool:
        return bool(self.content)


@dataclass(slots=True, frozen=True)
class AnalysisRequest:
    media: tuple[MediaItem, ...]
    system_instruction: str
    response_schema: dict[str, Any] | None = None


@dataclass(slots=True)
class TokenUsage:
    input_tokens: int = 0
    output_tokens: int = 0

    def __add__(self, other: "TokenUsage") -> "TokenUsage":
        return TokenUsage(
            input_tokens=self.input_tokens + other.input_tokens,
            output_tokens=self.output_tokens + other.output_tokens,
        )


@dataclass(slots=True)
class ItemSuccess:
    """Parsed output of one successful model call."""

    index: int | None
    raw_text: str
    transcript: str
    issues: list[Issue]
    usage: TokenUsage

    success: bool = True


@dataclass(slots=True)
class ItemFailure:
    """A model call that did not produce usable output.

    ``index`` is the zero-based position in the submitted media list, or
    ``None`` for the static batch. ``position`` is one-based among
    time-based items.
    """

    index: int | None
    position: int | None
    kind: MediaKind | None
    error: str
    error_kind: ProviderErrorKind = ProviderErrorKind.UNKNOWN

    success: bool = False

    @property
    def label(self) -> str:
        if self.kind is None or self.position is None:
            return STATIC_BATCH_LABEL
        return f"{self.kind.value.capitalize()} {self.position}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "item": self.label,
            "index": self.index,
            "error": self.error,
            "errorKind": str(self.error_kind),
        }


PerItemResult = ItemSuccess | ItemFailure


@dataclass(slots=True)
class StageTiming:
    name: str
    start_ms: int
    end_ms: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "startTime": self.start_ms,
            "endTime": self.end_ms,
            "status": "complete" if self.end_ms else "running",
        }


@dataclass(slots=True)
class CostBreakdown:
    input_tokens: int
    output_tokens: int
    media_count: int
    input_cost: float
    output_cost: float

    @property
    def total_cost(self) -> float:
        return self.input_cost + self.output_cost

    def to_dict(self) -> dict[str, Any]:
        return {
            "inputTokens": self.input_tokens,
            "outputTokens": self.output_tokens,
            "mediaCount": self.media_count,
            "inputCost": self.input_cost,
            "outputCost": self.output_cost,
            "totalCost": self.total_cost,
        }


@dataclass(slots=True)
class AggregateResult:
    """Unified outcome of one analysis run."""

    issues: list[Issue]
    transcript: str
    transcripts: list[str]
    usage: TokenUsage
    cost: CostBreakdown
    stages: list[StageTiming]
    failures: list[ItemFailure]
    model: str
    processing_time_ms: int
    system_prompt: str = ""
    timestamp: str = ""

    def payload(self) -> dict[str, Any]:
        """Document serialised into the ``text`` field of the HTTP response."""

        return {
            "issues": [issue.to_dict() for issue in self.issues],
            "transcript": self.transcript,
            "transcripts": list(self.transcripts),
        }

    def metadata(self) -> dict[str, Any]:
        return {
            "systemPrompt": self.system_prompt,
            "processingTimeMs": self.processing_time_ms,
            "model": self.model,
            "costBreakdown": self.cost.to_dict(),
            "stages": [stage.to_dict() for stage in self.stages],
            "failures": [failure.to_dict() for failure in self.failures],
            "timestamp": self.timestamp,
        }
