"""Domain service that fans uploaded media out to the model and merges the results."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TypeVar

from ..exceptions import AnalysisCancelledError, ValidationError
from ..parsing.transcript_parser import parse_transcript
from ..providers.providers_base import ContentPart, GenerationRequest, ModelProvider
from .analysis_aggregation import collect_results, parse_model_output
from .analysis_errors import (
    AggregateFailureError,
    ProviderCallError,
    classify_provider_error,
    format_provider_error,
)
from .analysis_models import (
    AggregateResult,
    AnalysisRequest,
    ItemFailure,
    ItemSuccess,
    MediaItem,
    MediaKind,
    PerItemResult,
    TokenUsage,
)
from .analysis_telemetry import (
    DEFAULT_MODEL_PRICING,
    STAGE_AGGREGATION,
    STAGE_ANALYSIS,
    STAGE_MEDIA_UPLOAD,
    ModelPricing,
    StageTimeline,
    compute_cost,
    now_ms,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_ANALYSIS_MODEL = "gemini-2.5-flash-preview-09-2025"

TIME_BASED_INSTRUCTION = """Analyze this {kind} specifically. Perform an exhaustive accessibility audit using Deque WCAG 2.2 and Axe-core 4.11 standards.

CRITICAL TRANSCRIPT REQUIREMENT:
- You MUST provide a COMPLETE verbatim transcript of ALL spoken audio in this file
- Transcribe EVERY word spoken from start to finish
- Do NOT use placeholder text like "Transcription will start soon" or "No transcript available"
- If there is audio content, transcribe it completely

TRANSCRIPT FORMAT (STRICT - DO NOT DEVIATE):
- Each speaker turn MUST be on its OWN LINE (separated by newline characters)
- Format: SpeakerName [MM:SS]: Message
- Use actual newline characters (\\n) to separate each speaker turn
- Do NOT put multiple speaker turns on the same line
- Do NOT output as a continuous paragraph

CORRECT EXAMPLE:
Narrator [00:00]: Welcome to this demo.
User [00:05]: I'm going to test the navigation.
Narrator [00:12]: The focus moves to the menu.

INCORRECT (DO NOT DO THIS):
Narrator [00:00]: Welcome. User [00:05]: Testing. Narrator [00:12]: Focus moves.

Timestamps must be relative to the start of THIS file, starting at [00:00].
Provide the full transcript and structured issues list."""

STATIC_BATCH_INSTRUCTION = (
    "Perform an exhaustive accessibility audit on these static assets using Deque "
    "WCAG 2.2 and Axe-core 4.11 standards. Provide a structured issues list."
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class MediaAnalysisService:
    """Coordinates one analysis run over a batch of uploaded media.

    Time-based items (video, audio) are analysed one at a time with a pause
    between calls. Static items (images, PDFs) share a single call issued
    after the time-based sequence. A failed call is recorded and its siblings
    carry on; only a run where nothing succeeded raises.
    """

    provider: ModelProvider
    model: str = DEFAULT_ANALYSIS_MODEL
    pricing: Mapping[str, ModelPricing] = field(default_factory=lambda: dict(DEFAULT_MODEL_PRICING))
    inter_call_delay_seconds: float = 1.0
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    clock: Callable[[], int] = now_ms
    log: logging.Logger = field(default_factory=lambda: logger)

    async def analyze(
        self,
        request: AnalysisRequest,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> AggregateResult:
        timeline = StageTimeline(clock=self.clock)
        started_ms = self.clock()

        upload_stage = timeline.start(STAGE_MEDIA_UPLOAD)
        self._validate(request)
        time_based = [
            (index, item) for index, item in enumerate(request.media) if item.kind.is_time_based
        ]
        static = [item for item in request.media if not item.kind.is_time_based]
        self.log.info(
            "analysis.start",
            extra={
                "media_count": len(request.media),
                "time_based_count": len(time_based),
                "static_count": len(static),
                "model": self.model,
            },
        )
        timeline.finish(upload_stage)

        analysis_stage = timeline.start(STAGE_ANALYSIS)
        time_based_results: list[PerItemResult] = []
        for position, (index, item) in enumerate(time_based, start=1):
            if position > 1 and self.inter_call_delay_seconds > 0:
                await self._cancellable(self.sleep(self.inter_call_delay_seconds), cancel_event)
            result = await self._analyze_time_based(
                item, index=index, position=position, request=request, cancel_event=cancel_event
            )
            time_based_results.append(result)

        static_result: PerItemResult | None = None
        if static:
            static_result = await self._analyze_static_batch(
                static, request=request, cancel_event=cancel_event
            )
        timeline.finish(analysis_stage)

        aggregation_stage = timeline.start(STAGE_AGGREGATION)
        issues, transcript, transcripts, usage, failures = collect_results(
            time_based_results, static_result
        )
        attempted = len(time_based_results) + (1 if static_result is not None else 0)
        if failures and len(failures) == attempted:
            self.log.error(
                "analysis.all_failed",
                extra={"failures": [failure.to_dict() for failure in failures]},
            )
            raise AggregateFailureError(failures)

        cost = compute_cost(
            self.model, usage, media_count=len(request.media), pricing=self.pricing
        )
        timeline.finish(aggregation_stage)

        processing_time_ms = self.clock() - started_ms
        self.log.info(
            "analysis.done",
            extra={
                "issue_count": len(issues),
                "failure_count": len(failures),
                "input_tokens": usage.input_tokens,
                "output_tokens": usage.output_tokens,
                "total_cost": cost.total_cost,
                "processing_time_ms": processing_time_ms,
            },
        )
        return AggregateResult(
            issues=issues,
            transcript=transcript,
            transcripts=transcripts,
            usage=usage,
            cost=cost,
            stages=timeline.stages,
            failures=failures,
            model=self.model,
            processing_time_ms=processing_time_ms,
            system_prompt=request.system_instruction,
            timestamp=utcnow().isoformat(),
        )

    def _validate(self, request: AnalysisRequest) -> None:
        if not request.media:
            raise ValidationError(
                "Missing required field: media array must be provided and non-empty"
            )
        if not any(item.has_content for item in request.media):
            raise ValidationError("No media item has usable content")

    async def _analyze_time_based(
        self,
        item: MediaItem,
        *,
        index: int,
        position: int,
        request: AnalysisRequest,
        cancel_event: asyncio.Event | None,
    ) -> PerItemResult:
        if not item.has_content:
            return self._failure(
                index=index,
                position=position,
                kind=item.kind,
                error=ProviderCallError(f"{item.kind.value.capitalize()} has no content"),
            )

        parts = [ContentPart.inline(item.mime_type, item.content)]
        if item.comment and item.comment.strip():
            parts.append(
                ContentPart.from_text(
                    f'[Context for this {item.kind.value}]: "{item.comment.strip()}"'
                )
            )
        parts.append(ContentPart.from_text(TIME_BASED_INSTRUCTION.format(kind=item.kind.value)))

        self.log.info(
            "analysis.item.start",
            extra={"index": index, "position": position, "media_kind": str(item.kind)},
        )
        try:
            generation = await self._cancellable(
                self.provider.generate(self._generation_request(parts, request)),
                cancel_event,
            )
            transcript, issues = parse_model_output(generation.text)
        except AnalysisCancelledError:
            raise
        except Exception as exc:
            return self._failure(index=index, position=position, kind=item.kind, error=exc)

        for issue in issues:
            issue.video_index = index
        if not transcript:
            self.log.warning(
                "analysis.item.no_transcript",
                extra={"index": index, "position": position},
            )
        self.log.info(
            "analysis.item.success",
            extra={
                "index": index,
                "position": position,
                "issue_count": len(issues),
                "transcript_chars": len(transcript),
                "transcript_lines": len(parse_transcript(transcript)),
            },
        )
        return ItemSuccess(
            index=index,
            raw_text=generation.text,
            transcript=transcript,
            issues=issues,
            usage=TokenUsage(generation.input_tokens, generation.output_tokens),
        )

    async def _analyze_static_batch(
        self,
        items: list[MediaItem],
        *,
        request: AnalysisRequest,
        cancel_event: asyncio.Event | None,
    ) -> PerItemResult | None:
        parts: list[ContentPart] = []
        for number, item in enumerate(items, start=1):
            if not item.has_content:
                self.log.warning(
                    "analysis.static.item_skipped",
                    extra={"media_id": item.id, "media_kind": str(item.kind)},
                )
                continue
            parts.append(ContentPart.inline(item.mime_type, item.content))
            if item.comment and item.comment.strip():
                parts.append(
                    ContentPart.from_text(f'[Image/PDF {number} Context]: "{item.comment.strip()}"')
                )
        if not parts:
            return None
        parts.append(ContentPart.from_text(STATIC_BATCH_INSTRUCTION))

        self.log.info("analysis.static.start", extra={"static_count": len(items)})
        try:
            generation = await self._cancellable(
                self.provider.generate(self._generation_request(parts, request)),
                cancel_event,
            )
            _, issues = parse_model_output(generation.text)
        except AnalysisCancelledError:
            raise
        except Exception as exc:
            return self._failure(index=None, position=None, kind=None, error=exc)

        self.log.info("analysis.static.success", extra={"issue_count": len(issues)})
        return ItemSuccess(
            index=None,
            raw_text=generation.text,
            transcript="",
            issues=issues,
            usage=TokenUsage(generation.input_tokens, generation.output_tokens),
        )

    def _generation_request(
        self, parts: list[ContentPart], request: AnalysisRequest
    ) -> GenerationRequest:
        return GenerationRequest(
            model=self.model,
            parts=tuple(parts),
            system_instruction=request.system_instruction,
            response_schema=request.response_schema,
        )

    def _failure(
        self,
        *,
        index: int | None,
        position: int | None,
        kind: MediaKind | None,
        error: Exception,
    ) -> ItemFailure:
        if isinstance(error, ProviderCallError):
            error_kind = error.kind
        else:
            error_kind = classify_provider_error(str(error))
        failure = ItemFailure(
            index=index,
            position=position,
            kind=kind,
            error=format_provider_error(error),
            error_kind=error_kind,
        )
        self.log.error(
            "analysis.item.failed",
            extra={
                "item": failure.label,
                "index": index,
                "error_kind": str(error_kind),
                "error_type": type(error).__name__,
                "error": failure.error,
            },
        )
        return failure

    async def _cancellable(
        self, awaitable: Awaitable[T], cancel_event: asyncio.Event | None
    ) -> T:
        """Await ``awaitable`` unless ``cancel_event`` fires first."""

        if cancel_event is None:
            return await awaitable
        task = asyncio.ensure_future(awaitable)
        if cancel_event.is_set():
            task.cancel()
            raise AnalysisCancelledError("Analysis cancelled")
        waiter = asyncio.ensure_future(cancel_event.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            if not task.done():
                task.cancel()
        if task.done() and not task.cancelled():
            return task.result()
        self.log.info("analysis.cancelled")
        raise AnalysisCancelledError("Analysis cancelled")
