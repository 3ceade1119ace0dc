from __future__ import annotations

import asyncio
import itertools

import pytest

from src.media_ticket.analysis.analysis_aggregation import NO_TRANSCRIPT
from src.media_ticket.analysis.analysis_errors import (
    AggregateFailureError,
    ProviderCallError,
    ProviderErrorKind,
)
from src.media_ticket.analysis.analysis_models import AnalysisRequest, MediaItem, MediaKind
from src.media_ticket.analysis.analysis_service import MediaAnalysisService
from src.media_ticket.analysis.analysis_telemetry import ModelPricing
from src.media_ticket.exceptions import AnalysisCancelledError, ValidationError
from src.media_ticket.issues.issue_models import ImpactSource, Severity
from src.media_ticket.providers.providers_base import GenerationResult
from tests.mocks.providers import FakeModelProvider, issue_payload, model_output, no_sleep

pytestmark = pytest.mark.unit


def _video(name: str, comment: str | None = None) -> MediaItem:
    return MediaItem(
        id=name, kind=MediaKind.VIDEO, mime_type="video/mp4", content=name.encode(), comment=comment
    )


def _image(name: str, comment: str | None = None) -> MediaItem:
    return MediaItem(
        id=name, kind=MediaKind.IMAGE, mime_type="image/png", content=name.encode(), comment=comment
    )


def _request(*media: MediaItem) -> AnalysisRequest:
    return AnalysisRequest(
        media=tuple(media),
        system_instruction="Audit these files",
        response_schema={"type": "OBJECT"},
    )


def _service(provider: FakeModelProvider, **overrides) -> MediaAnalysisService:
    params = {
        "provider": provider,
        "model": "test-model",
        "pricing": {"test-model": ModelPricing(input=1.0, output=2.0)},
        "sleep": no_sleep,
        "clock": itertools.count(1000, 10).__next__,
    }
    params.update(overrides)
    return MediaAnalysisService(**params)


def _inline_payloads(provider: FakeModelProvider) -> list[list[bytes]]:
    return [[part.data for part in request.parts if part.is_inline] for request in provider.requests]


@pytest.mark.asyncio
async def test_mixed_batch_runs_videos_in_order_then_static_batch() -> None:
    provider = FakeModelProvider(
        results=[
            model_output(
                transcript="Narrator [00:00]: First",
                issues=[issue_payload("Focus lost", axe_rule_id="image-alt", severity="Minor")],
                input_tokens=1_000_000,
                output_tokens=500_000,
            ),
            model_output(transcript="Narrator [00:00]: Second", issues=[issue_payload("Low contrast")]),
            model_output(issues=[issue_payload("Unlabelled field", apg_pattern="toolbar")]),
        ]
    )
    delays: list[float] = []

    async def record_sleep(seconds: float) -> None:
        delays.append(seconds)

    service = _service(provider, sleep=record_sleep)
    request = _request(_image("shot"), _video("v1"), _video("v2", comment="Checkout flow"))

    result = await service.analyze(request)

    assert _inline_payloads(provider) == [[b"v1"], [b"v2"], [b"shot"]]
    assert delays == [1.0]
    texts = [part.text for part in provider.requests[1].parts if not part.is_inline]
    assert texts[0] == '[Context for this video]: "Checkout flow"'
    assert provider.requests[0].system_instruction == "Audit these files"
    assert provider.requests[0].response_schema == {"type": "OBJECT"}

    assert result.transcript == (
        "--- Video 1 Transcript ---\nNarrator [00:00]: First\n\n"
        "--- Video 2 Transcript ---\nNarrator [00:00]: Second"
    )
    assert result.transcripts == ["Narrator [00:00]: First", "Narrator [00:00]: Second"]
    assert [issue.video_index for issue in result.issues] == [1, 2, None]
    assert result.issues[0].severity is Severity.CRITICAL
    assert result.issues[0].impact_source is ImpactSource.AXE_CORE
    assert result.issues[1].impact_source is ImpactSource.WCAG_HEURISTIC
    assert result.issues[2].impact_source is ImpactSource.APG_PATTERN_HEURISTIC
    assert result.failures == []

    assert result.usage.input_tokens == 1_000_200
    assert result.cost.media_count == 3
    assert result.cost.input_cost == pytest.approx(1.0002)
    assert result.cost.output_cost == pytest.approx(1.0002)
    assert [stage.name for stage in result.stages] == ["Media Upload", "Analysis", "Aggregation"]
    assert all(stage.end_ms >= stage.start_ms > 0 for stage in result.stages)
    assert result.processing_time_ms > 0
    assert result.model == "test-model"


@pytest.mark.asyncio
async def test_single_video_transcript_is_verbatim() -> None:
    provider = FakeModelProvider(results=[model_output(transcript="User [00:03]: Tab")])

    result = await _service(provider).analyze(_request(_video("v1")))

    assert result.transcript == "User [00:03]: Tab"
    assert result.transcripts == ["User [00:03]: Tab"]


@pytest.mark.asyncio
async def test_transcripts_array_is_used_when_transcript_is_missing() -> None:
    provider = FakeModelProvider(
        results=[model_output(transcript="", transcripts=["A [00:00]: one", "B [00:04]: two"])]
    )

    result = await _service(provider).analyze(_request(_video("v1")))

    assert result.transcript == "A [00:00]: one\nB [00:04]: two"


@pytest.mark.asyncio
async def test_partial_failure_keeps_successful_items() -> None:
    provider = FakeModelProvider(
        results=[
            ProviderCallError("Gemini request failed (status=429): RESOURCE_EXHAUSTED quota"),
            model_output(transcript="Narrator [00:00]: Second", issues=[issue_payload()]),
        ]
    )

    result = await _service(provider).analyze(_request(_video("v1"), _video("v2")))

    assert len(result.issues) == 1
    assert result.issues[0].video_index == 1
    assert result.transcripts == ["", "Narrator [00:00]: Second"]
    assert result.transcript == "--- Video 2 Transcript ---\nNarrator [00:00]: Second"
    [failure] = result.failures
    assert failure.label == "Video 1"
    assert failure.index == 0
    assert failure.error_kind is ProviderErrorKind.RATE_LIMITED
    assert result.metadata()["failures"] == [
        {
            "item": "Video 1",
            "index": 0,
            "error": "Gemini request failed (status=429): RESOURCE_EXHAUSTED quota",
            "errorKind": "rate_limited",
        }
    ]


@pytest.mark.asyncio
async def test_unparseable_output_becomes_a_failure() -> None:
    provider = FakeModelProvider(
        results=[
            GenerationResult(text="this is not json"),
            model_output(issues=[issue_payload()]),
        ]
    )

    result = await _service(provider).analyze(_request(_video("v1"), _image("shot")))

    assert [failure.label for failure in result.failures] == ["Video 1"]
    assert "Failed to parse JSON" in result.failures[0].error
    assert len(result.issues) == 1
    assert result.transcript == NO_TRANSCRIPT


@pytest.mark.asyncio
async def test_all_calls_failing_raises_aggregate_error() -> None:
    provider = FakeModelProvider(
        results=[RuntimeError("socket closed"), ProviderCallError("Unsupported MIME type")]
    )

    with pytest.raises(AggregateFailureError) as excinfo:
        await _service(provider).analyze(_request(_video("v1"), _image("shot")))

    assert str(excinfo.value) == (
        "All analysis attempts failed.\nDetails:\n"
        "- Video 1: socket closed\n"
        "- Static Media Batch: Unsupported MIME type"
    )


@pytest.mark.asyncio
async def test_static_only_batch_uses_one_call() -> None:
    provider = FakeModelProvider(results=[model_output(issues=[issue_payload(), issue_payload("B")])])
    request = _request(
        _image("a", comment="Login screen"),
        MediaItem(id="doc", kind=MediaKind.PDF, mime_type="application/pdf", content=b"%PDF"),
    )

    result = await _service(provider).analyze(request)

    assert len(provider.requests) == 1
    assert _inline_payloads(provider) == [[b"a", b"%PDF"]]
    texts = [part.text for part in provider.requests[0].parts if not part.is_inline]
    assert texts[0] == '[Image/PDF 1 Context]: "Login screen"'
    assert result.transcript == NO_TRANSCRIPT
    assert result.transcripts == [""]
    assert all(issue.video_index is None for issue in result.issues)


@pytest.mark.asyncio
async def test_video_without_content_is_recorded_as_failure() -> None:
    provider = FakeModelProvider(results=[model_output(transcript="Narrator [00:00]: ok")])
    empty = MediaItem(id="v0", kind=MediaKind.VIDEO, mime_type="video/mp4")

    result = await _service(provider).analyze(_request(empty, _video("v1")))

    assert len(provider.requests) == 1
    assert [failure.label for failure in result.failures] == ["Video 1"]
    assert result.failures[0].error == "Video has no content"


@pytest.mark.asyncio
async def test_request_without_usable_media_is_rejected() -> None:
    provider = FakeModelProvider()
    service = _service(provider)

    with pytest.raises(ValidationError):
        await service.analyze(_request())
    with pytest.raises(ValidationError):
        await service.analyze(_request(MediaItem(id="x", kind=MediaKind.IMAGE, mime_type="image/png")))
    assert provider.requests == []


@pytest.mark.asyncio
async def test_cancellation_during_a_call_stops_the_run() -> None:
    provider = FakeModelProvider(results=[model_output()], gate=asyncio.Event())
    cancel_event = asyncio.Event()
    service = _service(provider)

    task = asyncio.create_task(service.analyze(_request(_video("v1"), _video("v2")), cancel_event=cancel_event))
    while not provider.requests:
        await asyncio.sleep(0)
    cancel_event.set()

    with pytest.raises(AnalysisCancelledError):
        await task
    assert len(provider.requests) == 1


@pytest.mark.asyncio
async def test_cancellation_before_start_issues_no_call() -> None:
    provider = FakeModelProvider(results=[model_output()])
    cancel_event = asyncio.Event()
    cancel_event.set()

    with pytest.raises(AnalysisCancelledError):
        await _service(provider).analyze(_request(_video("v1")), cancel_event=cancel_event)
    assert provider.requests == []


@pytest.mark.asyncio
async def test_unknown_model_pricing_falls_back() -> None:
    provider = FakeModelProvider(
        results=[model_output(issues=[issue_payload()], input_tokens=1_000_000, output_tokens=0)]
    )
    service = _service(provider, model="gemini-unreleased", pricing={})

    result = await service.analyze(_request(_image("shot")))

    assert result.cost.input_cost == pytest.approx(0.30)


@pytest.mark.asyncio
async def test_non_text_issue_field_does_not_sink_the_run() -> None:
    provider = FakeModelProvider(
        results=[
            model_output(
                transcript="Narrator [00:00]: Toolbar",
                issues=[issue_payload("Toolbar keys", apg_pattern=["toolbar"])],
            )
        ]
    )

    result = await _service(provider).analyze(_request(_video("v1")))

    [issue] = result.issues
    assert issue.apg_pattern is None
    assert issue.impact_source is ImpactSource.WCAG_HEURISTIC
    assert result.failures == []
