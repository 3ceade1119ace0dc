"""Turning raw per-call model output into one combined result."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from ..exceptions import ParseError
from ..issues.impact import apply_impact_sources
from ..issues.issue_models import Issue
from ..parsing.safe_json import safe_json_loads
from .analysis_models import ItemFailure, ItemSuccess, PerItemResult, TokenUsage

logger = logging.getLogger(__name__)

NO_TRANSCRIPT = "No transcript available."


def parse_model_output(raw_text: str) -> tuple[str, list[Issue]]:
    """Decode one call's JSON output into ``(transcript, issues)``.

    Issues that are not JSON objects are dropped with a warning.
    """

    document = safe_json_loads(raw_text)
    if not isinstance(document, dict):
        raise ParseError(
            f"Model output is a JSON {type(document).__name__}, expected an object",
            snippet=raw_text[:100],
        )

    transcript = document.get("transcript")
    if not isinstance(transcript, str) or not transcript:
        transcripts = document.get("transcripts")
        if isinstance(transcripts, list):
            transcript = "\n".join(part for part in transcripts if isinstance(part, str) and part)
        else:
            transcript = ""

    raw_issues: Any = document.get("issues") or []
    if not isinstance(raw_issues, list):
        logger.warning("analysis.output.issues_not_list", extra={"issues_type": type(raw_issues).__name__})
        raw_issues = []
    issues: list[Issue] = []
    for entry in raw_issues:
        if isinstance(entry, dict):
            issues.append(Issue.from_dict(entry))
        else:
            logger.warning("analysis.output.issue_skipped", extra={"entry_type": type(entry).__name__})
    return transcript, issues


def combine_transcripts(transcripts: Sequence[str]) -> str:
    """Join per-item transcripts in submission order.

    A single item is used verbatim. With several items every non-empty
    transcript gets a ``--- Video N Transcript ---`` header.
    """

    if len(transcripts) == 1:
        combined = transcripts[0]
    else:
        combined = "\n\n".join(
            f"--- Video {position} Transcript ---\n{text}"
            for position, text in enumerate(transcripts, start=1)
            if text
        )
    return combined or NO_TRANSCRIPT


def collect_results(
    time_based: Sequence[PerItemResult],
    static: PerItemResult | None,
) -> tuple[list[Issue], str, list[str], TokenUsage, list[ItemFailure]]:
    """Merge successful results and list failures.

    Returns issues (with impact sources applied), combined transcript,
    per-item transcripts, summed usage and failures.
    """

    issues: list[Issue] = []
    transcripts: list[str] = []
    usage = TokenUsage()
    failures: list[ItemFailure] = []

    for result in time_based:
        if isinstance(result, ItemSuccess):
            transcripts.append(result.transcript)
            issues.extend(result.issues)
            usage = usage + result.usage
        else:
            transcripts.append("")
            failures.append(result)

    if isinstance(static, ItemSuccess):
        issues.extend(static.issues)
        usage = usage + static.usage
    elif isinstance(static, ItemFailure):
        failures.append(static)

    if transcripts:
        combined = combine_transcripts(transcripts)
    else:
        combined = NO_TRANSCRIPT
        transcripts = [""]

    return apply_impact_sources(issues), combined, transcripts, usage, failures
