from __future__ import annotations

import pytest

from src.media_ticket.prompts.prompt_builder import (
    MediaContext,
    PromptSettings,
    SeverityMode,
    build_focus_instruction,
    build_language_instruction,
    build_system_prompt,
)
from src.media_ticket.prompts.response_schema import build_response_schema

pytestmark = pytest.mark.unit


def test_advanced_prompt_is_returned_verbatim() -> None:
    settings = PromptSettings(use_advanced_mode=True, advanced_prompt="Only list contrast issues.")

    assert build_system_prompt(MediaContext(video_count=2), settings) == "Only list contrast issues."


def test_advanced_mode_without_prompt_builds_default() -> None:
    settings = PromptSettings(use_advanced_mode=True, advanced_prompt="")

    prompt = build_system_prompt(MediaContext(image_count=1), settings)

    assert prompt.startswith("You are a Senior Accessibility QA Architect")


def test_multiple_videos_request_separate_transcripts_and_video_index() -> None:
    prompt = build_system_prompt(MediaContext(video_count=3, image_count=1))

    assert "- 3 Video recording(s)" in prompt
    assert "- 1 Screenshot(s)" in prompt
    assert "MULTIPLE VIDEOS: You are analyzing 3 separate video files." in prompt
    assert "set video_index" in prompt
    assert "SCREENSHOT ANALYSIS:" in prompt
    assert "PDF DOCUMENT ANALYSIS:" not in prompt


def test_single_video_prompt() -> None:
    prompt = build_system_prompt(MediaContext(video_count=1))

    assert "SINGLE VIDEO: Return ONE transcript starting at [00:00]." in prompt
    assert "MULTIPLE VIDEOS" not in prompt


def test_static_only_prompt_leaves_transcript_empty() -> None:
    prompt = build_system_prompt(MediaContext(pdf_count=2))

    assert "leave the transcript field empty" in prompt
    assert "PDF DOCUMENT ANALYSIS:" in prompt


def test_reference_data_is_embedded() -> None:
    prompt = build_system_prompt(MediaContext(video_count=1))

    assert "COMPREHENSIVE WCAG 2.2 REFERENCE:" in prompt
    assert '"id": "color-contrast"' in prompt
    assert "https://www.w3.org/WAI/ARIA/apg/patterns/toolbar/" in prompt


def test_focus_severity_and_custom_instructions_are_applied() -> None:
    settings = PromptSettings(
        focus_areas=["keyboard", "contrast", "unknown"],
        severity_mode=SeverityMode.QUICK_WINS,
        custom_instructions="  The checkout flow is in scope.  ",
    )

    prompt = build_system_prompt(MediaContext(video_count=1), settings)

    assert "PRIORITY FOCUS: Pay special attention to keyboard accessibility" in prompt
    assert "color contrast ratios" in prompt
    assert 'Focus on issues with "Quick Win" or "Easy"' in prompt
    assert prompt.endswith("ADDITIONAL USER CONTEXT:\nThe checkout flow is in scope.\n")


def test_focus_instruction_ignores_unknown_areas() -> None:
    assert build_focus_instruction([]) == ""
    assert build_focus_instruction(["bogus"]) == ""
    assert "touch target sizing" in build_focus_instruction(["touchTargets"])


def test_language_instruction() -> None:
    assert "ORIGINAL language (do not translate)" in build_language_instruction("Original")
    assert "TRANSLATE it into Spanish" in build_language_instruction("Spanish")


def test_response_schema_requires_transcript_and_issues() -> None:
    schema = build_response_schema()

    assert schema["required"] == ["transcript", "issues"]
    issue = schema["properties"]["issues"]["items"]
    assert issue["properties"]["severity"]["enum"] == ["Critical", "Serious", "Moderate", "Minor"]
    assert "video_index" in issue["properties"]
