"""System prompt assembly for accessibility media analysis."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import StrEnum

from ..reference.apg_patterns import (
    ARIA_APG_REFERENCE,
    all_apg_patterns,
    all_apg_practices,
    format_apg_for_prompt,
)
from ..reference.axe_rules import all_axe_rules, format_axe_rules_for_prompt
from ..reference.reference_data import load_reference
from ..reference.wcag import WCAG22_QUICKREF

ORIGINAL_LANGUAGE = "Original"


@dataclass(slots=True, frozen=True)
class FocusArea:
    id: str
    label: str
    instruction: str


FOCUS_AREAS: dict[str, FocusArea] = {
    area.id: area
    for area in (
        FocusArea("keyboard", "Keyboard Navigation", "keyboard accessibility, focus management, and tab order"),
        FocusArea("screenReader", "Screen Reader Compatibility", "screen reader announcements, ARIA labels, and semantic HTML"),
        FocusArea("contrast", "Color Contrast", "color contrast ratios and visual distinction"),
        FocusArea("forms", "Form Accessibility", "form labels, error messages, and input validation"),
        FocusArea("touchTargets", "Touch Target Size", "touch target sizing and spacing for mobile users"),
        FocusArea("cognitive", "Cognitive/Reading Level", "cognitive load, reading level, and content clarity"),
    )
}


class SeverityMode(StrEnum):
    ALL = "all"
    CRITICAL = "critical"
    QUICK_WINS = "quickWins"


@dataclass(slots=True, frozen=True)
class SeverityModeInfo:
    id: SeverityMode
    label: str
    instruction: str


SEVERITY_MODES: dict[SeverityMode, SeverityModeInfo] = {
    SeverityMode.ALL: SeverityModeInfo(SeverityMode.ALL, "Report all issues", ""),
    SeverityMode.CRITICAL: SeverityModeInfo(
        SeverityMode.CRITICAL,
        "Focus on Critical/Serious only",
        "PRIORITY: Focus primarily on CRITICAL and SERIOUS severity issues. "
        "Minor issues can be noted but prioritize blockers.",
    ),
    SeverityMode.QUICK_WINS: SeverityModeInfo(
        SeverityMode.QUICK_WINS,
        "Focus on Quick Wins",
        'PRIORITY: Focus on issues with "Quick Win" or "Easy" ease_of_fix ratings. '
        "Highlight low-effort, high-impact improvements.",
    ),
}


@dataclass(slots=True)
class PromptSettings:
    """User preferences that shape the generated prompt."""

    focus_areas: list[str] = field(default_factory=list)
    severity_mode: SeverityMode = SeverityMode.ALL
    custom_instructions: str = ""
    use_advanced_mode: bool = False
    advanced_prompt: str | None = None


@dataclass(slots=True, frozen=True)
class MediaContext:
    video_count: int = 0
    audio_count: int = 0
    image_count: int = 0
    pdf_count: int = 0
    target_language: str = ORIGINAL_LANGUAGE

    @property
    def has_time_based_media(self) -> bool:
        return self.video_count > 0 or self.audio_count > 0


def build_language_instruction(target_language: str) -> str:
    if target_language == ORIGINAL_LANGUAGE:
        return (
            "TRANSCRIPT: Generate a full verbatim diarized transcript of any audio content "
            "in its ORIGINAL language (do not translate). Detect and report the language "
            "code in 'detected_language'."
        )
    return (
        "TRANSCRIPT: Generate a full diarized transcript of any audio content and TRANSLATE "
        f"it into {target_language}. Report the ORIGINAL detected source language code in "
        "'detected_language'."
    )


def build_focus_instruction(focus_areas: list[str]) -> str:
    descriptions = [FOCUS_AREAS[area].instruction for area in focus_areas if area in FOCUS_AREAS]
    if not descriptions:
        return ""
    return (
        f"\nPRIORITY FOCUS: Pay special attention to {', '.join(descriptions)}. "
        "These areas are of particular importance for this audit.\n"
    )


def _media_summary(context: MediaContext) -> list[str]:
    lines = []
    if context.video_count:
        lines.append(f"- {context.video_count} Video recording(s) (screen captures with narration)")
    if context.audio_count:
        lines.append(f"- {context.audio_count} Audio recording(s)")
    if context.image_count:
        lines.append(f"- {context.image_count} Screenshot(s)")
    if context.pdf_count:
        lines.append(f"- {context.pdf_count} PDF Document(s)")
    return lines


def _transcript_section(context: MediaContext) -> str:
    if not context.has_time_based_media:
        return "Since there is no time-based media, leave the transcript field empty."

    if context.video_count > 1:
        layout = (
            f"MULTIPLE VIDEOS: You are analyzing {context.video_count} separate video files.\n"
            '- Return a SEPARATE transcript for EACH video in the "transcripts" array.\n'
            f"- The array must have exactly {context.video_count} elements, one per video in order.\n"
            "- Each video's transcript starts fresh at [00:00]."
        )
    else:
        layout = "SINGLE VIDEO: Return ONE transcript starting at [00:00]."

    return f"""AUDIO/VIDEO ANALYSIS:
- Listen to ALL narration and dialogue from EVERY video/audio file completely.
- {build_language_instruction(context.target_language)}
- IMPORTANT: Every time a different person speaks, or after a short pause, start a NEW LINE.

CRITICAL TRANSCRIPT FORMAT REQUIREMENT:
Each line of the transcript MUST follow this EXACT format:
SpeakerName [MM:SS]: Message text here

Examples of CORRECT format:
- Narrator [00:05]: Welcome to this accessibility demo.
- User [00:12]: I'm going to test the keyboard navigation.
- ScreenReader [01:30]: Button, Submit Order

Examples of WRONG format (DO NOT USE):
- Welcome to this accessibility demo (missing speaker and timestamp)
- [00:05]: Welcome to this demo (missing speaker name)
- Narrator: Welcome to this demo (missing timestamp)

{layout}

- Ignore filler words (um, uh, like) and off-topic commentary. Focus on accessibility insights."""


def _visual_sections(context: MediaContext) -> list[str]:
    sections = []
    if context.video_count:
        lines = [
            "VIDEO VISUAL ANALYSIS:",
            "- Inspect visual UI (color, layout, focus indicators, responsive design).",
            "- Analyze screen reader output if captured.",
            "- Observe keyboard navigation demonstrations.",
        ]
        if context.video_count > 1:
            lines.append(
                "- For each issue, set video_index to indicate which video "
                "(0-based: 0 for Video 1, 1 for Video 2, etc.)"
            )
        sections.append("\n".join(lines))
    if context.image_count:
        sections.append(
            "SCREENSHOT ANALYSIS:\n"
            "- Analyze each image for visual accessibility issues (contrast, labels, touch targets).\n"
            '- Use "Screenshot X" or the filename as context reference.'
        )
    if context.pdf_count:
        sections.append(
            "PDF DOCUMENT ANALYSIS:\n"
            "- Analyze document structure (headings, reading order, tables).\n"
            "- Check for tagging and semantic structure.\n"
            "- Evaluate color contrast and text alternatives within the document."
        )
    return sections


def _reference_section() -> str:
    wcag = json.dumps(load_reference("wcag22.json"), indent=2)
    return f"""Through this multimodal analysis, you can detect ALL WCAG 2.2 Success Criteria.

COMPREHENSIVE WCAG 2.2 REFERENCE:
{wcag}

COMPLETE AXE-CORE RULES ({len(all_axe_rules())} rules):
{format_axe_rules_for_prompt()}

ARIA APG ({len(all_apg_patterns())} patterns + {len(all_apg_practices())} practices):
{format_apg_for_prompt()}

QUICK REFERENCE LINKS:
- WCAG 2.2 Quick Reference: {WCAG22_QUICKREF}
- ARIA APG Patterns: {ARIA_APG_REFERENCE}"""


def _pipeline_section(context: MediaContext) -> str:
    multi = context.video_count > 1
    transcript_note = "\n   - Include video number in timestamps." if multi else ""
    index_note = (
        "\n   - Set video_index (0-based) to indicate which video the issue is from." if multi else ""
    )
    return f"""ANALYSIS PIPELINE:
1. TRANSCRIPT (if audio/video present).
   - Transcribe ALL content from ALL videos completely.{transcript_note}

2. ISSUE INTERPRETATION: For each accessibility barrier you observe:
   - Describe what the issue is (e.g., "Link text is not descriptive")
   - Identify which WCAG 2.2 criteria it violates
   - Note the context and severity of impact
   - Explicitly mention which file the issue was found in (Filename or Type).{index_note}

3. AXE RULE & APG PATTERN MATCHING: For each issue identified above:
   - First, check if this is an ARIA APG design pattern issue
   - If it's an APG pattern, set apg_pattern to the pattern ID
   - If it's NOT an APG pattern, search Axe-core rules for a match
   - IMPORTANT: Do not force a match - it's better to leave fields empty than provide incorrect values

4. SEVERITY ASSIGNMENT:
   - If you provided an axe_rule_id (not "none"): The system will use that rule's impact level automatically
   - Otherwise: Use AI heuristics based on WCAG conformance level and user impact

5. EASE OF FIX ASSESSMENT: Classify the difficulty to fix this issue (Quick Win, Easy, Moderate, Hard).

6. REMEDIATION: Provide code-level fixes using ARIA APG patterns where applicable.

FORMATTING: JSON ONLY. Use actual newline characters in the transcript string."""


def build_system_prompt(context: MediaContext, settings: PromptSettings | None = None) -> str:
    """Return the system instruction for an analysis run.

    In advanced mode a non-empty ``advanced_prompt`` is returned verbatim.
    """

    settings = settings or PromptSettings()
    if settings.use_advanced_mode and settings.advanced_prompt:
        return settings.advanced_prompt

    mode = SeverityMode(settings.severity_mode)
    severity_instruction = SEVERITY_MODES[mode].instruction

    blocks = [
        "You are a Senior Accessibility QA Architect analyzing a collection of media "
        "files for accessibility issues.\nThe files include:\n"
        + "\n".join(_media_summary(context))
    ]
    focus = build_focus_instruction(settings.focus_areas)
    if focus.strip():
        blocks.append(focus.strip())
    if severity_instruction:
        blocks.append(severity_instruction)
    blocks.append(_transcript_section(context))
    blocks.extend(_visual_sections(context))
    blocks.append(_reference_section())
    blocks.append(_pipeline_section(context))

    prompt = "\n\n".join(blocks) + "\n"
    custom = settings.custom_instructions.strip()
    if custom:
        prompt += f"\nADDITIONAL USER CONTEXT:\n{custom}\n"
    return prompt
