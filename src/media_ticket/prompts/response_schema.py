"""Gemini ``responseSchema`` for structured analysis output."""

from __future__ import annotations

from typing import Any

from ..issues.issue_models import EaseOfFix, IssueStatus, Severity

ISSUE_REQUIRED_FIELDS = [
    "issue_title",
    "issue_description",
    "wcag_reference",
    "axe_rule_id",
    "severity",
    "ease_of_fix",
    "suggested_fix",
    "timestamp",
    "status",
    "disclaimer",
]


def build_issue_schema() -> dict[str, Any]:
    return {
        "type": "OBJECT",
        "properties": {
            "issue_title": {"type": "STRING"},
            "issue_description": {"type": "STRING"},
            "wcag_reference": {"type": "STRING"},
            "axe_rule_id": {"type": "STRING"},
            "apg_pattern": {"type": "STRING"},
            "severity": {"type": "STRING", "enum": [member.value for member in Severity]},
            "ease_of_fix": {"type": "STRING", "enum": [member.value for member in EaseOfFix]},
            "suggested_fix": {"type": "STRING"},
            "generated_alt_text": {"type": "STRING"},
            "timestamp": {"type": "STRING"},
            "status": {"type": "STRING", "enum": [member.value for member in IssueStatus]},
            "disclaimer": {"type": "STRING"},
            "video_index": {"type": "INTEGER"},
        },
        "required": list(ISSUE_REQUIRED_FIELDS),
    }


def build_response_schema() -> dict[str, Any]:
    """Schema for ``{transcript, transcripts?, detected_language?, issues}``."""

    return {
        "type": "OBJECT",
        "properties": {
            "transcript": {"type": "STRING"},
            "transcripts": {"type": "ARRAY", "items": {"type": "STRING"}},
            "detected_language": {"type": "STRING"},
            "issues": {"type": "ARRAY", "items": build_issue_schema()},
        },
        "required": ["transcript", "issues"],
    }
