"""Accessibility issue records returned by the analysis pipeline."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

logger = logging.getLogger(__name__)


class _LabelEnum(StrEnum):
    @classmethod
    def parse(cls, value: object):
        """Case-insensitive lookup by value; ``None`` when unrecognised."""

        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        key = value.strip().lower()
        for member in cls:
            if member.value.lower() == key:
                return member
        return None


class Severity(_LabelEnum):
    CRITICAL = "Critical"
    SERIOUS = "Serious"
    MODERATE = "Moderate"
    MINOR = "Minor"


class EaseOfFix(_LabelEnum):
    EASY = "Easy"
    MODERATE = "Moderate"
    HARD = "Hard"


class IssueStatus(_LabelEnum):
    OPEN = "Open"
    TRIAGED = "Triaged"
    RESOLVED = "Resolved"


class ImpactSource(StrEnum):
    """Which signal decided the final severity of an issue."""

    AXE_CORE = "axe-core"
    APG_PATTERN_HEURISTIC = "apg-pattern-heuristic"
    WCAG_HEURISTIC = "wcag-heuristic"


class PriorityTier(StrEnum):
    P0 = "P0"
    P1 = "P1"
    P2 = "P2"
    P3 = "P3"


_TEXT_FIELDS = (
    "issue_title",
    "issue_description",
    "wcag_reference",
    "axe_rule_id",
    "apg_pattern",
    "suggested_fix",
    "generated_alt_text",
    "timestamp",
    "disclaimer",
)

_KNOWN_FIELDS = _TEXT_FIELDS + (
    "severity",
    "ease_of_fix",
    "status",
    "video_index",
    "impact_source",
)


@dataclass(slots=True)
class Issue:
    """One reported accessibility problem.

    Every model-reported field is ``None`` when the model left it out and is
    then omitted again by :meth:`to_dict`. ``severity``, ``ease_of_fix`` and
    ``status`` hold enum members when the model used a recognised label and
    the raw string otherwise. Fields the model returned that are not modelled
    here survive in ``extra`` so that serialisation is lossless.
    """

    issue_title: str | None = None
    issue_description: str | None = None
    wcag_reference: str | None = None
    axe_rule_id: str | None = None
    apg_pattern: str | None = None
    severity: Severity | str | None = None
    ease_of_fix: EaseOfFix | str | None = None
    suggested_fix: str | None = None
    generated_alt_text: str | None = None
    timestamp: str | None = None
    status: IssueStatus | str | None = None
    disclaimer: str | None = None
    video_index: int | None = None
    impact_source: ImpactSource | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def priority_score(self) -> float:
        from .priority import calculate_priority

        return calculate_priority(self.severity, self.ease_of_fix)

    @property
    def priority_tier(self) -> PriorityTier:
        from .priority import priority_tier

        return priority_tier(self.priority_score)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Issue":
        text = {name: _text_field(data, name) for name in _TEXT_FIELDS}
        video_index = data.get("video_index")
        return cls(
            **text,
            severity=_label_field(Severity, data, "severity"),
            ease_of_fix=_label_field(EaseOfFix, data, "ease_of_fix"),
            status=_label_field(IssueStatus, data, "status"),
            video_index=video_index if isinstance(video_index, int) else None,
            impact_source=_impact_source(data.get("impact_source")),
            extra={k: v for k, v in data.items() if k not in _KNOWN_FIELDS},
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = dict(self.extra)
        for name in _KNOWN_FIELDS:
            value = getattr(self, name)
            if value is None:
                continue
            payload[name] = value if isinstance(value, int) else str(value)
        return payload


def _text_field(data: dict[str, Any], name: str) -> str | None:
    value = data.get(name)
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    logger.warning(
        "issue.field_dropped",
        extra={"field": name, "value_type": type(value).__name__},
    )
    return None


def _label_field(enum: type[_LabelEnum], data: dict[str, Any], name: str):
    value = data.get(name)
    if value is None:
        return None
    parsed = enum.parse(value)
    if parsed is not None:
        return parsed
    if isinstance(value, str):
        return value
    logger.warning(
        "issue.field_dropped",
        extra={"field": name, "value_type": type(value).__name__},
    )
    return None


def _impact_source(value: object) -> ImpactSource | None:
    try:
        return ImpactSource(value)
    except ValueError:
        return None
