"""Severity re-stamping applied after issues from all calls are merged."""

from __future__ import annotations

import logging
from typing import Iterable

from ..reference.axe_rules import get_axe_rule
from .issue_models import ImpactSource, Issue, Severity

logger = logging.getLogger(__name__)


def apply_impact_source(issue: Issue) -> Issue:
    """Tag ``issue`` with the signal that decides its severity.

    An APG pattern wins over everything and keeps the reported severity. A
    resolvable Axe rule overwrites the severity with the rule's impact.
    Everything else is a WCAG heuristic and stays as reported.
    """

    if issue.apg_pattern and issue.apg_pattern.strip():
        issue.impact_source = ImpactSource.APG_PATTERN_HEURISTIC
        return issue

    rule = get_axe_rule(issue.axe_rule_id)
    if rule is not None:
        canonical = Severity.parse(rule.impact)
        if canonical is not None:
            if canonical != Severity.parse(issue.severity):
                logger.debug(
                    "impact.severity_overridden",
                    extra={
                        "axe_rule_id": rule.rule_id,
                        "reported": str(issue.severity),
                        "canonical": str(canonical),
                    },
                )
            issue.severity = canonical
            issue.impact_source = ImpactSource.AXE_CORE
            return issue

    issue.impact_source = ImpactSource.WCAG_HEURISTIC
    return issue


def apply_impact_sources(issues: Iterable[Issue]) -> list[Issue]:
    return [apply_impact_source(issue) for issue in issues]
