"""Axe-core rule metadata derived from the bundled rule catalogue."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from functools import lru_cache

from .reference_data import load_reference

AXE_VERSION = "4.11"
AXE_RULE_URL_BASE = f"https://dequeuniversity.com/rules/axe/{AXE_VERSION}/"

_LEVEL_TAG = re.compile(r"^wcag\d{1,2}a{1,3}$", re.IGNORECASE)
_CRITICAL_TAGS = frozenset({"wcag2a", "wcag21a", "wcag22a"})
_SERIOUS_TAGS = frozenset({"wcag2aa", "wcag21aa", "wcag22aa"})


@dataclass(slots=True, frozen=True)
class AxeRule:
    rule_id: str
    description: str
    help: str
    help_url: str
    tags: tuple[str, ...]
    wcag_criteria: tuple[str, ...]
    impact: str


def extract_wcag_criteria(tags: list[str] | tuple[str, ...]) -> list[str]:
    """Turn tags like ``wcag143`` or ``wcag2411`` into ``1.4.3`` / ``2.4.11``."""

    criteria: list[str] = []
    for tag in tags:
        if not tag.lower().startswith("wcag") or _LEVEL_TAG.match(tag):
            continue
        digits = [char for char in tag[4:] if char.isdigit()]
        if len(digits) < 3:
            continue
        formatted = f"{digits[0]}.{digits[1]}.{''.join(digits[2:])}"
        if formatted not in criteria:
            criteria.append(formatted)
    return criteria


def default_impact(tags: list[str] | tuple[str, ...]) -> str:
    """Map conformance-level tags to an impact level."""

    tag_set = set(tags)
    if tag_set & _CRITICAL_TAGS:
        return "critical"
    if tag_set & _SERIOUS_TAGS:
        return "serious"
    if "best-practice" in tag_set:
        return "moderate"
    return "serious"


@lru_cache(maxsize=1)
def _rules() -> dict[str, AxeRule]:
    table: dict[str, AxeRule] = {}
    for item in load_reference("axe-rules.json").get("rules", []):
        rule_id = item["id"]
        tags = tuple(item.get("tags", []))
        table[rule_id.lower()] = AxeRule(
            rule_id=rule_id,
            description=item.get("description", ""),
            help=item.get("help", ""),
            help_url=item.get("helpUrl") or f"{AXE_RULE_URL_BASE}{rule_id}",
            tags=tags,
            wcag_criteria=tuple(extract_wcag_criteria(tags)),
            impact=default_impact(tags),
        )
    return table


def all_axe_rules() -> list[AxeRule]:
    return list(_rules().values())


def get_axe_rule(rule_id: str | None) -> AxeRule | None:
    if not rule_id:
        return None
    return _rules().get(rule_id.strip().lower())


def get_axe_rule_url(rule_id: str | None) -> str:
    rule = get_axe_rule(rule_id)
    if rule is None:
        return AXE_RULE_URL_BASE
    return rule.help_url


def format_axe_rules_for_prompt() -> str:
    """Serialise the catalogue in the condensed form embedded in prompts."""

    condensed = [
        {
            "id": rule.rule_id,
            "desc": rule.description,
            "help": rule.help,
            "wcag": list(rule.wcag_criteria),
            "impact": rule.impact,
            "tags": [
                tag
                for tag in rule.tags
                if not tag.startswith("cat.") and not tag.startswith("wcag")
            ],
            "url": rule.help_url,
        }
        for rule in _rules().values()
    ]
    return json.dumps(condensed, indent=2)
