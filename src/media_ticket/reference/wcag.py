"""WCAG 2.2 success criterion lookups."""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache

from .reference_data import load_reference

WCAG_UNDERSTANDING_BASE = "https://www.w3.org/WAI/WCAG22/Understanding/"
WCAG22_QUICKREF = "https://www.w3.org/WAI/WCAG22/quickref/"

_CRITERION_NUMBER = re.compile(r"\d+\.\d+\.\d+")
_CRITERION_NAME = re.compile(r"\d+\.\d+\.\d+\s+(.+)")


@dataclass(slots=True, frozen=True)
class WcagCriterion:
    number: str
    slug: str
    name: str
    level: str
    versions: tuple[str, ...]

    @property
    def version(self) -> str:
        """WCAG version that introduced the criterion."""
        return self.versions[0] if self.versions else ""

    @property
    def url(self) -> str:
        return f"{WCAG_UNDERSTANDING_BASE}{self.slug}.html"


@dataclass(slots=True, frozen=True)
class WcagReference:
    number: str
    name: str


@lru_cache(maxsize=1)
def _criteria() -> dict[str, WcagCriterion]:
    table: dict[str, WcagCriterion] = {}
    document = load_reference("wcag22.json")
    for principle in document.get("principles", []):
        for guideline in principle.get("guidelines", []):
            for item in guideline.get("successcriteria", []):
                table[item["num"]] = WcagCriterion(
                    number=item["num"],
                    slug=item["id"],
                    name=item["handle"],
                    level=item.get("level", ""),
                    versions=tuple(item.get("versions") or ()),
                )
    return table


def all_wcag_criteria() -> list[WcagCriterion]:
    return list(_criteria().values())


def get_wcag_criterion(number: str) -> WcagCriterion | None:
    """Return the criterion for ``number`` (e.g. ``"4.1.2"``) or ``None``."""

    if not number:
        return None
    return _criteria().get(number.strip())


def get_wcag_link(number: str) -> str:
    """Return the Understanding document URL, or the index when unknown."""

    criterion = get_wcag_criterion(number)
    if criterion is None:
        return WCAG_UNDERSTANDING_BASE
    return criterion.url


def parse_wcag_standards(reference: str) -> list[WcagReference]:
    """Extract criterion numbers from free text such as ``"4.1.2 Name, Role, Value"``.

    Every number found in ``reference`` is returned in order of appearance. The
    name is whatever follows the first number; references listing several
    numbers without a name therefore yield empty names.
    """

    if not reference:
        return []
    numbers = _CRITERION_NUMBER.findall(reference)
    match = _CRITERION_NAME.search(reference)
    name = match.group(1) if match else ""
    return [WcagReference(number=number, name=name) for number in numbers]


def format_wcag_for_prompt() -> str:
    lines = [
        f"{criterion.number} {criterion.name} (Level {criterion.level})"
        for criterion in _criteria().values()
        if "2.2" in criterion.versions
    ]
    return "\n".join(lines)
