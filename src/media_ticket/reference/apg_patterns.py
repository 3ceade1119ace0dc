"""ARIA Authoring Practices Guide pattern and practice lookups."""

from __future__ import annotations

import json
from dataclasses import dataclass
from functools import lru_cache

from .reference_data import load_reference

APG_BASE_URL = "https://www.w3.org/WAI/ARIA/apg/"
ARIA_APG_REFERENCE = "https://www.w3.org/WAI/ARIA/apg/patterns/"


@dataclass(slots=True, frozen=True)
class ApgEntry:
    entry_id: str
    name: str
    full_name: str
    url: str
    description: str
    category: str | None = None

    @property
    def is_pattern(self) -> bool:
        return self.category is not None


@dataclass(slots=True, frozen=True)
class ApgReference:
    entry_id: str
    name: str
    url: str


def _entry(item: dict) -> ApgEntry:
    return ApgEntry(
        entry_id=item["id"],
        name=item.get("name", item["id"]),
        full_name=item.get("fullName", item.get("name", item["id"])),
        url=item.get("url", APG_BASE_URL),
        description=item.get("description", ""),
        category=item.get("category"),
    )


@lru_cache(maxsize=1)
def _catalogue() -> tuple[tuple[ApgEntry, ...], tuple[ApgEntry, ...]]:
    document = load_reference("apg-patterns.json")
    patterns = tuple(_entry(item) for item in document.get("patterns", []))
    practices = tuple(
        _entry({**item, "category": None}) for item in document.get("practices", [])
    )
    return patterns, practices


@lru_cache(maxsize=1)
def _index() -> dict[str, ApgEntry]:
    patterns, practices = _catalogue()
    return {entry.entry_id.lower(): entry for entry in (*patterns, *practices)}


def all_apg_patterns() -> list[ApgEntry]:
    return list(_catalogue()[0])


def all_apg_practices() -> list[ApgEntry]:
    return list(_catalogue()[1])


def get_apg_entry(entry_id: str | None) -> ApgEntry | None:
    if not entry_id:
        return None
    return _index().get(entry_id.strip().lower())


def get_apg_url(entry_id: str | None) -> str:
    entry = get_apg_entry(entry_id)
    if entry is None:
        return APG_BASE_URL
    return entry.url


def parse_apg_patterns(reference: str | None) -> list[ApgReference]:
    """Resolve a comma separated list such as ``"toolbar, accessible-name"``.

    Unknown ids are kept with their raw id as name and the APG index as URL.
    """

    if not reference or not reference.strip():
        return []
    result: list[ApgReference] = []
    for raw in reference.split(","):
        entry_id = raw.strip()
        if not entry_id:
            continue
        entry = get_apg_entry(entry_id)
        result.append(
            ApgReference(
                entry_id=entry_id,
                name=entry.name if entry else entry_id,
                url=entry.url if entry else APG_BASE_URL,
            )
        )
    return result


def format_apg_for_prompt() -> str:
    patterns, practices = _catalogue()

    def condense(entries: tuple[ApgEntry, ...]) -> list[dict[str, str]]:
        return [
            {
                "id": entry.entry_id,
                "name": entry.name,
                "description": entry.description,
                "url": entry.url,
            }
            for entry in entries
        ]

    return json.dumps(
        {"patterns": condense(patterns), "practices": condense(practices)}, indent=2
    )
