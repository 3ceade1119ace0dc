"""File-backed persistence of prompt preferences."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any

from .prompt_builder import PromptSettings, SeverityMode

logger = logging.getLogger(__name__)

PROMPT_SETTINGS_STORAGE_KEY = "mediatoticket_prompt_settings"

# Stored keys use the client's camelCase spelling.
_FIELD_NAMES = {
    "focusAreas": "focus_areas",
    "severityMode": "severity_mode",
    "customInstructions": "custom_instructions",
    "useAdvancedMode": "use_advanced_mode",
    "advancedPrompt": "advanced_prompt",
}


def settings_to_dict(settings: PromptSettings) -> dict[str, Any]:
    raw = asdict(settings)
    payload = {stored: raw[attr] for stored, attr in _FIELD_NAMES.items()}
    payload["severityMode"] = str(settings.severity_mode)
    if payload["advancedPrompt"] is None:
        del payload["advancedPrompt"]
    return payload


def settings_from_dict(data: dict[str, Any]) -> PromptSettings:
    """Merge ``data`` over the defaults, ignoring unknown or invalid values."""

    merged = asdict(PromptSettings())
    for stored, attr in _FIELD_NAMES.items():
        if stored in data:
            merged[attr] = data[stored]
    try:
        merged["severity_mode"] = SeverityMode(merged["severity_mode"])
    except ValueError:
        logger.warning(
            "prompt_settings.invalid_severity_mode",
            extra={"severity_mode": merged["severity_mode"]},
        )
        merged["severity_mode"] = SeverityMode.ALL
    if not isinstance(merged["focus_areas"], list):
        merged["focus_areas"] = []
    merged["custom_instructions"] = str(merged["custom_instructions"] or "")
    merged["use_advanced_mode"] = bool(merged["use_advanced_mode"])
    return PromptSettings(**merged)


class PromptSettingsStore:
    """Keep prompt preferences in a JSON document under a fixed key."""

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read_document(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        document = json.loads(self._path.read_text(encoding="utf-8"))
        if not isinstance(document, dict):
            raise ValueError("prompt settings document must be a JSON object")
        return document

    def load(self) -> PromptSettings:
        try:
            saved = self._read_document().get(PROMPT_SETTINGS_STORAGE_KEY)
        except (OSError, ValueError) as exc:
            logger.warning(
                "prompt_settings.load_failed",
                extra={"path": str(self._path), "error": str(exc)},
            )
            return PromptSettings()
        if not isinstance(saved, dict):
            return PromptSettings()
        return settings_from_dict(saved)

    def save(self, settings: PromptSettings) -> None:
        try:
            document = self._read_document()
        except (OSError, ValueError):
            document = {}
        document[PROMPT_SETTINGS_STORAGE_KEY] = settings_to_dict(settings)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(document, indent=2), encoding="utf-8")
        logger.info("prompt_settings.saved", extra={"path": str(self._path)})

    def clear(self) -> None:
        try:
            document = self._read_document()
        except (OSError, ValueError):
            document = {}
        if document.pop(PROMPT_SETTINGS_STORAGE_KEY, None) is None:
            return
        self._path.write_text(json.dumps(document, indent=2), encoding="utf-8")
        logger.info("prompt_settings.cleared", extra={"path": str(self._path)})
