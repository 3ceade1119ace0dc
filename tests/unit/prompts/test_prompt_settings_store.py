from __future__ import annotations

import json
from pathlib import Path

import pytest

from src.media_ticket.prompts.prompt_builder import PromptSettings, SeverityMode
from src.media_ticket.prompts.prompt_settings import (
    PROMPT_SETTINGS_STORAGE_KEY,
    PromptSettingsStore,
    settings_from_dict,
)

pytestmark = pytest.mark.unit


def test_missing_file_loads_defaults(tmp_path: Path) -> None:
    store = PromptSettingsStore(tmp_path / "missing.json")

    assert store.load() == PromptSettings()


def test_save_then_load(tmp_path: Path) -> None:
    store = PromptSettingsStore(tmp_path / "nested" / "settings.json")
    settings = PromptSettings(
        focus_areas=["forms"],
        severity_mode=SeverityMode.CRITICAL,
        custom_instructions="Banking app",
    )

    store.save(settings)

    document = json.loads(store.path.read_text(encoding="utf-8"))
    assert document[PROMPT_SETTINGS_STORAGE_KEY]["severityMode"] == "critical"
    assert document[PROMPT_SETTINGS_STORAGE_KEY]["focusAreas"] == ["forms"]
    assert store.load() == settings


def test_saved_values_merge_over_defaults(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(
        json.dumps({PROMPT_SETTINGS_STORAGE_KEY: {"customInstructions": "Only mobile"}}),
        encoding="utf-8",
    )

    loaded = PromptSettingsStore(path).load()

    assert loaded.custom_instructions == "Only mobile"
    assert loaded.severity_mode is SeverityMode.ALL
    assert loaded.focus_areas == []


def test_corrupt_file_falls_back_to_defaults(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")

    assert PromptSettingsStore(path).load() == PromptSettings()


def test_invalid_severity_mode_becomes_all() -> None:
    assert settings_from_dict({"severityMode": "everything"}).severity_mode is SeverityMode.ALL


def test_clear_removes_only_own_key(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"other": 1}), encoding="utf-8")
    store = PromptSettingsStore(path)
    store.save(PromptSettings(custom_instructions="x"))

    store.clear()

    assert json.loads(path.read_text(encoding="utf-8")) == {"other": 1}
    assert store.load() == PromptSettings()
