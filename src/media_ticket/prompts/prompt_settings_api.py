"""HTTP routes for stored prompt preferences."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request

from .prompt_builder import FOCUS_AREAS, SEVERITY_MODES
from .prompt_settings import PromptSettingsStore, settings_from_dict, settings_to_dict

router = APIRouter(prefix="/api", tags=["prompt-settings"])


def get_prompt_settings_store(request: Request) -> PromptSettingsStore:
    try:
        return request.app.state.prompt_settings_store  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - misconfigured app
        raise RuntimeError("PromptSettingsStore is not configured") from exc


@router.get("/prompt-settings")
def read_prompt_settings(
    store: PromptSettingsStore = Depends(get_prompt_settings_store),
) -> dict[str, Any]:
    return settings_to_dict(store.load())


@router.put("/prompt-settings")
def update_prompt_settings(
    payload: dict[str, Any],
    store: PromptSettingsStore = Depends(get_prompt_settings_store),
) -> dict[str, Any]:
    """Merge ``payload`` over the saved preferences and persist the result."""

    merged = settings_to_dict(store.load())
    merged.update(payload)
    settings = settings_from_dict(merged)
    store.save(settings)
    return settings_to_dict(settings)


@router.delete("/prompt-settings")
def reset_prompt_settings(
    store: PromptSettingsStore = Depends(get_prompt_settings_store),
) -> dict[str, Any]:
    store.clear()
    return settings_to_dict(store.load())


@router.get("/prompt-settings/options")
def prompt_setting_options() -> dict[str, Any]:
    return {
        "focusAreas": [{"id": area.id, "label": area.label} for area in FOCUS_AREAS.values()],
        "severityModes": [
            {"id": str(mode.id), "label": mode.label} for mode in SEVERITY_MODES.values()
        ],
    }
