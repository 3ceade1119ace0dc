"""Prompt construction and user prompt preferences."""

from .prompt_builder import (
    FOCUS_AREAS,
    SEVERITY_MODES,
    MediaContext,
    PromptSettings,
    SeverityMode,
    build_focus_instruction,
    build_language_instruction,
    build_system_prompt,
)
from .prompt_settings import PROMPT_SETTINGS_STORAGE_KEY, PromptSettingsStore
from .response_schema import build_response_schema

__all__ = [
    "FOCUS_AREAS",
    "SEVERITY_MODES",
    "MediaContext",
    "PromptSettings",
    "SeverityMode",
    "build_focus_instruction",
    "build_language_instruction",
    "build_system_prompt",
    "PROMPT_SETTINGS_STORAGE_KEY",
    "PromptSettingsStore",
    "build_response_schema",
]
