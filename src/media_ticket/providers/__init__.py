"""Adapters for hosted multimodal model providers."""

from .providers_base import (
    ChatRequest,
    ChatTurn,
    ContentPart,
    GenerationRequest,
    GenerationResult,
    ModelProvider,
)
from .providers_factory import create_provider
from .providers_gemini import GeminiDriver

__all__ = [
    "ChatRequest",
    "ChatTurn",
    "ContentPart",
    "GenerationRequest",
    "GenerationResult",
    "ModelProvider",
    "create_provider",
    "GeminiDriver",
]
