"""Abstract model provider definition."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Any, Literal


@dataclass(slots=True, frozen=True)
class ContentPart:
    """Either inline binary data or a text fragment."""

    text: str | None = None
    mime_type: str | None = None
    data: bytes | None = None

    @classmethod
    def inline(cls, mime_type: str, data: bytes) -> "ContentPart":
        return cls(mime_type=mime_type, data=data)

    @classmethod
    def from_text(cls, text: str) -> "ContentPart":
        return cls(text=text)

    @property
    def is_inline(self) -> bool:
        return self.data is not None


@dataclass(slots=True, frozen=True)
class GenerationRequest:
    model: str
    parts: tuple[ContentPart, ...]
    system_instruction: str | None = None
    response_schema: dict[str, Any] | None = None
    max_output_tokens: int | None = None


@dataclass(slots=True)
class GenerationResult:
    """Standard response from provider drivers."""

    text: str
    input_tokens: int = 0
    output_tokens: int = 0
    finish_reason: str | None = None


@dataclass(slots=True)
class ChatTurn:
    role: Literal["user", "model"]
    text: str


@dataclass(slots=True)
class ChatRequest:
    model: str
    history: list[ChatTurn] = field(default_factory=list)
    system_instruction: str | None = None
    use_search: bool = True


class ModelProvider(ABC):
    """Base interface for model provider drivers."""

    @abstractmethod
    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """Run one non-streaming generation and return its text and usage."""

    @abstractmethod
    def stream_chat(self, request: ChatRequest) -> AsyncIterator[str]:
        """Yield text chunks of the model reply to the last user turn."""

    async def probe(self, model: str) -> None:
        """Issue the smallest possible call to prove ``model`` is reachable."""

        await self.generate(
            GenerationRequest(
                model=model,
                parts=(ContentPart.from_text("ping"),),
                max_output_tokens=1,
            )
        )
