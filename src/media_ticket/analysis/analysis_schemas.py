"""Pydantic schemas for the analysis API."""

from __future__ import annotations

import base64
import binascii
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..exceptions import ValidationError
from .analysis_models import AnalysisRequest, MediaItem, MediaKind

_DATA_URL_MARKER = ";base64,"


def decode_base64_payload(value: str | None, *, label: str) -> bytes:
    """Decode a base64 string, tolerating a ``data:<mime>;base64,`` prefix."""

    if not value:
        return b""
    if value.startswith("data:") and _DATA_URL_MARKER in value:
        value = value.split(_DATA_URL_MARKER, 1)[1]
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValidationError(f"Invalid base64 payload for {label}") from exc


class MediaPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: str
    data: str | None = Field(default=None, alias="base64")
    mime_type: str | None = Field(default=None, alias="mimeType")
    comment: str | None = None
    name: str | None = None
    id: str | None = None

    def to_media_item(self, index: int) -> MediaItem:
        try:
            kind = MediaKind(self.type.lower())
        except ValueError as exc:
            raise ValidationError(f"Unsupported media type '{self.type}' at position {index + 1}") from exc
        label = f"media item {index + 1}"
        content = decode_base64_payload(self.data, label=label)
        if content and not self.mime_type:
            raise ValidationError(f"Missing mimeType for {label}")
        return MediaItem(
            id=self.id or f"media-{index}",
            kind=kind,
            mime_type=self.mime_type or "",
            content=content,
            comment=self.comment,
            name=self.name,
        )


class AnalyzeMediaRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    media: list[MediaPayload] | None = None
    system_instruction: str = Field(default="", alias="systemInstruction")
    response_schema: dict[str, Any] | None = Field(default=None, alias="responseSchema")
    target_language: str = Field(default="Original", alias="targetLanguage")

    def to_analysis_request(self) -> AnalysisRequest:
        if not self.media:
            raise ValidationError(
                "Missing required field: media array must be provided and non-empty"
            )
        return AnalysisRequest(
            media=tuple(item.to_media_item(index) for index, item in enumerate(self.media)),
            system_instruction=self.system_instruction,
            response_schema=self.response_schema,
        )


class AnalyzeVideoRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    video_base64: str | None = Field(default=None, alias="videoBase64")
    mime_type: str | None = Field(default=None, alias="mimeType")
    system_instruction: str = Field(default="", alias="systemInstruction")
    response_schema: dict[str, Any] | None = Field(default=None, alias="responseSchema")

    def to_analysis_request(self) -> AnalysisRequest:
        if not self.video_base64 or not self.mime_type:
            raise ValidationError("Missing required fields: videoBase64, mimeType")
        item = MediaItem(
            id="video-0",
            kind=MediaKind.VIDEO,
            mime_type=self.mime_type,
            content=decode_base64_payload(self.video_base64, label="video"),
        )
        return AnalysisRequest(
            media=(item,),
            system_instruction=self.system_instruction,
            response_schema=self.response_schema,
        )


class AnalysisResponse(BaseModel):
    text: str
    metadata: dict[str, Any]
    issues: list[dict[str, Any]]
