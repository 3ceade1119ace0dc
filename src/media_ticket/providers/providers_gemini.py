"""Gemini provider driver implementation."""

from __future__ import annotations

import base64
import json
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Any

import httpx

from ..analysis.analysis_errors import (
    ProviderCallError,
    ProviderErrorKind,
    classify_provider_error,
)
from .providers_base import (
    ChatRequest,
    ContentPart,
    GenerationRequest,
    GenerationResult,
    ModelProvider,
)

logger = logging.getLogger(__name__)

DEFAULT_API_URL_BASE = "https://generativelanguage.googleapis.com/v1beta"
BODY_PREVIEW_LIMIT = 4000


@dataclass(slots=True)
class GeminiDriver(ModelProvider):
    """Call the Gemini REST API with inline media parts."""

    api_key: str | None
    api_url_base: str = DEFAULT_API_URL_BASE
    timeout_seconds: float = 600.0
    log: logging.Logger = field(default_factory=lambda: logger)

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        url = f"{self.api_url_base}/models/{request.model}:generateContent"
        body = _build_generate_body(request)
        inline_bytes = sum(len(part.data or b"") for part in request.parts)
        self.log.info(
            "gemini.request.start",
            extra={
                "model": request.model,
                "part_count": len(request.parts),
                "inline_bytes": inline_bytes,
                "has_schema": request.response_schema is not None,
            },
        )

        try:
            response = await self._post(url, headers=self._headers(), json=body)
        except httpx.HTTPError as exc:
            message = f"Gemini HTTP error: {exc}"
            self.log.error("gemini.request.transport_error", extra={"model": request.model, "error": str(exc)})
            raise ProviderCallError(message, kind=classify_provider_error(f"{type(exc).__name__} {exc}")) from exc

        if response.status_code != 200:
            error_detail = _extract_error(response)
            self.log.error(
                "gemini.response.error",
                extra={
                    "model": request.model,
                    "status_code": response.status_code,
                    "error_detail": error_detail,
                    "body_preview": response.text[:500],
                },
            )
            raise ProviderCallError(
                f"Gemini request failed (status={response.status_code}): {error_detail}",
                status_code=response.status_code,
            )

        data = response.json()
        self.log.info("gemini.response.received %s", _response_summary(data), extra={"model": request.model})
        result = _parse_generation(data)
        if not result.text:
            body_preview = json.dumps(_mask_inline_data(data), ensure_ascii=False)
            if len(body_preview) > BODY_PREVIEW_LIMIT:
                body_preview = body_preview[:BODY_PREVIEW_LIMIT] + "...(truncated)"
            self.log.warning("gemini.response.no_text %s", body_preview, extra={"model": request.model})
            reason = result.finish_reason or "unknown"
            raise ProviderCallError(f"Gemini response has no text (finish_reason={reason})")

        self.log.info(
            "gemini.request.success",
            extra={
                "model": request.model,
                "input_tokens": result.input_tokens,
                "output_tokens": result.output_tokens,
            },
        )
        return result

    async def stream_chat(self, request: ChatRequest) -> AsyncIterator[str]:
        url = f"{self.api_url_base}/models/{request.model}:streamGenerateContent?alt=sse"
        body = _build_chat_body(request)
        self.log.info(
            "gemini.chat.start",
            extra={"model": request.model, "turns": len(request.history)},
        )
        try:
            async for event in self._stream(url, headers=self._headers(), json=body):
                for text in _candidate_texts(event):
                    yield text
        except httpx.HTTPError as exc:
            self.log.error("gemini.chat.transport_error", extra={"model": request.model, "error": str(exc)})
            raise ProviderCallError(
                f"Gemini HTTP error: {exc}",
                kind=classify_provider_error(f"{type(exc).__name__} {exc}"),
            ) from exc

    def _headers(self) -> dict[str, str]:
        if not self.api_key:
            raise ProviderCallError(
                "GEMINI_API_KEY is not configured",
                kind=ProviderErrorKind.PERMISSION_DENIED,
            )
        return {"x-goog-api-key": self.api_key, "Content-Type": "application/json"}

    async def _post(
        self, url: str, *, headers: dict[str, str], json: dict[str, Any]
    ) -> httpx.Response:
        async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
            return await client.post(url, headers=headers, json=json)

    async def _stream(
        self, url: str, *, headers: dict[str, str], json: dict[str, Any]
    ) -> AsyncIterator[dict[str, Any]]:
        """Yield decoded ``data:`` events of a server-sent event stream."""

        async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
            async with client.stream("POST", url, headers=headers, json=json) as response:
                if response.status_code != 200:
                    await response.aread()
                    error_detail = _extract_error(response)
                    self.log.error(
                        "gemini.chat.error",
                        extra={"status_code": response.status_code, "error_detail": error_detail},
                    )
                    raise ProviderCallError(
                        f"Gemini chat failed (status={response.status_code}): {error_detail}",
                        status_code=response.status_code,
                    )
                async for line in response.aiter_lines():
                    if not line.startswith("data:"):
                        continue
                    chunk = line[len("data:"):].strip()
                    if not chunk or chunk == "[DONE]":
                        continue
                    try:
                        yield json.loads(chunk)
                    except ValueError:
                        self.log.warning("gemini.chat.bad_event", extra={"event_preview": chunk[:200]})


def _part_payload(part: ContentPart) -> dict[str, Any]:
    if part.is_inline:
        return {
            "inline_data": {
                "mime_type": part.mime_type,
                "data": base64.b64encode(part.data or b"").decode("ascii"),
            }
        }
    return {"text": part.text or ""}


def _build_generate_body(request: GenerationRequest) -> dict[str, Any]:
    body: dict[str, Any] = {
        "contents": [
            {"role": "user", "parts": [_part_payload(part) for part in request.parts]}
        ],
    }
    if request.system_instruction:
        body["systemInstruction"] = {"parts": [{"text": request.system_instruction}]}
    generation_config: dict[str, Any] = {}
    if request.response_schema is not None:
        generation_config["responseMimeType"] = "application/json"
        generation_config["responseSchema"] = request.response_schema
    if request.max_output_tokens is not None:
        generation_config["maxOutputTokens"] = request.max_output_tokens
    if generation_config:
        body["generationConfig"] = generation_config
    return body


def _build_chat_body(request: ChatRequest) -> dict[str, Any]:
    body: dict[str, Any] = {
        "contents": [
            {"role": turn.role, "parts": [{"text": turn.text}]} for turn in request.history
        ],
    }
    if request.system_instruction:
        body["systemInstruction"] = {"parts": [{"text": request.system_instruction}]}
    if request.use_search:
        body["tools"] = [{"google_search": {}}]
    return body


def _candidate_texts(data: dict[str, Any]) -> list[str]:
    texts: list[str] = []
    candidates = data.get("candidates") or []
    if not candidates:
        return texts
    content = candidates[0].get("content") or {}
    for part in content.get("parts", []):
        text = part.get("text")
        if text and not part.get("thought"):
            texts.append(text)
    return texts


def _parse_generation(data: dict[str, Any]) -> GenerationResult:
    usage = data.get("usageMetadata") or {}
    candidates = data.get("candidates") or []
    first = candidates[0] if candidates else {}
    return GenerationResult(
        text="".join(_candidate_texts(data)),
        input_tokens=int(usage.get("promptTokenCount") or 0),
        output_tokens=int(usage.get("candidatesTokenCount") or 0),
        finish_reason=first.get("finishReason") or first.get("finish_reason"),
    )


def _extract_error(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:  # pragma: no cover - fallback
        return response.text
    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, dict):
        message = (error.get("message") or "").strip()
        status = (error.get("status") or "").strip()
        return " ".join(part for part in (status, message) if part)
    return str(data)


def _mask_inline_data(obj: Any) -> Any:
    """Remove inline_data payloads to avoid logging base64 blobs."""
    if isinstance(obj, dict):
        result = {}
        for key, value in obj.items():
            if key in {"inline_data", "inlineData"} and isinstance(value, dict):
                result[key] = {k: v for k, v in value.items() if k != "data"}
            else:
                result[key] = _mask_inline_data(value)
        return result
    if isinstance(obj, list):
        return [_mask_inline_data(item) for item in obj]
    return obj


def _response_summary(data: dict[str, Any]) -> str:
    candidates = data.get("candidates") or []
    first = candidates[0] if candidates else {}
    texts = _candidate_texts(data)
    preview_full = texts[0] if texts else ""
    usage = data.get("usageMetadata") or {}
    return (
        f"candidates={len(candidates)} "
        f"finish_reason={first.get('finishReason')} "
        f"text_preview='{preview_full[:160]}' "
        f"text_len={sum(len(text) for text in texts)} "
        f"prompt_tokens={usage.get('promptTokenCount')} "
        f"output_tokens={usage.get('candidatesTokenCount')}"
    )
