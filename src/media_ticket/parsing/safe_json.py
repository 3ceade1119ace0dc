"""Best-effort decoding of JSON text produced by a language model.

Model output is often wrapped in Markdown fences or cut off mid-stream when
the response hits its length cap. ``safe_json_loads`` applies a fixed
sequence of cheap repairs and gives up with :class:`ParseError` rather than
inventing values.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from ..exceptions import ParseError

logger = logging.getLogger(__name__)

SNIPPET_LENGTH = 100

_FENCE = re.compile(r"```json\n?|```")
_TRAILING_COMMA = re.compile(r",\s*([\]}])")
_UNESCAPED_QUOTE = re.compile(r'(?<!\\)"')
_CONTROL_CHARS = re.compile(r"[\x00-\x1f]+")


def strip_code_fences(text: str) -> str:
    return _FENCE.sub("", text).strip()


def repair_truncated_json(text: str) -> str:
    """Drop trailing commas, close an open string and balance brackets."""

    repaired = _TRAILING_COMMA.sub(r"\1", text)
    if len(_UNESCAPED_QUOTE.findall(repaired)) % 2:
        repaired += '"'
    closed = repaired + "".join(reversed(_unclosed(repaired)))
    # Text cut right after a comma only gains a closer at this point.
    return _TRAILING_COMMA.sub(r"\1", closed)


def _unclosed(text: str) -> list[str]:
    """Return the closers still owed by ``text``, outermost first."""

    pending: list[str] = []
    in_string = escaped = False
    for char in text:
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            pending.append("}")
        elif char == "[":
            pending.append("]")
        elif char in "}]" and pending and pending[-1] == char:
            pending.pop()
    return pending


def safe_json_loads(text: str | None) -> Any:
    if not text:
        raise ParseError("Empty input for JSON parsing")

    cleaned = strip_code_fences(text)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        pass

    cleaned = repair_truncated_json(cleaned)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        logger.warning(
            "safe_json.retry_without_control_chars",
            extra={"text_length": len(cleaned)},
        )

    cleaned = _CONTROL_CHARS.sub("", cleaned)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as exc:
        snippet = cleaned[:SNIPPET_LENGTH]
        raise ParseError(
            f"Failed to parse JSON: {exc.msg}. Input snippet: {snippet}...",
            snippet=snippet,
        ) from exc
