"""Parse speaker-turn transcript text into structured lines."""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass

logger = logging.getLogger(__name__)

_TS = r"\d{1,2}:\d{2}(?::\d{2})?"

# Order matters: "Speaker [MM:SS]: msg", "[MM:SS] Speaker: msg", "Speaker (MM:SS): msg".
_SPEAKER_BRACKET = re.compile(rf"^([^\[\n]+?)\s*\[({_TS})\]:\s*(.*)$")
_BRACKET_SPEAKER = re.compile(rf"^\[({_TS})\]\s*([^:]+):\s*(.*)$")
_SPEAKER_PAREN = re.compile(rf"^([^(\n]+?)\s*\(({_TS})\):\s*(.*)$")

_LEADING_NUMBER = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)")

FALLBACK_SPEAKER = "System"
FALLBACK_TIMESTAMP = "00:00"


@dataclass(slots=True, frozen=True)
class TranscriptLine:
    speaker: str
    timestamp: str
    seconds: float
    message: str


def parse_timestamp(value: str) -> float:
    """Convert ``MM:SS`` / ``HH:MM:SS`` (optionally bracketed) to seconds.

    Anything unparseable yields ``0``.
    """

    if not value:
        return 0
    clean = re.sub(r"[\[\]s]", "", value).strip()
    if ":" in clean:
        try:
            parts = [float(part) for part in clean.split(":")]
        except ValueError:
            parts = []
        if len(parts) == 2:
            return _finite(parts[0] * 60 + parts[1])
        if len(parts) == 3:
            return _finite(parts[0] * 3600 + parts[1] * 60 + parts[2])
    match = _LEADING_NUMBER.match(clean)
    if match is None:
        return 0
    return _finite(float(match.group(0)))


def _finite(value: float) -> float:
    if math.isnan(value) or math.isinf(value):
        return 0
    if value == int(value):
        return int(value)
    return value


def parse_transcript_line(line: str) -> TranscriptLine:
    match = _SPEAKER_BRACKET.match(line)
    if match:
        speaker, timestamp, message = match.groups()
        return TranscriptLine(speaker.strip(), timestamp, parse_timestamp(timestamp), message)

    match = _BRACKET_SPEAKER.match(line)
    if match:
        timestamp, speaker, message = match.groups()
        return TranscriptLine(speaker.strip(), timestamp, parse_timestamp(timestamp), message)

    match = _SPEAKER_PAREN.match(line)
    if match:
        speaker, timestamp, message = match.groups()
        return TranscriptLine(speaker.strip(), timestamp, parse_timestamp(timestamp), message)

    return TranscriptLine(FALLBACK_SPEAKER, FALLBACK_TIMESTAMP, 0, line)


def parse_transcript(text: str | None) -> list[TranscriptLine]:
    """Split ``text`` on newlines and parse every non-blank line."""

    if not text:
        return []
    lines = [parse_transcript_line(line) for line in text.split("\n") if line.strip()]
    fallback_count = sum(1 for line in lines if line.speaker == FALLBACK_SPEAKER)
    if fallback_count:
        logger.debug(
            "transcript.parse.unmatched_lines",
            extra={"total_lines": len(lines), "unmatched_lines": fallback_count},
        )
    return lines
