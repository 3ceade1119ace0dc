"""Text heuristics applied to model output."""

from .safe_json import safe_json_loads
from .transcript_parser import TranscriptLine, parse_timestamp, parse_transcript

__all__ = ["safe_json_loads", "TranscriptLine", "parse_timestamp", "parse_transcript"]
