"""Loader for JSON reference tables shipped with the package."""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).parent / "data"


@lru_cache(maxsize=None)
def load_reference(name: str) -> dict[str, Any]:
    """Read ``data/<name>`` once per process and return the decoded document."""

    path = DATA_DIR / name
    with path.open("r", encoding="utf-8") as handle:
        document = json.load(handle)
    logger.debug("reference.loaded", extra={"reference": name, "path": str(path)})
    return document
