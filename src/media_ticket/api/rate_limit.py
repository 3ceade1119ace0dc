"""Per-client request limiting for ``/api`` routes."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone

from fastapi import Request, status

from .errors import ApiError

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests, please try again later."


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ApiRateLimiter:
    """Fixed-window counter keyed by client address (one hour by default)."""

    limit: int = 10
    window_seconds: int = 3600
    clock: Callable[[], datetime] = utcnow
    buckets: dict[str, tuple[int, datetime]] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def check(self, key: str) -> None:
        with self._lock:
            now = self.clock()
            self._prune(now)
            count, window_start = self.buckets.get(key, (0, now))
            elapsed = (now - window_start).total_seconds()
            if elapsed >= self.window_seconds:
                count, window_start, elapsed = 0, now, 0.0
            if count >= self.limit:
                retry_after = max(1, int(self.window_seconds - elapsed))
                logger.warning(
                    "api.rate_limited",
                    extra={"client": key, "limit": self.limit, "retry_after": retry_after},
                )
                raise ApiError(
                    status.HTTP_429_TOO_MANY_REQUESTS,
                    RATE_LIMIT_MESSAGE,
                    headers={"Retry-After": str(retry_after)},
                )
            self.buckets[key] = (count + 1, window_start)

    def _prune(self, now: datetime) -> None:
        expired = [
            key
            for key, (_, window_start) in self.buckets.items()
            if (now - window_start).total_seconds() >= self.window_seconds
        ]
        for key in expired:
            del self.buckets[key]


def client_key(request: Request) -> str:
    if request.client:
        return request.client.host
    return "unknown"


async def enforce_rate_limit(request: Request) -> None:
    """Router dependency; a no-op when no limiter is configured."""

    limiter: ApiRateLimiter | None = getattr(request.app.state, "rate_limiter", None)
    if limiter is None:
        return
    limiter.check(client_key(request))
