"""In-memory sliding-window rate limiter.

Usage as a FastAPI dependency (after the caller has been authenticated):

    @router.post("/push")
    async def sync_push(
        user_id: Annotated[str, Depends(get_current_user_id)],
        _rl: None = Depends(RateLimiter(max_calls=120, key="sync_push", by="user")),
    ):
        ...
"""

import time
from collections import defaultdict
from threading import Lock

from fastapi import HTTPException, Request, status


class _SlidingWindowCounter:
    """Thread-safe sliding window rate counter."""

    def __init__(self) -> None:
        self._windows: dict[str, list[float]] = defaultdict(list)
        self._lock = Lock()

    def is_allowed(self, key: str, max_calls: int, window_seconds: int) -> bool:
        now = time.monotonic()
        cutoff = now - window_seconds
        with self._lock:
            self._windows[key] = [t for t in self._windows[key] if t > cutoff]
            if len(self._windows[key]) >= max_calls:
                return False
            self._windows[key].append(now)
            return True

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()


# Module-level singleton
_counter = _SlidingWindowCounter()


def reset_rate_limits() -> None:
    _counter.reset()


class RateLimiter:
    """FastAPI dependency that enforces per-key rate limits.

    Parameters:
        max_calls: Maximum number of calls within the window.
        window_seconds: Sliding window duration in seconds.
        key: A string prefix to namespace this limiter (e.g. "sync_push").
        by: "ip" to key by client IP, or "user" to key by authenticated caller id.
    """

    def __init__(
        self,
        max_calls: int,
        window_seconds: int = 60,
        key: str = "default",
        by: str = "ip",
    ) -> None:
        self.max_calls = max_calls
        self.window_seconds = window_seconds
        self.key = key
        self.by = by

    async def __call__(self, request: Request) -> None:
        identifier = None
        if self.by == "user":
            identifier = getattr(request.state, "user_id", None)
        if identifier is None:
            identifier = self._get_ip(request)

        rate_key = f"{self.key}:{identifier}"
        if not _counter.is_allowed(rate_key, self.max_calls, self.window_seconds):
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail=f"Rate limit exceeded. Maximum {self.max_calls} requests per {self.window_seconds} seconds.",
            )

    @staticmethod
    def _get_ip(request: Request) -> str:
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            # Rightmost entry is the one our reverse proxy appended
            return forwarded.split(",")[-1].strip()
        if request.client:
            return request.client.host
        return "unknown"
