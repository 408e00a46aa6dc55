"""Fixed-window request throttle for the auth endpoints.

Simple in-process buckets keyed by client identity; one set of buckets per
scope (the endpoint path) so each route keeps its own budget. Swap for a shared
store if the app ever runs as more than one process: counters are never
assumed to be visible to another instance.
"""

from __future__ import annotations

import math
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from cachetools import TTLCache
from starlette.requests import Request

# Per-scope bound on tracked clients and how long an untouched window survives
MAX_TRACKED_CLIENTS = 500
IDLE_TTL_SECONDS = 10 * 60


@dataclass(frozen=True)
class RateLimitPreset:
    name: str
    window_seconds: float
    max_requests: int
    error_message: str = ""

    def __post_init__(self) -> None:
        if self.window_seconds <= 0 or self.max_requests <= 0:
            raise ValueError("window_seconds and max_requests must be positive numbers")

    @property
    def message(self) -> str:
        return self.error_message or (
            f"Rate limit exceeded. You can only perform this action "
            f"{self.max_requests} times per minute. Please try again later."
        )


class RateLimitPresets:
    # Expensive operations (image analysis, AI calls)
    STRICT = RateLimitPreset("strict", 60, 5)
    # Standard API operations (playlist creation, track search)
    MODERATE = RateLimitPreset("moderate", 60, 10)
    # Authentication endpoints (login, logout, user info)
    RELAXED = RateLimitPreset("relaxed", 60, 20)


@dataclass
class RateLimitWindow:
    key: str
    count: int
    window_start: float


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_at: float
    retry_after: int = 0


class FixedWindowRateLimiter:
    """Counts requests per client within fixed windows.

    ``consume`` never raises for an over-limit client; it returns a decision
    and leaves the response to the caller. Concurrent callers racing a window
    boundary may let ``max + 1`` requests through, which is acceptable for the
    endpoints this guards.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.time,
        max_clients: int = MAX_TRACKED_CLIENTS,
        idle_ttl: float = IDLE_TTL_SECONDS,
    ) -> None:
        self._clock = clock
        self._max_clients = max_clients
        self._idle_ttl = idle_ttl
        self._buckets: dict[tuple[str, str], TTLCache[str, RateLimitWindow]] = {}
        self._lock = threading.Lock()

    def _windows(self, scope: str, preset: RateLimitPreset) -> TTLCache[str, RateLimitWindow]:
        key = (scope, preset.name)
        windows = self._buckets.get(key)
        if windows is None:
            windows = TTLCache(maxsize=self._max_clients, ttl=self._idle_ttl, timer=self._clock)
            self._buckets[key] = windows
        return windows

    def consume(
        self, client_key: str, preset: RateLimitPreset, *, scope: str = "default"
    ) -> RateLimitDecision:
        now = self._clock()
        with self._lock:
            windows = self._windows(scope, preset)
            window = windows.get(client_key)
            if window is None or now > window.window_start + preset.window_seconds:
                # First request or window expired, start a new window
                windows[client_key] = RateLimitWindow(client_key, 1, now)
                return RateLimitDecision(
                    allowed=True,
                    limit=preset.max_requests,
                    remaining=preset.max_requests - 1,
                    reset_at=now + preset.window_seconds,
                )

            window.count += 1
            # Re-assign so the idle TTL and recency restart
            windows[client_key] = window
            reset_at = window.window_start + preset.window_seconds

            if window.count > preset.max_requests:
                return RateLimitDecision(
                    allowed=False,
                    limit=preset.max_requests,
                    remaining=0,
                    reset_at=reset_at,
                    retry_after=max(1, math.ceil(reset_at - now)),
                )
            return RateLimitDecision(
                allowed=True,
                limit=preset.max_requests,
                remaining=preset.max_requests - window.count,
                reset_at=reset_at,
            )

    def reset(self) -> None:
        with self._lock:
            self._buckets.clear()


def client_identity(request: Request) -> str:
    """Best-effort client key: proxy headers first, then the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("x-real-ip")
    if real_ip and real_ip.strip():
        return real_ip.strip()

    if request.client and request.client.host:
        return request.client.host
    return "unknown"
