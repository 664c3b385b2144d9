from __future__ import annotations

import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable


@dataclass(slots=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_at: float


@dataclass(slots=True)
class _Window:
    count: int
    reset_at: float


class RateLimiter:
    """Fixed-window request counter keyed by client identifier.

    Expired windows are swept lazily on each check. State lives in a plain
    dict with no locking; it is only touched from the event loop.
    """

    def __init__(
        self,
        *,
        window_seconds: int,
        max_requests: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.window_seconds = window_seconds
        self.max_requests = max_requests
        self._clock = clock
        self._windows: dict[str, _Window] = {}

    def check(self, identifier: str) -> RateLimitResult:
        now = self._clock()
        self._sweep(now)

        window = self._windows.get(identifier)
        if window is None or now > window.reset_at:
            window = _Window(count=1, reset_at=now + self.window_seconds)
            self._windows[identifier] = window
            return RateLimitResult(True, self.max_requests - 1, window.reset_at)

        if window.count >= self.max_requests:
            return RateLimitResult(False, 0, window.reset_at)

        window.count += 1
        return RateLimitResult(True, self.max_requests - window.count, window.reset_at)

    def reset(self) -> None:
        self._windows.clear()

    def _sweep(self, now: float) -> None:
        expired = [key for key, window in self._windows.items() if now > window.reset_at]
        for key in expired:
            del self._windows[key]


def client_identifier(user_id: str | None, client_ip: str | None) -> str:
    if user_id:
        return f"user:{user_id}"
    return f"ip:{client_ip or 'unknown'}"
