from __future__ import annotations

import math
import time
from dataclasses import dataclass
from threading import Lock
from typing import Callable


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    remaining: int
    retry_after_seconds: int


@dataclass
class _Window:
    count: int
    reset_at: float


class FixedWindowRateLimiter:
    """Fixed-window attempt counter keyed by client identifier.

    A window opens on the first hit for a key and is replaced lazily by the
    first hit after it elapses. Expired windows are pruned at most once per
    window length, from inside ``hit``.
    """

    def __init__(
        self,
        *,
        max_attempts: int = 5,
        window_seconds: float = 15 * 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_attempts <= 0:
            raise ValueError("max_attempts must be positive.")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive.")
        self._max_attempts = max_attempts
        self._window_seconds = float(window_seconds)
        self._clock = clock
        self._lock = Lock()
        self._windows: dict[str, _Window] = {}
        self._next_sweep_at = clock() + self._window_seconds

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    @property
    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._windows)

    def _sweep(self, now: float) -> None:
        expired = [key for key, window in self._windows.items() if now > window.reset_at]
        for key in expired:
            del self._windows[key]
        self._next_sweep_at = now + self._window_seconds

    def hit(self, key: str) -> RateLimitDecision:
        with self._lock:
            now = self._clock()
            if now >= self._next_sweep_at:
                self._sweep(now)
            window = self._windows.get(key)
            if window is None or now > window.reset_at:
                self._windows[key] = _Window(count=1, reset_at=now + self._window_seconds)
                return RateLimitDecision(
                    allowed=True,
                    remaining=self._max_attempts - 1,
                    retry_after_seconds=0,
                )

            if window.count >= self._max_attempts:
                return RateLimitDecision(
                    allowed=False,
                    remaining=0,
                    retry_after_seconds=max(math.ceil(window.reset_at - now), 1),
                )

            window.count += 1
            return RateLimitDecision(
                allowed=True,
                remaining=self._max_attempts - window.count,
                retry_after_seconds=0,
            )
