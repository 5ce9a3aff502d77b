"""In-memory sliding-window limiter (per process, cleared on restart)."""

import time
from collections import deque
from threading import Lock
from typing import Callable, Deque, Dict


class SlidingWindowLimiter:
    """
    Count events per key inside a rolling time window.

    Used for the per-IP request limit and for failed-login lockout. State
    is not shared between server processes.
    """

    def __init__(
        self,
        max_events: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_events = max_events
        self.window_seconds = window_seconds
        self._clock = clock
        self._events: Dict[str, Deque[float]] = {}
        self._last_sweep = clock()
        self.lock = Lock()

    def _prune(self, key: str, now: float) -> int:
        events = self._events.get(key)
        if events is None:
            return 0
        cutoff = now - self.window_seconds
        while events and events[0] <= cutoff:
            events.popleft()
        if not events:
            del self._events[key]
            return 0
        return len(events)

    def _sweep(self, now: float) -> None:
        # Drop keys that have gone quiet; runs at most once per window.
        if now - self._last_sweep < self.window_seconds:
            return
        self._last_sweep = now
        for key in list(self._events):
            self._prune(key, now)

    def hit(self, key: str) -> bool:
        """Record an event; returns False when the key is already at its limit."""
        with self.lock:
            now = self._clock()
            self._sweep(now)
            if self._prune(key, now) >= self.max_events:
                return False
            self._events.setdefault(key, deque()).append(now)
            return True

    def is_blocked(self, key: str) -> bool:
        with self.lock:
            return self._prune(key, self._clock()) >= self.max_events

    def retry_after(self, key: str) -> int:
        """Seconds until the oldest event in the window expires (0 when not blocked)."""
        with self.lock:
            now = self._clock()
            if self._prune(key, now) < self.max_events:
                return 0
            oldest = self._events[key][0]
            return max(1, int(oldest + self.window_seconds - now + 0.999))

    def reset(self, key: str) -> None:
        with self.lock:
            self._events.pop(key, None)
