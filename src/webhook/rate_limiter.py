"""Per-sender sliding window rate limiter for inbound chat messages."""

from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    retry_after_seconds: int | None = None


@dataclass
class _SenderWindow:
    timestamps: list[float] = field(default_factory=list)
    blocked_until: float | None = None


class SenderRateLimiter:
    """Sliding window rate limiter keyed by channel-scoped sender id.

    Default: 10 messages per 60 seconds. A sender who exceeds the limit is
    blocked for ``block_seconds``; with ``block_seconds=0`` the limiter is a
    plain sliding window and the sender may retry once the oldest message
    leaves the window.
    """

    def __init__(
        self,
        max_requests: int = 10,
        window_seconds: int = 60,
        block_seconds: int = 300,
    ) -> None:
        self._max_requests = max_requests
        self._window_seconds = window_seconds
        self._block_seconds = block_seconds
        self._windows: dict[str, _SenderWindow] = {}
        self._lock = threading.Lock()

    def allow(self, sender_id: str) -> RateLimitDecision:
        """Record a message from ``sender_id`` and decide whether to serve it."""
        now = time.time()
        with self._lock:
            window = self._windows.setdefault(sender_id, _SenderWindow())

            if window.blocked_until is not None:
                if now < window.blocked_until:
                    return RateLimitDecision(
                        allowed=False,
                        retry_after_seconds=math.ceil(window.blocked_until - now),
                    )
                window.blocked_until = None
                window.timestamps = []

            cutoff = now - self._window_seconds
            window.timestamps = [t for t in window.timestamps if t > cutoff]

            if len(window.timestamps) >= self._max_requests:
                if self._block_seconds > 0:
                    window.blocked_until = now + self._block_seconds
                    retry_after = self._block_seconds
                else:
                    retry_after = math.ceil(window.timestamps[0] + self._window_seconds - now)
                logger.warning(
                    "Rate limit exceeded for sender %s (%d messages/%ds)",
                    sender_id, self._max_requests, self._window_seconds,
                )
                return RateLimitDecision(allowed=False, retry_after_seconds=max(retry_after, 1))

            window.timestamps.append(now)
            return RateLimitDecision(allowed=True)

    def reset(self, sender_id: str) -> None:
        """Lift any block and forget the sender's history."""
        with self._lock:
            self._windows.pop(sender_id, None)
        logger.info("Rate limit reset for sender %s", sender_id)

    def cleanup(self) -> int:
        """Drop idle, unblocked senders. Returns the number removed."""
        now = time.time()
        cutoff = now - self._window_seconds
        removed = 0
        with self._lock:
            for sender_id in list(self._windows):
                window = self._windows[sender_id]
                blocked = window.blocked_until is not None and now < window.blocked_until
                if not blocked and all(t <= cutoff for t in window.timestamps):
                    del self._windows[sender_id]
                    removed += 1
        return removed
