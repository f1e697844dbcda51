"""Per-user request throttling for the insight endpoint."""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable

from thought_weaver.core.metrics import RATE_LIMIT_TRACKED_USERS


@dataclass(frozen=True, slots=True)
class RateLimitDecision:
    allowed: bool
    retry_after_ms: int = 0


class RateLimiter:
    """Allow one request per user every ``min_interval_ms``.

    The check and the timestamp update happen under one lock, so two
    concurrent requests from the same user cannot both pass. Rejected
    requests do not move the window. At most ``max_users`` users are
    tracked; the least recently allowed user is forgotten first.
    """

    def __init__(
        self,
        min_interval_ms: int = 60_000,
        max_users: int = 10_000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.min_interval_ms = min_interval_ms
        self.max_users = max_users
        self._clock = clock
        self._last_allowed: OrderedDict[str, float] = OrderedDict()
        self._lock = threading.Lock()

    def check(self, user_id: str) -> RateLimitDecision:
        now = self._clock() * 1000
        with self._lock:
            last = self._last_allowed.get(user_id)
            if last is not None and now - last < self.min_interval_ms:
                return RateLimitDecision(allowed=False, retry_after_ms=int(self.min_interval_ms - (now - last)))
            self._last_allowed[user_id] = now
            self._last_allowed.move_to_end(user_id)
            while len(self._last_allowed) > self.max_users:
                self._last_allowed.popitem(last=False)
            RATE_LIMIT_TRACKED_USERS.set(len(self._last_allowed))
        return RateLimitDecision(allowed=True)

    def reset(self, user_id: str | None = None) -> None:
        with self._lock:
            if user_id is None:
                self._last_allowed.clear()
            else:
                self._last_allowed.pop(user_id, None)
            RATE_LIMIT_TRACKED_USERS.set(len(self._last_allowed))

    def __len__(self) -> int:
        return len(self._last_allowed)


__all__ = ["RateLimiter", "RateLimitDecision"]
