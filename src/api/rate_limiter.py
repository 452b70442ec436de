"""Fixed window rate limiter keyed by client identifier

State lives in process memory only: it is lost on restart and is not shared
between server instances.
"""

import time
import logging
from dataclasses import dataclass
from typing import Callable, Dict

log = logging.getLogger(__name__)


@dataclass
class RateLimitRecord:
    """Request count for the current window of one identifier"""
    count: int
    reset_time: float


class RateLimiter:
    """Count requests per identifier in fixed windows"""

    def __init__(
        self,
        max_requests: int = 100,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize rate limiter

        Args:
            max_requests: Requests allowed per identifier per window
            window_seconds: Window length in seconds
            clock: Time source, monotonic seconds
        """
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self.store: Dict[str, RateLimitRecord] = {}

    def is_allowed(self, identifier: str) -> bool:
        """Record a request and report whether it fits in the current window"""
        now = self._clock()
        record = self.store.get(identifier)

        if record is None or now > record.reset_time:
            self.store[identifier] = RateLimitRecord(count=1, reset_time=now + self.window_seconds)
            return True

        if record.count >= self.max_requests:
            return False

        record.count += 1
        return True

    def remaining(self, identifier: str) -> int:
        record = self.store.get(identifier)
        if record is None or self._clock() > record.reset_time:
            return self.max_requests
        return max(0, self.max_requests - record.count)

    def reset_time(self, identifier: str) -> float:
        record = self.store.get(identifier)
        return record.reset_time if record else self._clock()

    def purge_expired(self) -> int:
        """Drop records whose window has ended, returns how many were removed"""
        now = self._clock()
        expired = [key for key, record in self.store.items() if now > record.reset_time]

        for key in expired:
            del self.store[key]

        if expired:
            log.debug(f"Purged {len(expired)} expired rate limit records")

        return len(expired)
