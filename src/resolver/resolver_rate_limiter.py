"""
Minimum-interval rate limiter for provider requests.

One limiter instance is shared by the whole process so that every outbound
call to the metadata provider is spaced by at least the configured interval.
"""

import threading
import time

from ..config.logger_module import log_debug, log_info


class IntervalRateLimiter:
    """
    Spaces admissions by a fixed minimum interval.

    Two modes are supported:
    - "serialized": admissions are granted one at a time under a lock, so no
      two are ever closer than the interval, even with concurrent callers.
    - "burst": each caller computes its wait from an unsynchronized read of
      the last admission time. Concurrent callers that read the same value
      are admitted together, as uncoordinated batch workers would be.
    """

    def __init__(self,
                 min_interval: float = 0.1,
                 mode: str = "serialized"):
        """
        Initialize the rate limiter.

        Args:
            min_interval: Minimum seconds between admissions (0.1 = 10 req/sec)
            mode: "serialized" or "burst"
        """
        if min_interval < 0:
            raise ValueError("min_interval cannot be negative")
        if mode not in ("serialized", "burst"):
            raise ValueError(f"Invalid rate limit mode: {mode}")

        self.min_interval = min_interval
        self.mode = mode
        self.last_admitted = None
        self._lock = threading.Lock()

        log_info(
            f"RateLimiter initialized: {min_interval * 1000:.0f}ms interval, "
            f"mode: {mode}"
        )

    def _remaining(self, now: float) -> float:
        if self.last_admitted is None:
            return 0.0
        return max(0.0, self.min_interval - (now - self.last_admitted))

    def admit(self) -> None:
        """Block until the caller may issue one provider request."""
        if self.mode == "serialized":
            with self._lock:
                self._wait_and_mark()
        else:
            self._wait_and_mark()

    def _wait_and_mark(self) -> None:
        wait_time = self._remaining(time.monotonic())
        if wait_time > 0:
            log_debug(f"Rate limited. Waiting {wait_time * 1000:.0f}ms")
            time.sleep(wait_time)
        self.last_admitted = time.monotonic()

    def get_wait_time(self) -> float:
        """
        Calculate the remaining wait without blocking.

        Returns:
            Seconds until the next admission (0 if one is available now)
        """
        return self._remaining(time.monotonic())
