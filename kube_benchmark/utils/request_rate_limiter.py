import time
import math
import threading
from typing import Callable, Optional


class RequestRateLimiter:
    """
    Client-side request throttle shared by every benchmark client of a process.

    Operations are spaced ``1 / qps`` apart on a virtual timeline. Idle time is credited
    up to ``burst`` operations, so a burst of requests after a quiet period goes out
    without waiting.
    """

    ONE_SEC_IN_NS = 1_000_000_000

    def __init__(self, qps: float, burst: int, nano_clock: Optional[Callable[[], int]] = None):
        if math.isnan(qps) or math.isinf(qps):
            raise ValueError("qps cannot be NaN or Infinite")
        if qps <= 0:
            raise ValueError("qps must be greater than 0")
        if burst < 1:
            raise ValueError("burst must be at least 1")

        self.qps = qps
        self.burst = burst
        self.interval_ns = round(self.ONE_SEC_IN_NS / qps)
        self.nano_clock = nano_clock if nano_clock is not None else time.perf_counter_ns

        self._virtual_time = None
        self._lock = threading.Lock()

    def reserve(self) -> int:
        """
        Reserve the next slot.

        :return: Intended send time in nanoseconds on the limiter clock
        """
        with self._lock:
            now = self.nano_clock()
            earliest = now - (self.burst - 1) * self.interval_ns
            if self._virtual_time is None or self._virtual_time < earliest:
                self._virtual_time = earliest
            intended = self._virtual_time
            self._virtual_time += self.interval_ns
        return max(intended, now)

    def acquire(self):
        """Block until the caller may issue its request."""
        intended = self.reserve()
        sleep_ns = intended - self.nano_clock()
        if sleep_ns > 0:
            time.sleep(sleep_ns / self.ONE_SEC_IN_NS)


class UnlimitedRateLimiter:

    def acquire(self):
        pass
