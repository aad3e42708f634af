import time
from typing import Callable, Optional


class Timer:

    def __init__(self, nano_clock: Optional[Callable[[], int]] = None):
        """
        Start a monotonic stopwatch.

        :param nano_clock: Optional nanosecond clock function. Defaults to time.perf_counter_ns
        """
        self.nano_clock = nano_clock if nano_clock is not None else time.perf_counter_ns
        self.start_time = self.nano_clock()

    def restart(self):
        self.start_time = self.nano_clock()

    def elapsed_nanos(self) -> int:
        return self.nano_clock() - self.start_time

    def elapsed_micros(self) -> int:
        return self.elapsed_nanos() // 1_000

    def elapsed_millis(self) -> float:
        return self.elapsed_nanos() / 1_000_000.0

    def elapsed_seconds(self) -> float:
        return self.elapsed_nanos() / 1_000_000_000.0
