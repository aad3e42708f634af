# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, FIRST_EXCEPTION, wait
from typing import Callable, List, Optional

from kube_benchmark.errors import WorkloadError

logger = logging.getLogger(__name__)


class CountDownLatch:
    """Readiness barrier: wait() returns once count_down() was called count times."""

    def __init__(self, count: int):
        if count < 0:
            raise ValueError("count must not be negative")
        self._count = count
        self._condition = threading.Condition()

    def count_down(self):
        with self._condition:
            if self._count > 0:
                self._count -= 1
                if self._count == 0:
                    self._condition.notify_all()

    def get_count(self) -> int:
        with self._condition:
            return self._count

    def wait(self, timeout: Optional[float] = None) -> bool:
        with self._condition:
            return self._condition.wait_for(lambda: self._count == 0, timeout)


class TaskGroup:
    """
    A fail-fast group of threads, one per unit of work.

    The first task failure cancels every task that has not started yet, runs the
    registered cancel callbacks (used to close watch streams) and is re-raised from
    wait() as a WorkloadError. Running tasks are not interrupted; wait() lets them
    unwind before returning.
    """

    LATCH_POLL_INTERVAL_SECONDS = 0.1

    def __init__(self, name: str, max_workers: int):
        """
        :param name: Prefix for thread names and error messages
        :param max_workers: Number of threads; use the task count for full fan-out
        """
        self.name = name
        self.executor = ThreadPoolExecutor(max_workers=max(1, max_workers), thread_name_prefix=name)
        self.cancelled = threading.Event()

        self._futures: List[Future] = []
        self._cancel_callbacks: List[Callable[[], None]] = []
        self._first_error: Optional[BaseException] = None
        self._lock = threading.Lock()

    def submit(self, fn: Callable, *args, **kwargs) -> Future:
        """Schedule fn; once the group is cancelled the returned future is cancelled and fn never runs."""
        with self._lock:
            if self.cancelled.is_set():
                future = Future()
                future.cancel()
                return future
            future = self.executor.submit(fn, *args, **kwargs)
            self._futures.append(future)
        # outside the lock: runs _on_done at once if fn already finished
        future.add_done_callback(self._on_done)
        return future

    def on_cancel(self, callback: Callable[[], None]):
        """Register a callback for cancellation; runs immediately if the group already failed."""
        with self._lock:
            if not self.cancelled.is_set():
                self._cancel_callbacks.append(callback)
                return
        self._run_callback(callback)

    def cancel(self, error: Optional[BaseException] = None):
        with self._lock:
            if self.cancelled.is_set():
                return
            self._first_error = error
            self.cancelled.set()
            callbacks = list(self._cancel_callbacks)
            self._cancel_callbacks.clear()

        if error is not None:
            logger.error(f"Task group '{self.name}' failed, cancelling remaining tasks: {error}")
        for future in self._futures:
            future.cancel()
        for callback in callbacks:
            self._run_callback(callback)

    def wait_for_latch(self, latch: CountDownLatch):
        """Block until latch opens; raises WorkloadError if a task fails first."""
        while not latch.wait(timeout=self.LATCH_POLL_INTERVAL_SECONDS):
            if self.cancelled.is_set():
                self.wait()
                raise WorkloadError(f"{self.name}: cancelled before all tasks were ready")

    def wait(self):
        """
        Wait for every task.

        :raises WorkloadError: chained to the first task failure
        """
        try:
            done, _ = wait(self._futures, return_when=FIRST_EXCEPTION)
            for future in done:
                if not future.cancelled() and future.exception() is not None:
                    self.cancel(future.exception())
                    break
            # lets in-flight tasks unwind after a failure
            wait(self._futures)
        finally:
            self.executor.shutdown(wait=True)

        if self._first_error is not None:
            raise WorkloadError(f"{self.name}: {self._first_error}") from self._first_error
        if self.cancelled.is_set():
            raise WorkloadError(f"{self.name}: cancelled")

    def _on_done(self, future: Future):
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            self.cancel(error)

    def _run_callback(self, callback: Callable[[], None]):
        try:
            callback()
        except Exception as e:
            logger.warning(f"Cancel callback of task group '{self.name}' raised: {e}")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None:
            self.cancel(exc_val)
        self.executor.shutdown(wait=True)
