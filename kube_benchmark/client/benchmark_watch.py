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

import json
import logging
import socket
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterator, Optional

from kubernetes.watch.watch import iter_resp_lines

logger = logging.getLogger(__name__)

Event = Dict[str, Any]


class BenchmarkWatch(ABC):
    """
    An open watch subscription.

    Iterating yields events as {"type": ..., "object": ...} until the server closes the
    stream or stop() is called.
    """

    @abstractmethod
    def __iter__(self) -> Iterator[Event]:
        pass

    @abstractmethod
    def stop(self):
        """Terminate the subscription; safe to call more than once and from any thread."""
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()


class StreamBenchmarkWatch(BenchmarkWatch):
    """
    Watch backed by a raw streaming HTTP response (urllib3), one JSON event per line.

    :param response: Response of a list call made with watch=True and _preload_content=False
    :param decode_object: Converts the event object into the client representation
    """

    def __init__(self, response, decode_object: Optional[Callable[[Dict[str, Any]], Any]] = None):
        self.response = response
        self.decode_object = decode_object
        self._stopped = threading.Event()
        self._lock = threading.Lock()

    def __iter__(self) -> Iterator[Event]:
        lines = iter_resp_lines(self.response)
        while True:
            try:
                line = next(lines)
            except StopIteration:
                return
            except Exception as e:
                # stop() tears the connection down under the reader
                if self._stopped.is_set():
                    logger.debug(f"Watch stream ended after stop: {e!r}")
                    return
                raise
            if self._stopped.is_set():
                return
            if not line:
                continue
            event = json.loads(line)
            if self.decode_object is not None and event.get('type') != 'ERROR':
                event['object'] = self.decode_object(event['object'])
            yield event

    def stop(self):
        with self._lock:
            if self._stopped.is_set():
                return
            self._stopped.set()
        self._shutdown_socket()
        self.response.close()
        self.response.release_conn()

    def _shutdown_socket(self):
        """Wake a reader blocked in recv(), which close() alone does not do."""
        shutdown = getattr(self.response, 'shutdown', None)
        if callable(shutdown):
            try:
                shutdown()
                return
            except (ValueError, RuntimeError) as e:
                logger.debug(f"Response cannot shut down its socket: {e}")

        sock = getattr(getattr(self.response, 'connection', None), 'sock', None)
        if sock is None:
            return
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError as e:
            logger.debug(f"Watch socket already closed: {e}")

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()
