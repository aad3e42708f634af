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

import time
from abc import ABC, abstractmethod
from typing import Any

from .benchmark_watch import BenchmarkWatch


class BenchmarkClient(ABC):
    """
    Capability interface of the workload drivers.

    An instance binds a resource kind, a namespace, an object template and list
    options. The template is never mutated; create() may be called from many
    threads at once.
    """

    @abstractmethod
    def create(self, index: int) -> Any:
        """
        Create one object from the template.

        The object is named from a nanosecond timestamp and index, so concurrent
        callers passing distinct indices never collide.

        :param index: Caller supplied discriminator
        :return: the created object as returned by the server
        :raises ApiException: the remote error, unmodified
        """
        pass

    @abstractmethod
    def list(self) -> Any:
        """List the bound collection using the bound list options."""
        pass

    @abstractmethod
    def count(self) -> int:
        """
        Number of objects in the bound collection, read consistently from storage.

        Only used for population checks, never inside a measured region.
        """
        pass

    @abstractmethod
    def watch(self) -> BenchmarkWatch:
        """
        Subscribe to changes of the bound collection using the bound list options.

        Returns once the server accepted the subscription.
        """
        pass

    @abstractmethod
    def delete_collection(self):
        """Delete every object of the bound kind in the bound namespace."""
        pass

    def close(self):
        """Release client resources."""
        pass

    @staticmethod
    def object_name(index: int) -> str:
        return f"{time.time_ns()}-{index}"

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
