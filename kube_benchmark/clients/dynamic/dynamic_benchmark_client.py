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

import copy
import logging
import threading
from typing import Any, Dict

from kube_benchmark.client.benchmark_client import BenchmarkClient
from kube_benchmark.client.benchmark_watch import BenchmarkWatch, StreamBenchmarkWatch
from kube_benchmark.scenario import ListOptions, ResourceDescriptor

logger = logging.getLogger(__name__)


class DynamicBenchmarkClient(BenchmarkClient):
    """
    BenchmarkClient over kubernetes.dynamic.DynamicClient.

    The kind is described by a ResourceDescriptor and objects are plain dicts. The
    descriptor is resolved through API discovery on first use, so an unknown kind
    fails on its first remote call.
    """

    def __init__(
        self,
        dynamic_client,
        descriptor: ResourceDescriptor,
        namespace: str,
        template: Dict[str, Any],
        list_options: ListOptions,
        rate_limiter,
        request_timeout_seconds: float
    ):
        """
        :param dynamic_client: kubernetes.dynamic.DynamicClient
        :param descriptor: Group/version/resource of the kind
        :param namespace: Namespace all calls are scoped to
        :param template: Object document; never mutated
        :param list_options: Options of list() and watch()
        :param rate_limiter: Shared client-side throttle
        :param request_timeout_seconds: Per request timeout
        """
        self.dynamic_client = dynamic_client
        self.descriptor = descriptor
        self.namespace = namespace
        self.template = template
        self.list_options = list_options
        self.rate_limiter = rate_limiter
        self.request_timeout_seconds = request_timeout_seconds

        self._resource = None
        self._resource_lock = threading.Lock()

    def create(self, index: int) -> Any:
        obj = copy.deepcopy(self.template)
        obj.setdefault('metadata', {})['name'] = self.object_name(index)
        resource = self._get_resource()
        self.rate_limiter.acquire()
        return resource.create(body=obj, namespace=self.namespace, _request_timeout=self.request_timeout_seconds)

    def list(self) -> Any:
        resource = self._get_resource()
        self.rate_limiter.acquire()
        return resource.get(
            namespace=self.namespace,
            _request_timeout=self.request_timeout_seconds,
            **self.list_options.to_kwargs()
        )

    def count(self) -> int:
        resource = self._get_resource()
        self.rate_limiter.acquire()
        result = resource.get(namespace=self.namespace, _request_timeout=self.request_timeout_seconds)
        return len(result.items)

    def watch(self) -> BenchmarkWatch:
        resource = self._get_resource()
        self.rate_limiter.acquire()
        response = resource.get(
            namespace=self.namespace,
            watch=True,
            serialize=False,
            _request_timeout=self.request_timeout_seconds,
            **self.list_options.to_kwargs()
        )
        return StreamBenchmarkWatch(response)

    def delete_collection(self):
        resource = self._get_resource()
        self.rate_limiter.acquire()
        # the dynamic client needs a selector to address a collection
        resource.delete(
            namespace=self.namespace,
            field_selector=f"metadata.namespace={self.namespace}",
            _request_timeout=self.request_timeout_seconds
        )

    def _get_resource(self):
        with self._resource_lock:
            if self._resource is None:
                logger.debug(f"Discovering {self.descriptor}")
                self._resource = self.dynamic_client.resources.get(
                    api_version=self.descriptor.api_version,
                    name=self.descriptor.resource
                )
            return self._resource
