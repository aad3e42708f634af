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
from typing import Any, Dict

from kubernetes import client
from kubernetes.client import ApiClient

from kube_benchmark.client.benchmark_client import BenchmarkClient
from kube_benchmark.client.benchmark_watch import BenchmarkWatch, StreamBenchmarkWatch
from kube_benchmark.scenario import ListOptions
from kube_benchmark.utils.model_codec import to_model


class EndpointsBenchmarkClient(BenchmarkClient):
    """BenchmarkClient over the typed CoreV1Api, with V1Endpoints models."""

    MODEL = "V1Endpoints"

    def __init__(
        self,
        api_client: ApiClient,
        namespace: str,
        template: Dict[str, Any],
        list_options: ListOptions,
        rate_limiter,
        request_timeout_seconds: float,
        core_v1: client.CoreV1Api = None
    ):
        self.api_client = api_client
        self.core_v1 = core_v1 if core_v1 is not None else client.CoreV1Api(api_client)
        self.namespace = namespace
        self.template = to_model(api_client, template, self.MODEL)
        self.list_options = list_options
        self.rate_limiter = rate_limiter
        self.request_timeout_seconds = request_timeout_seconds

    def create(self, index: int) -> client.V1Endpoints:
        obj = copy.deepcopy(self.template)
        if obj.metadata is None:
            obj.metadata = client.V1ObjectMeta()
        obj.metadata.name = self.object_name(index)
        self.rate_limiter.acquire()
        return self.core_v1.create_namespaced_endpoints(
            self.namespace, obj, _request_timeout=self.request_timeout_seconds
        )

    def list(self) -> client.V1EndpointsList:
        self.rate_limiter.acquire()
        return self.core_v1.list_namespaced_endpoints(
            self.namespace,
            _request_timeout=self.request_timeout_seconds,
            **self.list_options.to_kwargs()
        )

    def count(self) -> int:
        self.rate_limiter.acquire()
        result = self.core_v1.list_namespaced_endpoints(
            self.namespace, _request_timeout=self.request_timeout_seconds
        )
        return len(result.items)

    def watch(self) -> BenchmarkWatch:
        self.rate_limiter.acquire()
        response = self.core_v1.list_namespaced_endpoints(
            self.namespace,
            watch=True,
            _preload_content=False,
            _request_timeout=self.request_timeout_seconds,
            **self.list_options.to_kwargs()
        )
        return StreamBenchmarkWatch(response, decode_object=self._decode)

    def delete_collection(self):
        self.rate_limiter.acquire()
        self.core_v1.delete_collection_namespaced_endpoints(
            self.namespace, _request_timeout=self.request_timeout_seconds
        )

    def _decode(self, data: Dict[str, Any]) -> client.V1Endpoints:
        return to_model(self.api_client, data, self.MODEL)
