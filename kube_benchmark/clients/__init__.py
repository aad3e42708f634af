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

from kubernetes import client
from kubernetes.dynamic import DynamicClient

from kube_benchmark.client.benchmark_client import BenchmarkClient
from kube_benchmark.scenario import ClientKind, ScenarioConfig
from .dynamic.dynamic_benchmark_client import DynamicBenchmarkClient
from .endpoints.endpoints_benchmark_client import EndpointsBenchmarkClient

logger = logging.getLogger(__name__)


class ClientFactory:
    """
    Owns the connection to the API server and hands out API objects.

    new_benchmark_client() is the only place that picks a BenchmarkClient variant.
    """

    def __init__(self, api_client: client.ApiClient, rate_limiter, request_timeout_seconds: float):
        self.api_client = api_client
        self.rate_limiter = rate_limiter
        self.request_timeout_seconds = request_timeout_seconds
        self.core_v1 = client.CoreV1Api(api_client)
        self.apiextensions_v1 = client.ApiextensionsV1Api(api_client)

        self._dynamic_client = None
        self._dynamic_lock = threading.Lock()

    @staticmethod
    def from_configuration(configuration) -> 'ClientFactory':
        """
        :param configuration: ClientConfiguration
        """
        return ClientFactory(
            configuration.new_api_client(),
            configuration.new_rate_limiter(),
            configuration.request_timeout_seconds
        )

    @property
    def dynamic_client(self) -> DynamicClient:
        with self._dynamic_lock:
            if self._dynamic_client is None:
                self._dynamic_client = DynamicClient(self.api_client)
            return self._dynamic_client

    def new_benchmark_client(self, scenario: ScenarioConfig) -> BenchmarkClient:
        logger.info(
            f"Creating {scenario.client_kind.value} client for {scenario.descriptor} "
            f"in namespace {scenario.namespace}"
        )
        if scenario.client_kind == ClientKind.TYPED:
            return EndpointsBenchmarkClient(
                self.api_client,
                scenario.namespace,
                scenario.template,
                scenario.list_options,
                self.rate_limiter,
                self.request_timeout_seconds,
                core_v1=self.core_v1
            )
        return DynamicBenchmarkClient(
            self.dynamic_client,
            scenario.descriptor,
            scenario.namespace,
            scenario.template,
            scenario.list_options,
            self.rate_limiter,
            self.request_timeout_seconds
        )

    def close(self):
        self.api_client.close()


__all__ = [
    'ClientFactory',
    'DynamicBenchmarkClient',
    'EndpointsBenchmarkClient',
]
