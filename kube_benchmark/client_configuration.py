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
from pathlib import Path
from typing import Optional

import yaml
from kubernetes import client, config

from kube_benchmark.utils.env import Env
from kube_benchmark.utils.request_rate_limiter import RequestRateLimiter, UnlimitedRateLimiter

logger = logging.getLogger(__name__)


class ClientConfiguration:
    """
    Connection settings of the benchmark clients.

    Defaults favour heavy load: high QPS/burst limits and a 10 minute request
    timeout that tolerates slow bulk deletes.
    """

    def __init__(self):
        self.name = "kubernetes"
        # None means in-cluster config first, then the default kubeconfig
        self.kubeconfig = None
        self.context = None
        self.qps = 10000.0
        self.burst = 20000
        self.request_timeout_seconds = 600.0
        # one connection per concurrent watcher/creator avoids pool-full churn
        self.connection_pool_maxsize = 2048

    @staticmethod
    def load(path: Optional[str] = None) -> 'ClientConfiguration':
        """
        Read the configuration from a YAML file (if given), then apply environment overrides.

        :param path: Optional YAML file with camelCase keys
        """
        data = {}
        if path is not None:
            with open(Path(path), 'r') as f:
                data = yaml.safe_load(f) or {}
        configuration = ClientConfiguration._from_dict(data)
        configuration._apply_env()
        return configuration

    @staticmethod
    def _from_dict(data: dict) -> 'ClientConfiguration':
        configuration = ClientConfiguration()
        configuration.name = data.get('name', configuration.name)
        configuration.kubeconfig = data.get('kubeconfig', configuration.kubeconfig)
        configuration.context = data.get('context', configuration.context)
        configuration.qps = float(data.get('qps', configuration.qps))
        configuration.burst = int(data.get('burst', configuration.burst))
        configuration.request_timeout_seconds = float(
            data.get('requestTimeoutSeconds', configuration.request_timeout_seconds)
        )
        configuration.connection_pool_maxsize = int(
            data.get('connectionPoolMaxsize', configuration.connection_pool_maxsize)
        )
        return configuration

    def _apply_env(self):
        self.kubeconfig = Env.get_str('KUBECONFIG', self.kubeconfig)
        self.context = Env.get_str('CONTEXT', self.context)
        self.qps = Env.get_double('QPS', self.qps)
        self.burst = Env.get_long('BURST', self.burst)
        self.request_timeout_seconds = Env.get_double('REQUEST_TIMEOUT_SECONDS', self.request_timeout_seconds)

    def new_api_client(self) -> client.ApiClient:
        """Build an ApiClient from in-cluster config or a kubeconfig file."""
        client_configuration = client.Configuration()
        if self.kubeconfig is None and self.context is None:
            try:
                config.load_incluster_config(client_configuration=client_configuration)
                logger.info("Using in-cluster Kubernetes configuration")
            except config.ConfigException:
                config.load_kube_config(client_configuration=client_configuration)
                logger.info("Using default kubeconfig file")
        else:
            config.load_kube_config(
                config_file=self.kubeconfig,
                context=self.context,
                client_configuration=client_configuration
            )
            logger.info(f"Using kubeconfig {self.kubeconfig or '<default>'} (context={self.context or '<current>'})")

        client_configuration.connection_pool_maxsize = self.connection_pool_maxsize
        return client.ApiClient(configuration=client_configuration)

    def new_rate_limiter(self):
        if self.qps <= 0:
            return UnlimitedRateLimiter()
        return RequestRateLimiter(self.qps, self.burst)

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'kubeconfig': self.kubeconfig,
            'context': self.context,
            'qps': self.qps,
            'burst': self.burst,
            'requestTimeoutSeconds': self.request_timeout_seconds,
            'connectionPoolMaxsize': self.connection_pool_maxsize,
        }
