"""Tests for workload and client configuration loading."""

from unittest.mock import patch

import pytest
from kubernetes.config import ConfigException

from kube_benchmark.client_configuration import ClientConfiguration
from kube_benchmark.utils.request_rate_limiter import RequestRateLimiter, UnlimitedRateLimiter
from kube_benchmark.workload import Workload


class TestWorkload:

    def test_defaults(self):
        workload = Workload()
        assert workload.throughput_fan_out == 100
        assert workload.list_size == 1000
        assert workload.watcher_count == 1000
        assert workload.large_data_size == 10000

    def test_from_dict(self):
        workload = Workload.from_dict({
            'name': 'small',
            'iterations': 5,
            'throughputFanOut': 8,
            'listSize': 50,
            'watcherCount': 3,
            'largeDataSize': 64,
            'settleTimeoutSeconds': 10,
        })
        assert workload.name == 'small'
        assert workload.iterations == 5
        assert workload.throughput_fan_out == 8
        assert workload.list_size == 50
        assert workload.watcher_count == 3
        assert workload.large_data_size == 64
        assert workload.settle_timeout_seconds == 10
        assert workload.to_dict()['throughputFanOut'] == 8

    @pytest.mark.parametrize("data", [
        {'iterations': 0},
        {'watcherCount': -1},
        {'listSize': -5},
        {'largeDataSize': 1},
    ])
    def test_invalid_values(self, data):
        with pytest.raises(ValueError):
            Workload.from_dict(data)


class TestClientConfiguration:

    def test_defaults(self, monkeypatch):
        for key in ('KUBECONFIG', 'CONTEXT', 'QPS', 'BURST', 'REQUEST_TIMEOUT_SECONDS'):
            monkeypatch.delenv(f"KUBE_BENCHMARK_{key}", raising=False)
        configuration = ClientConfiguration.load()
        assert configuration.qps == 10000.0
        assert configuration.burst == 20000
        assert configuration.request_timeout_seconds == 600.0

    def test_file_then_environment(self, tmp_path, monkeypatch):
        path = tmp_path / "client.yaml"
        path.write_text("kubeconfig: /tmp/kubeconfig\nqps: 50\nburst: 100\nrequestTimeoutSeconds: 30\n")
        monkeypatch.setenv("KUBE_BENCHMARK_BURST", "7")

        configuration = ClientConfiguration.load(str(path))
        assert configuration.kubeconfig == "/tmp/kubeconfig"
        assert configuration.qps == 50.0
        assert configuration.burst == 7
        assert configuration.request_timeout_seconds == 30.0

    def test_rate_limiter(self):
        configuration = ClientConfiguration()
        assert isinstance(configuration.new_rate_limiter(), RequestRateLimiter)
        configuration.qps = 0
        assert isinstance(configuration.new_rate_limiter(), UnlimitedRateLimiter)

    def test_explicit_kubeconfig(self):
        configuration = ClientConfiguration()
        configuration.kubeconfig = "/tmp/kubeconfig"
        configuration.context = "bench"
        configuration.connection_pool_maxsize = 16

        with patch('kube_benchmark.client_configuration.config.load_kube_config') as load_kube_config:
            api_client = configuration.new_api_client()

        assert load_kube_config.call_args.kwargs['config_file'] == "/tmp/kubeconfig"
        assert load_kube_config.call_args.kwargs['context'] == "bench"
        assert api_client.configuration.connection_pool_maxsize == 16
        api_client.close()

    def test_falls_back_to_kubeconfig_outside_cluster(self):
        configuration = ClientConfiguration()
        with patch('kube_benchmark.client_configuration.config.load_incluster_config') as load_incluster_config, \
                patch('kube_benchmark.client_configuration.config.load_kube_config') as load_kube_config:
            load_incluster_config.side_effect = ConfigException("not in a cluster")
            configuration.new_api_client().close()
        load_kube_config.assert_called_once()

