"""Tests for environment preparation against in-memory API fakes."""

from unittest.mock import Mock

import pytest
from kubernetes import client
from kubernetes.client.rest import ApiException

from conftest import FakeApiextensionsV1, FakeBenchmarkClient, FakeCoreV1, no_sleep
from kube_benchmark.environment import EnvironmentPreparer
from kube_benchmark.errors import (
    EnvironmentSetupError,
    PopulationMismatchError,
    SettleTimeoutError,
)
from kube_benchmark.scenario_resolver import ScenarioResolver
from kube_benchmark.templates import FOO_CRD_NAME
from kube_benchmark.utils.model_codec import to_dict


class TestEnsureNamespace:

    def test_creates_missing_namespace_once(self, environment, core_v1):
        assert environment.ensure_namespace("empty") is True
        assert environment.ensure_namespace("empty") is False
        assert core_v1.create_calls == 1
        assert core_v1.namespaces["empty"].status.phase == "Active"

    def test_waits_until_active(self, api_client):
        core_v1 = FakeCoreV1(pending_reads=3)
        sleeps = []
        environment = EnvironmentPreparer(
            api_client, core_v1, FakeApiextensionsV1(),
            settle_timeout_seconds=5.0, poll_interval_seconds=0.25, sleep=sleeps.append
        )
        environment.ensure_namespace("large-data")
        assert sleeps == [0.25, 0.25, 0.25]

    def test_times_out_when_never_active(self, api_client):
        core_v1 = FakeCoreV1(pending_reads=10 ** 6)
        ticks = iter(range(10 ** 6))
        environment = EnvironmentPreparer(
            api_client, core_v1, FakeApiextensionsV1(),
            settle_timeout_seconds=3, poll_interval_seconds=1, sleep=no_sleep, clock=lambda: next(ticks)
        )
        with pytest.raises(SettleTimeoutError):
            environment.ensure_namespace("empty")

    def test_concurrent_create_is_success(self, environment, core_v1):
        original_create = core_v1.create_namespace

        def create_twice(body):
            original_create(body)
            original_create(body)

        core_v1.create_namespace = create_twice
        assert environment.ensure_namespace("empty") is True

    def test_other_errors_propagate(self, api_client):
        core_v1 = Mock()
        core_v1.read_namespace.side_effect = ApiException(status=403, reason="Forbidden")
        environment = EnvironmentPreparer(api_client, core_v1, Mock(), sleep=no_sleep)

        with pytest.raises(EnvironmentSetupError, match="403") as error:
            environment.ensure_namespace("empty")
        assert isinstance(error.value.__cause__, ApiException)
        core_v1.create_namespace.assert_not_called()


class TestCustomResourceDefinition:

    def test_installs_once(self, environment, apiextensions_v1):
        assert environment.ensure_custom_resource_definition() is True
        assert environment.ensure_custom_resource_definition() is False
        assert apiextensions_v1.create_calls == 1
        assert apiextensions_v1.crd.metadata.name == FOO_CRD_NAME

    def test_validation_already_disabled_is_a_no_op(self, environment, apiextensions_v1):
        environment.ensure_custom_resource_definition()
        assert environment.ensure_validation(False) is False
        assert apiextensions_v1.replace_calls == 0

    def test_enabling_validation_updates_once(self, api_client, environment, apiextensions_v1):
        environment.ensure_custom_resource_definition()

        assert environment.ensure_validation(True) is True
        assert environment.ensure_validation(True) is False
        assert apiextensions_v1.replace_calls == 1

        schema = to_dict(api_client, apiextensions_v1.crd.spec.versions[0].schema)
        rules = schema['openAPIV3Schema']['properties']['spec']['x-kubernetes-validations']
        assert rules[0]['rule'] == "self.data.matches(r'^([a-z]+[0-9]+,)+$')"

    def test_disabling_validation_restores_permissive_schema(self, api_client, environment, apiextensions_v1):
        environment.ensure_custom_resource_definition()
        environment.ensure_validation(True)

        assert environment.ensure_validation(False) is True
        schema = to_dict(api_client, apiextensions_v1.crd.spec.versions[0].schema)
        assert 'x-kubernetes-validations' not in schema['openAPIV3Schema']['properties']['spec']


class TestPrepare:

    def test_custom_resource_scenario(self, environment, core_v1, apiextensions_v1):
        scenario = ScenarioResolver(large_data_size=100).resolve("CreateLatency_CR_Validation")
        environment.prepare(scenario)
        environment.prepare(scenario)

        assert set(core_v1.namespaces) == {"empty", "large-data", "large-metadata"}
        assert core_v1.create_calls == 3
        assert apiextensions_v1.create_calls == 1
        assert apiextensions_v1.replace_calls == 1

    def test_endpoints_scenario_leaves_crd_alone(self, environment, apiextensions_v1):
        scenario = ScenarioResolver(large_data_size=100).resolve("CreateLatency_Typed")
        environment.prepare(scenario)
        assert apiextensions_v1.crd is None


class TestObjectCount:

    def test_populates_exactly_to_target(self, environment):
        benchmark_client = FakeBenchmarkClient(initial_count=4)
        assert environment.ensure_object_count(benchmark_client, 25) == 21
        assert benchmark_client.count() == 25

    def test_target_already_reached(self, environment):
        benchmark_client = FakeBenchmarkClient(initial_count=10)
        assert environment.ensure_object_count(benchmark_client, 10) == 0
        assert benchmark_client.create_calls == 0

    def test_too_many_objects(self, environment):
        benchmark_client = FakeBenchmarkClient(initial_count=12)
        with pytest.raises(PopulationMismatchError, match="Want 10 got 12"):
            environment.ensure_object_count(benchmark_client, 10)
        assert benchmark_client.count() == 12
        assert benchmark_client.create_calls == 0
        assert benchmark_client.delete_collection_calls == 0

    def test_create_failure_aborts_population(self, environment):
        benchmark_client = FakeBenchmarkClient(fail_on_index=2)
        with pytest.raises(EnvironmentSetupError, match="populate"):
            environment.ensure_object_count(benchmark_client, 5)

    def test_empty_collection(self, environment):
        benchmark_client = FakeBenchmarkClient(initial_count=3)
        environment.ensure_empty_collection(benchmark_client)
        assert benchmark_client.count() == 0
        assert benchmark_client.delete_collection_calls == 1


class TestRemoteCalls:

    def test_calls_share_rate_limiter_and_request_timeout(self, api_client):
        rate_limiter = Mock()
        core_v1 = FakeCoreV1()
        apiextensions_v1 = FakeApiextensionsV1()
        core_v1.read_namespace = Mock(wraps=core_v1.read_namespace)
        apiextensions_v1.create_custom_resource_definition = Mock(
            wraps=apiextensions_v1.create_custom_resource_definition
        )
        environment = EnvironmentPreparer(
            api_client, core_v1, apiextensions_v1,
            rate_limiter=rate_limiter, request_timeout_seconds=12.5, sleep=no_sleep
        )

        environment.ensure_namespace("empty")
        environment.ensure_custom_resource_definition()

        for call in core_v1.read_namespace.call_args_list:
            assert call.kwargs == {'_request_timeout': 12.5}
        assert apiextensions_v1.create_custom_resource_definition.call_args.kwargs == {'_request_timeout': 12.5}
        # read, create, read until Active; read, create, read until Established
        assert rate_limiter.acquire.call_count == 6

    def test_no_timeout_argument_by_default(self, api_client):
        core_v1 = Mock()
        core_v1.read_namespace.return_value = client.V1Namespace(status=client.V1NamespaceStatus(phase="Active"))
        environment = EnvironmentPreparer(api_client, core_v1, Mock(), sleep=no_sleep)

        assert environment.ensure_namespace("empty") is False
        core_v1.read_namespace.assert_called_once_with("empty")
