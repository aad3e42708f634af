"""Tests for the timed workload drivers, run against the in-memory benchmark client."""

import pytest

from conftest import FakeBenchmarkClient, no_sleep
from kube_benchmark.environment import EnvironmentPreparer
from kube_benchmark.errors import PopulationMismatchError, WorkloadError
from kube_benchmark.scenario_resolver import ScenarioResolver
from kube_benchmark.workload import Workload
from kube_benchmark.workload_generator import WorkloadGenerator


@pytest.fixture
def workload():
    workload = Workload()
    workload.iterations = 10
    workload.throughput_fan_out = 20
    workload.list_size = 15
    workload.watcher_count = 5
    workload.settle_timeout_seconds = 5.0
    workload.poll_interval_seconds = 0.01
    return workload


@pytest.fixture
def preparer():
    return EnvironmentPreparer(None, None, None, settle_timeout_seconds=5.0, poll_interval_seconds=0.01,
                               sleep=no_sleep)


def new_generator(name, benchmark_client, workload, preparer):
    scenario = ScenarioResolver(large_data_size=100).resolve(name)
    return WorkloadGenerator(scenario, benchmark_client, workload, preparer)


class TestCreateLatency:

    def test_issues_sequential_creates(self, fake_client, workload, preparer):
        result = new_generator("CreateLatency_CR_Validation", fake_client, workload, preparer).run()

        assert fake_client.create_calls == 10
        assert fake_client.count() == 10
        assert result.operation == "CreateLatency"
        assert result.operations == 10
        assert result.latency['count'] == 10
        assert result.latency_histogram
        assert result.validation is True

    def test_error_aborts_the_run(self, workload, preparer):
        benchmark_client = FakeBenchmarkClient(fail_on_index=4)
        with pytest.raises(WorkloadError, match="create failed"):
            new_generator("CreateLatency_CR", benchmark_client, workload, preparer).run()
        assert benchmark_client.create_calls == 4


class TestCreateThroughput:

    def test_creates_distinct_objects(self, fake_client, workload, preparer):
        result = new_generator("CreateThroughput_CR", fake_client, workload, preparer).run()

        assert fake_client.count() == 20
        assert len(set(fake_client.objects)) == 20
        assert result.operations == 20
        assert result.throughput > 0

    def test_failure_aborts_the_whole_run(self, workload, preparer):
        benchmark_client = FakeBenchmarkClient(fail_on_index=7)
        with pytest.raises(WorkloadError):
            new_generator("CreateThroughput_CR", benchmark_client, workload, preparer).run()


class TestList:

    def test_populates_then_lists(self, fake_client, workload, preparer):
        result = new_generator("List_WatchCache_CR_Validation", fake_client, workload, preparer).run()

        assert fake_client.count() == 15
        assert fake_client.list_calls == 10
        assert result.list_size == 15
        assert result.resource_version == "0"
        assert result.latency['count'] == 10

    def test_existing_population_is_reused(self, workload, preparer):
        benchmark_client = FakeBenchmarkClient(initial_count=15)
        new_generator("List_CR", benchmark_client, workload, preparer).run()
        assert benchmark_client.create_calls == 0

    def test_overpopulated_collection_fails(self, workload, preparer):
        benchmark_client = FakeBenchmarkClient(initial_count=16)
        with pytest.raises(PopulationMismatchError):
            new_generator("List_CR", benchmark_client, workload, preparer).run()
        assert benchmark_client.list_calls == 0


class TestWatch:

    def test_every_watcher_sees_every_event(self, workload, preparer):
        benchmark_client = FakeBenchmarkClient(initial_count=3)
        result = new_generator("WatchCR", benchmark_client, workload, preparer).run()

        assert benchmark_client.delete_collection_calls == 1
        assert benchmark_client.count() == 10
        assert result.watchers == 5
        assert result.events == 10
        assert result.deliveries == 50
        assert result.watch_completion['count'] == 5
        assert benchmark_client.watches == []

    def test_creator_failure_releases_watchers(self, workload, preparer):
        benchmark_client = FakeBenchmarkClient(fail_on_index=3)
        with pytest.raises(WorkloadError):
            new_generator("WatchCR", benchmark_client, workload, preparer).run()
        assert benchmark_client.watches == []


def test_no_operation_only_prepares(fake_client, workload, preparer):
    result = new_generator("Prepare_CR", fake_client, workload, preparer).run()
    assert result.operation == "None"
    assert result.operations == 0
    assert fake_client.create_calls == 0
