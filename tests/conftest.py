"""
Shared fixtures and in-memory fakes for the benchmark tests.

FakeBenchmarkClient keeps objects in a dict and fans ADDED events out to its open
watches, which is enough to drive every workload without an API server.
"""

import queue
import threading
from types import SimpleNamespace
from typing import Optional

import pytest
from kubernetes import client
from kubernetes.client.rest import ApiException

from kube_benchmark.client.benchmark_client import BenchmarkClient
from kube_benchmark.client.benchmark_watch import BenchmarkWatch
from kube_benchmark.environment import EnvironmentPreparer

_CLOSED = object()


class FakeWatch(BenchmarkWatch):

    def __init__(self, owner: 'FakeBenchmarkClient'):
        self.owner = owner
        self.events = queue.Queue()
        self.stopped = False

    def push(self, event: dict):
        self.events.put(event)

    def __iter__(self):
        while True:
            event = self.events.get()
            if event is _CLOSED:
                return
            yield event

    def stop(self):
        if self.stopped:
            return
        self.stopped = True
        self.owner.remove_watch(self)
        self.events.put(_CLOSED)


class FakeBenchmarkClient(BenchmarkClient):

    def __init__(self, initial_count: int = 0, fail_on_index: Optional[int] = None):
        self.objects = {}
        self.fail_on_index = fail_on_index
        self.create_calls = 0
        self.list_calls = 0
        self.delete_collection_calls = 0
        self.watches = []
        self.closed = False
        self._lock = threading.Lock()

        for i in range(initial_count):
            name = f"existing-{i}"
            self.objects[name] = {'metadata': {'name': name}}

    def create(self, index: int) -> dict:
        if self.fail_on_index is not None and index == self.fail_on_index:
            raise ApiException(status=500, reason="Internal Server Error")
        name = self.object_name(index)
        obj = {'metadata': {'name': name}}
        with self._lock:
            self.create_calls += 1
            if name in self.objects:
                raise ApiException(status=409, reason="AlreadyExists")
            self.objects[name] = obj
            watches = list(self.watches)
        for watch in watches:
            watch.push({'type': 'ADDED', 'object': obj})
        return obj

    def list(self) -> list:
        with self._lock:
            self.list_calls += 1
            return list(self.objects.values())

    def count(self) -> int:
        with self._lock:
            return len(self.objects)

    def watch(self) -> FakeWatch:
        watch = FakeWatch(self)
        with self._lock:
            self.watches.append(watch)
        return watch

    def delete_collection(self):
        with self._lock:
            self.delete_collection_calls += 1
            self.objects.clear()

    def remove_watch(self, watch: FakeWatch):
        with self._lock:
            if watch in self.watches:
                self.watches.remove(watch)

    def close(self):
        self.closed = True


class FakeCoreV1:
    """Namespaces only; a new namespace turns Active after `pending_reads` reads."""

    def __init__(self, pending_reads: int = 0):
        self.namespaces = {}
        self.pending_reads = pending_reads
        self.create_calls = 0
        self._reads = {}

    def read_namespace(self, name, **kwargs):
        namespace = self.namespaces.get(name)
        if namespace is None:
            raise ApiException(status=404, reason="Not Found")
        reads = self._reads.get(name, 0) + 1
        self._reads[name] = reads
        if reads > self.pending_reads:
            namespace.status.phase = "Active"
        return namespace

    def create_namespace(self, body, **kwargs):
        name = body.metadata.name
        if name in self.namespaces:
            raise ApiException(status=409, reason="AlreadyExists")
        self.create_calls += 1
        self.namespaces[name] = client.V1Namespace(
            metadata=body.metadata, status=client.V1NamespaceStatus()
        )


class FakeApiextensionsV1:

    def __init__(self):
        self.crd = None
        self.create_calls = 0
        self.replace_calls = 0

    def read_custom_resource_definition(self, name, **kwargs):
        if self.crd is None:
            raise ApiException(status=404, reason="Not Found")
        return self.crd

    def create_custom_resource_definition(self, body, **kwargs):
        self.create_calls += 1
        body.status = SimpleNamespace(conditions=[SimpleNamespace(type="Established", status="True")])
        self.crd = body

    def replace_custom_resource_definition(self, name, body, **kwargs):
        self.replace_calls += 1
        self.crd = body


def no_sleep(seconds):
    pass


@pytest.fixture
def api_client():
    api_client = client.ApiClient()
    yield api_client
    api_client.close()


@pytest.fixture
def fake_client():
    return FakeBenchmarkClient()


@pytest.fixture
def core_v1():
    return FakeCoreV1()


@pytest.fixture
def apiextensions_v1():
    return FakeApiextensionsV1()


@pytest.fixture
def environment(api_client, core_v1, apiextensions_v1):
    return EnvironmentPreparer(
        api_client, core_v1, apiextensions_v1,
        settle_timeout_seconds=5.0, poll_interval_seconds=0.01, sleep=no_sleep
    )
