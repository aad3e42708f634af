import logging
import time
from typing import Callable

from kube_benchmark.client.benchmark_client import BenchmarkClient
from kube_benchmark.environment import EnvironmentPreparer
from kube_benchmark.errors import WorkloadError
from kube_benchmark.scenario import Operation, ScenarioConfig
from kube_benchmark.stats.latency_recorder import LatencyRecorder
from kube_benchmark.stats.long_adder import LongAdder
from kube_benchmark.test_result import TestResult
from kube_benchmark.utils.task_group import CountDownLatch, TaskGroup
from kube_benchmark.utils.timer import Timer
from kube_benchmark.workload import Workload

logger = logging.getLogger(__name__)


class WorkloadGenerator:
    """Runs the timed phase of one scenario against a prepared environment."""

    def __init__(self, scenario: ScenarioConfig, client: BenchmarkClient, workload: Workload,
                 environment: EnvironmentPreparer):
        """
        :param scenario: Resolved scenario configuration
        :param client: Benchmark client bound to the scenario's resource and namespace
        :param workload: Iteration counts and fan-out sizes
        :param environment: Preparer used for the per-run population steps
        """
        self.scenario = scenario
        self.client = client
        self.workload = workload
        self.environment = environment

        self._burst_start_ns = 0

    def run(self) -> TestResult:
        drivers = {
            Operation.CREATE_LATENCY: self._run_create_latency,
            Operation.CREATE_THROUGHPUT: self._run_create_throughput,
            Operation.LIST: self._run_list,
            Operation.WATCH: self._run_watch,
        }
        result = self._new_result()
        driver = drivers.get(self.scenario.operation)
        if driver is None:
            logger.info(f"Scenario {self.scenario.name} has no timed operation, environment prepared only")
            return result

        logger.info(f"----- Starting {self.scenario.operation.value} run for {self.scenario.name} ------")
        driver(result)
        logger.info(f"----- Completed {self.scenario.operation.value} run for {self.scenario.name} ------")
        return result

    def _run_create_latency(self, result: TestResult):
        iterations = self.workload.iterations
        recorder = LatencyRecorder()

        timer = Timer()
        for i in range(iterations):
            self._timed_call(lambda index=i: self.client.create(index), recorder, "create")
        elapsed_millis = timer.elapsed_millis()

        self._complete(result, iterations, elapsed_millis, recorder)
        logger.info(f"Created {iterations} objects sequentially in {elapsed_millis:.1f} ms - "
                    f"avg latency {result.latency['avg']:.3f} ms - p99 {result.latency['99pct']:.3f} ms")

    def _run_create_throughput(self, result: TestResult):
        fan_out = self.workload.throughput_fan_out
        recorder = LatencyRecorder()

        timer = Timer()
        creators = TaskGroup("creator", fan_out)
        for i in range(fan_out):
            creators.submit(self._timed_call, lambda index=i: self.client.create(index), recorder, "create")
        creators.wait()
        elapsed_millis = timer.elapsed_millis()

        self._complete(result, fan_out, elapsed_millis, recorder)
        logger.info(f"Created {fan_out} objects concurrently in {elapsed_millis:.1f} ms - "
                    f"{result.throughput:.1f} creates/s")

    def _run_list(self, result: TestResult):
        iterations = self.workload.iterations
        list_size = self.workload.list_size
        self.environment.ensure_object_count(self.client, list_size)
        recorder = LatencyRecorder()

        timer = Timer()
        for _ in range(iterations):
            self._timed_call(self.client.list, recorder, "list")
        elapsed_millis = timer.elapsed_millis()

        self._complete(result, iterations, elapsed_millis, recorder)
        result.list_size = list_size
        logger.info(f"Listed {list_size} objects {iterations} times in {elapsed_millis:.1f} ms - "
                    f"avg latency {result.latency['avg']:.3f} ms - p99 {result.latency['99pct']:.3f} ms")

    def _run_watch(self, result: TestResult):
        watcher_count = self.workload.watcher_count
        events = self.workload.iterations

        # Pre-existing objects would be replayed to every new watch as ADDED events
        self.environment.ensure_empty_collection(self.client)

        ready = CountDownLatch(watcher_count)
        deliveries = LongAdder()
        completion_recorder = LatencyRecorder()
        create_recorder = LatencyRecorder()

        setup_timer = Timer()
        watchers = TaskGroup("watcher", watcher_count)
        for _ in range(watcher_count):
            watchers.submit(self._consume_events, watchers, ready, events, deliveries, completion_recorder)
        watchers.wait_for_latch(ready)
        watch_setup_millis = setup_timer.elapsed_millis()
        logger.info(f"Established {watcher_count} watches in {watch_setup_millis:.1f} ms")

        timer = Timer()
        self._burst_start_ns = time.perf_counter_ns()
        creators = TaskGroup("creator", events)
        for i in range(events):
            creators.submit(self._timed_call, lambda index=i: self.client.create(index), create_recorder, "create")
        try:
            creators.wait()
        except WorkloadError as e:
            watchers.cancel(e)
            watchers.executor.shutdown(wait=True)
            raise
        watchers.wait()
        elapsed_millis = timer.elapsed_millis()

        self._complete(result, events, elapsed_millis, create_recorder)
        result.watchers = watcher_count
        result.events = events
        result.deliveries = deliveries.sum()
        result.watch_setup_millis = watch_setup_millis
        result.delivery_rate = result.deliveries / (elapsed_millis / 1000.0) if elapsed_millis > 0 else 0.0
        result.watch_completion = completion_recorder.to_summary()
        logger.info(f"Delivered {result.deliveries} events to {watcher_count} watchers in {elapsed_millis:.1f} ms - "
                    f"{result.delivery_rate:.1f} events/s")

    def _consume_events(self, group: TaskGroup, ready: CountDownLatch, expected: int, deliveries: LongAdder,
                        completion_recorder: LatencyRecorder):
        watch = self.client.watch()
        group.on_cancel(watch.stop)
        ready.count_down()

        seen = 0
        try:
            if expected > 0:
                for event in watch:
                    event_type = event.get('type')
                    if event_type == 'ERROR':
                        raise WorkloadError(f"watch returned an error event: {event.get('object')}")
                    if event_type != 'ADDED':
                        continue
                    seen += 1
                    deliveries.increment()
                    if seen >= expected:
                        break
        finally:
            watch.stop()

        if seen < expected:
            raise WorkloadError(f"watch closed after {seen} of {expected} events")
        completion_recorder.record_value((time.perf_counter_ns() - self._burst_start_ns) // 1000)

    @staticmethod
    def _timed_call(call: Callable, recorder: LatencyRecorder, description: str):
        timer = Timer()
        try:
            call()
        except Exception as e:
            raise WorkloadError(f"{description} failed: {e}") from e
        recorder.record_value(timer.elapsed_micros())

    def _new_result(self) -> TestResult:
        result = TestResult()
        result.scenario = self.scenario.name
        result.operation = self.scenario.operation.value
        result.client_kind = self.scenario.client_kind.value
        result.resource = str(self.scenario.descriptor)
        result.namespace = self.scenario.namespace
        result.resource_version = self.scenario.list_options.resource_version
        result.validation = self.scenario.validation_enabled
        return result

    @staticmethod
    def _complete(result: TestResult, operations: int, elapsed_millis: float, recorder: LatencyRecorder):
        result.operations = operations
        result.elapsed_millis = elapsed_millis
        result.throughput = operations / (elapsed_millis / 1000.0) if elapsed_millis > 0 else 0.0
        result.latency = recorder.to_summary()
        result.latency_histogram = recorder.encode()
