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
import time
from typing import Callable, Optional

from kubernetes import client
from kubernetes.client.rest import ApiException

from kube_benchmark.client.benchmark_client import BenchmarkClient
from kube_benchmark.errors import EnvironmentSetupError, SettleTimeoutError, WorkloadError, PopulationMismatchError
from kube_benchmark.scenario import FOO_DESCRIPTOR, NamespaceClass, ScenarioConfig
from kube_benchmark.templates import (
    FOO_CRD,
    FOO_CRD_NAME,
    FOO_CRD_VERSION,
    PERMISSIVE_SCHEMA,
    VALIDATION_SCHEMA,
    load_template,
)
from kube_benchmark.utils.model_codec import to_dict, to_model
from kube_benchmark.utils.request_rate_limiter import UnlimitedRateLimiter
from kube_benchmark.utils.task_group import TaskGroup
from kube_benchmark.utils.timer import Timer

logger = logging.getLogger(__name__)


class EnvironmentPreparer:
    """
    Brings the cluster to the state a scenario expects before anything is measured.

    Every operation is idempotent: objects that already exist in the desired shape are
    left alone. Asynchronous server-side changes are awaited by polling until the new
    state is observed, bounded by settle_timeout_seconds.
    """

    def __init__(
        self,
        api_client: client.ApiClient,
        core_v1: client.CoreV1Api,
        apiextensions_v1: client.ApiextensionsV1Api,
        rate_limiter=None,
        request_timeout_seconds: Optional[float] = None,
        settle_timeout_seconds: float = 60.0,
        poll_interval_seconds: float = 0.5,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        :param rate_limiter: Throttle shared with the benchmark clients; unlimited when None
        :param request_timeout_seconds: Per-request timeout of every namespace and CRD call
        """
        self.api_client = api_client
        self.core_v1 = core_v1
        self.apiextensions_v1 = apiextensions_v1
        self.rate_limiter = rate_limiter if rate_limiter is not None else UnlimitedRateLimiter()
        self.request_timeout_seconds = request_timeout_seconds
        self.settle_timeout_seconds = settle_timeout_seconds
        self.poll_interval_seconds = poll_interval_seconds
        self.sleep = sleep
        self.clock = clock

    def prepare(self, scenario: ScenarioConfig):
        """Namespaces for every size class, then the custom resource and its validation state."""
        for namespace in NamespaceClass.ALL:
            self.ensure_namespace(namespace)

        if scenario.descriptor == FOO_DESCRIPTOR:
            self.ensure_custom_resource_definition()
            self.ensure_validation(scenario.validation_enabled)

    def ensure_namespace(self, name: str) -> bool:
        """
        Create the namespace unless it exists, then wait until it is Active.

        :return: True if this call created the namespace
        :raises EnvironmentSetupError: on any error other than not-found / already-exists
        """
        try:
            self._call(self.core_v1.read_namespace, name)
            logger.debug(f"Namespace {name} already exists")
            return False
        except ApiException as e:
            if e.status != 404:
                raise EnvironmentSetupError(f"Failed to read namespace {name}: {e.status} {e.reason}") from e

        try:
            self._call(self.core_v1.create_namespace, client.V1Namespace(metadata=client.V1ObjectMeta(name=name)))
            logger.info(f"Created namespace {name}")
        except ApiException as e:
            if e.status != 409:
                raise EnvironmentSetupError(f"Failed to create namespace {name}: {e.status} {e.reason}") from e
            logger.info(f"Namespace {name} was created concurrently")

        self._wait_until(lambda: self._is_namespace_active(name), f"namespace {name} to become Active")
        return True

    def ensure_custom_resource_definition(self) -> bool:
        """
        Install the Foo CRD unless it exists, then wait until it is Established.

        :return: True if this call created the CRD
        """
        try:
            self._call(self.apiextensions_v1.read_custom_resource_definition, FOO_CRD_NAME)
            logger.debug(f"CustomResourceDefinition {FOO_CRD_NAME} already exists")
            return False
        except ApiException as e:
            if e.status != 404:
                raise EnvironmentSetupError(
                    f"Failed to read CustomResourceDefinition {FOO_CRD_NAME}: {e.status} {e.reason}"
                ) from e

        body = to_model(self.api_client, load_template(FOO_CRD), "V1CustomResourceDefinition")
        try:
            self._call(self.apiextensions_v1.create_custom_resource_definition, body)
            logger.info(f"Created CustomResourceDefinition {FOO_CRD_NAME}")
        except ApiException as e:
            if e.status != 409:
                raise EnvironmentSetupError(
                    f"Failed to create CustomResourceDefinition {FOO_CRD_NAME}: {e.status} {e.reason}"
                ) from e

        self._wait_until(
            lambda: _is_established(self._read_crd()),
            f"CustomResourceDefinition {FOO_CRD_NAME} to become Established"
        )
        return True

    def ensure_validation(self, enabled: bool) -> bool:
        """
        Set or clear the data format rule on the v1 schema of the Foo CRD.

        The current schema is compared to the desired one by structural equality of
        their serialized forms; nothing is written when they already match.

        :return: True if the CRD was updated
        """
        desired = to_model(
            self.api_client,
            load_template(VALIDATION_SCHEMA if enabled else PERMISSIVE_SCHEMA),
            "V1CustomResourceValidation"
        )
        desired_document = to_dict(self.api_client, desired)

        crd = self._read_crd()
        version = _find_version(crd)
        if to_dict(self.api_client, version.schema) == desired_document:
            logger.debug(f"Validation of {FOO_CRD_NAME} already {'enabled' if enabled else 'disabled'}")
            return False

        version.schema = desired
        try:
            self._call(self.apiextensions_v1.replace_custom_resource_definition, FOO_CRD_NAME, crd)
        except ApiException as e:
            raise EnvironmentSetupError(
                f"Failed to update validation of {FOO_CRD_NAME}: {e.status} {e.reason}"
            ) from e
        logger.info(f"{'Enabled' if enabled else 'Disabled'} validation of {FOO_CRD_NAME}")

        def observed():
            current = self._read_crd()
            return (to_dict(self.api_client, _find_version(current).schema) == desired_document
                    and _is_established(current))

        self._wait_until(observed, f"validation change of {FOO_CRD_NAME} to be observed")
        return True

    def ensure_object_count(self, benchmark_client: BenchmarkClient, target_count: int) -> int:
        """
        Create objects until the collection holds exactly target_count.

        Missing objects are created concurrently, one task each.

        :return: number of objects created
        :raises PopulationMismatchError: if more than target_count objects already exist
        """
        current = self._count(benchmark_client)
        if current > target_count:
            raise PopulationMismatchError(target_count, current)
        if current == target_count:
            logger.info(f"Collection already holds {target_count} objects")
            return 0

        remaining = target_count - current
        logger.info(f"Creating {remaining} objects to reach {target_count} (found {current})")
        timer = Timer()
        group = TaskGroup("populate", remaining)
        for i in range(remaining):
            group.submit(benchmark_client.create, i)
        try:
            group.wait()
        except WorkloadError as e:
            raise EnvironmentSetupError(f"Failed to populate collection: {e}") from e
        logger.info(f"Created {remaining} objects in {timer.elapsed_millis():.0f} ms")
        return remaining

    def ensure_empty_collection(self, benchmark_client: BenchmarkClient):
        """Delete every object of the collection and wait until none is left."""
        try:
            benchmark_client.delete_collection()
        except ApiException as e:
            raise EnvironmentSetupError(f"Failed to delete collection: {e.status} {e.reason}") from e
        self._wait_until(lambda: self._count(benchmark_client) == 0, "collection to become empty")

    def _is_namespace_active(self, name: str) -> bool:
        try:
            namespace = self._call(self.core_v1.read_namespace, name)
        except ApiException as e:
            if e.status == 404:
                return False
            raise EnvironmentSetupError(f"Failed to read namespace {name}: {e.status} {e.reason}") from e
        return namespace.status is not None and namespace.status.phase == "Active"

    def _read_crd(self) -> client.V1CustomResourceDefinition:
        try:
            return self._call(self.apiextensions_v1.read_custom_resource_definition, FOO_CRD_NAME)
        except ApiException as e:
            raise EnvironmentSetupError(
                f"Failed to read CustomResourceDefinition {FOO_CRD_NAME}: {e.status} {e.reason}"
            ) from e

    def _call(self, api_method: Callable, *args):
        self.rate_limiter.acquire()
        if self.request_timeout_seconds is None:
            return api_method(*args)
        return api_method(*args, _request_timeout=self.request_timeout_seconds)

    @staticmethod
    def _count(benchmark_client: BenchmarkClient) -> int:
        try:
            return benchmark_client.count()
        except ApiException as e:
            raise EnvironmentSetupError(f"Failed to check list size: {e.status} {e.reason}") from e

    def _wait_until(self, predicate: Callable[[], bool], description: str):
        deadline = self.clock() + self.settle_timeout_seconds
        while not predicate():
            if self.clock() >= deadline:
                raise SettleTimeoutError(
                    f"Timed out after {self.settle_timeout_seconds}s waiting for {description}"
                )
            self.sleep(self.poll_interval_seconds)


def _find_version(crd: client.V1CustomResourceDefinition) -> client.V1CustomResourceDefinitionVersion:
    for version in crd.spec.versions:
        if version.name == FOO_CRD_VERSION:
            return version
    raise EnvironmentSetupError(f"{FOO_CRD_NAME} has no version {FOO_CRD_VERSION}")


def _is_established(crd: client.V1CustomResourceDefinition) -> bool:
    if crd.status is None or not crd.status.conditions:
        return False
    return any(c.type == "Established" and c.status == "True" for c in crd.status.conditions)
