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
from typing import Optional, Tuple

from kube_benchmark.scenario import (
    ClientKind,
    ENDPOINTS_DESCRIPTOR,
    FOO_DESCRIPTOR,
    ListOptions,
    NOT_FOUND_DESCRIPTOR,
    NamespaceClass,
    Operation,
    ResourceDescriptor,
    STRONG_LIST_OPTIONS,
    ScenarioConfig,
    WATCH_CACHE_LIST_OPTIONS,
)
from kube_benchmark.templates import ENDPOINTS_TEMPLATE, FOO_TEMPLATE, load_template
from kube_benchmark.utils.payload import generate_payload

logger = logging.getLogger(__name__)

# Scenarios run when none are named on the command line.
DEFAULT_SCENARIOS = (
    "CreateLatency_CR_Validation",
    "CreateLatency_CR_Validation_LargeData",
    "CreateThroughput_CR_Validation",
    "CreateThroughput_CR_Validation_LargeData",
    "List_CR_Validation",
    "List_CR_Validation_LargeData",
    "List_WatchCache_CR_Validation",
    "List_WatchCache_CR_Validation_LargeData",
    "WatchCR",
)

CUSTOM_RESOURCE_DATA_FIELDS = ("spec", "data")
ANNOTATION_DATA_FIELDS = ("metadata", "annotations", "benchmark.example.com/data")


class ScenarioResolver:
    """
    Derives a ScenarioConfig from tags embedded in a scenario name.

    Each axis is matched independently by substring:

    - operation: CreateLatency, CreateThroughput, List, Watch (checked in that order,
      so List_WatchCache is a List scenario); nothing matched means preparation only
    - client: Typed selects the fixed-kind Endpoints client, which also fixes the kind
    - kind: CR selects foos.stable.example.com, Endpoints together with Dynamic the
      core/v1 endpoints; anything else resolves to NOT_FOUND_DESCRIPTOR
    - size: LargeData wins over LargeMetadata; neither means the empty namespace and
      the unmodified template
    - list options: WatchCache reads from the watch cache (resourceVersion=0)
    - validation: Validation enables the schema rule on the custom resource

    Unrecognized tags fall back to the defaults above.
    """

    def __init__(self, large_data_size: int = 10000):
        """
        :param large_data_size: Filler bytes written into LargeData/LargeMetadata templates
        """
        self.large_data_size = large_data_size

    def resolve(self, name: str) -> ScenarioConfig:
        client_kind = self.resolve_client_kind(name)
        descriptor = self.resolve_descriptor(name)
        scenario = ScenarioConfig(
            name=name,
            operation=self.resolve_operation(name),
            client_kind=client_kind,
            descriptor=descriptor,
            namespace=self.resolve_namespace(name),
            template=self.resolve_template(name),
            list_options=self.resolve_list_options(name),
            validation_enabled=self.resolve_validation(name),
        )
        if descriptor == NOT_FOUND_DESCRIPTOR:
            logger.warning(f"Scenario {name} names no known resource kind, using {descriptor}")
        logger.debug(f"Resolved scenario {name}: {scenario.to_dict()}")
        return scenario

    @staticmethod
    def resolve_operation(name: str) -> Operation:
        for operation in (Operation.CREATE_LATENCY, Operation.CREATE_THROUGHPUT, Operation.LIST, Operation.WATCH):
            if operation.value in name:
                return operation
        return Operation.NONE

    @staticmethod
    def resolve_client_kind(name: str) -> ClientKind:
        if "Typed" in name:
            return ClientKind.TYPED
        return ClientKind.DYNAMIC

    @staticmethod
    def resolve_descriptor(name: str) -> ResourceDescriptor:
        if "Typed" in name:
            return ENDPOINTS_DESCRIPTOR
        if "CR" in name:
            return FOO_DESCRIPTOR
        if "Endpoints" in name and "Dynamic" in name:
            return ENDPOINTS_DESCRIPTOR
        return NOT_FOUND_DESCRIPTOR

    @staticmethod
    def resolve_namespace(name: str) -> str:
        if "LargeData" in name:
            return NamespaceClass.LARGE_DATA
        if "LargeMetadata" in name:
            return NamespaceClass.LARGE_METADATA
        return NamespaceClass.EMPTY

    @staticmethod
    def resolve_list_options(name: str) -> ListOptions:
        if "WatchCache" in name:
            return WATCH_CACHE_LIST_OPTIONS
        return STRONG_LIST_OPTIONS

    @staticmethod
    def resolve_validation(name: str) -> bool:
        return "Validation" in name

    def resolve_template(self, name: str) -> dict:
        is_custom_resource = "CR" in name and "Typed" not in name
        template = load_template(FOO_TEMPLATE if is_custom_resource else ENDPOINTS_TEMPLATE)

        field_path = self._filler_fields(name, is_custom_resource)
        if field_path is None:
            return template
        return generate_payload(template, self.large_data_size, field_path)

    @staticmethod
    def _filler_fields(name: str, is_custom_resource: bool) -> Optional[Tuple[str, ...]]:
        if "LargeData" in name:
            # Endpoints has no free-form data field, its filler goes into an annotation
            return CUSTOM_RESOURCE_DATA_FIELDS if is_custom_resource else ANNOTATION_DATA_FIELDS
        if "LargeMetadata" in name:
            return ANNOTATION_DATA_FIELDS
        return None
