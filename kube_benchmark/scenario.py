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

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class ResourceDescriptor:
    """Group/version/resource of a kind reached through the dynamic client."""
    group: str
    version: str
    resource: str

    @property
    def api_version(self) -> str:
        return f"{self.group}/{self.version}" if self.group else self.version

    def __str__(self) -> str:
        return f"{self.resource}.{self.api_version}"


FOO_DESCRIPTOR = ResourceDescriptor("stable.example.com", "v1", "foos")
ENDPOINTS_DESCRIPTOR = ResourceDescriptor("", "v1", "endpoints")
# unresolved resource axis; left to fail on the server instead of at resolution
NOT_FOUND_DESCRIPTOR = ResourceDescriptor("", "error", "notfound")


class ClientKind(Enum):
    DYNAMIC = "dynamic"
    TYPED = "typed"


class Operation(Enum):
    CREATE_LATENCY = "CreateLatency"
    CREATE_THROUGHPUT = "CreateThroughput"
    LIST = "List"
    WATCH = "Watch"
    NONE = "None"


class NamespaceClass:
    EMPTY = "empty"
    LARGE_DATA = "large-data"
    LARGE_METADATA = "large-metadata"

    ALL = (EMPTY, LARGE_DATA, LARGE_METADATA)


@dataclass(frozen=True)
class ListOptions:
    """
    Options of list and watch requests.

    resource_version "0" lets the server answer from its watch cache; None asks for a
    consistent read from storage.
    """
    resource_version: Optional[str] = None

    def to_kwargs(self) -> Dict[str, Any]:
        kwargs = {}
        if self.resource_version is not None:
            kwargs['resource_version'] = self.resource_version
        return kwargs


STRONG_LIST_OPTIONS = ListOptions()
WATCH_CACHE_LIST_OPTIONS = ListOptions(resource_version="0")


@dataclass(frozen=True)
class ScenarioConfig:
    """Everything a scenario run needs, resolved once from the scenario name."""
    name: str
    operation: Operation
    client_kind: ClientKind
    descriptor: ResourceDescriptor
    namespace: str
    template: Dict[str, Any] = field(compare=False, repr=False)
    list_options: ListOptions = STRONG_LIST_OPTIONS
    validation_enabled: bool = False

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'operation': self.operation.value,
            'clientKind': self.client_kind.value,
            'resource': str(self.descriptor),
            'namespace': self.namespace,
            'resourceVersion': self.list_options.resource_version,
            'validation': self.validation_enabled,
        }
