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

from .benchmark import Benchmark
from .client_configuration import ClientConfiguration
from .environment import EnvironmentPreparer
from .results_to_csv import ResultsToCsv
from .scenario import ScenarioConfig
from .scenario_resolver import ScenarioResolver
from .test_result import TestResult
from .workload import Workload
from .workload_generator import WorkloadGenerator

__all__ = [
    'Benchmark',
    'ClientConfiguration',
    'EnvironmentPreparer',
    'ResultsToCsv',
    'ScenarioConfig',
    'ScenarioResolver',
    'TestResult',
    'Workload',
    'WorkloadGenerator',
]
