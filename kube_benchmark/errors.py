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


class BenchmarkError(Exception):
    """Base class of every error raised by the benchmark harness."""


class EnvironmentSetupError(BenchmarkError):
    """Namespace, CRD or validation preparation failed; the run must not start."""


class SettleTimeoutError(EnvironmentSetupError):
    """The remote state did not converge within the settle timeout."""


class PopulationMismatchError(BenchmarkError):
    """The collection already holds more objects than the requested size."""

    def __init__(self, want: int, got: int):
        super().__init__(f"Too many items already exist. Want {want} got {got}")
        self.want = want
        self.got = got


class WorkloadError(BenchmarkError):
    """A remote call failed inside a measured run."""
