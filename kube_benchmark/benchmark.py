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

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import yaml

from kube_benchmark.client_configuration import ClientConfiguration
from kube_benchmark.clients import ClientFactory
from kube_benchmark.environment import EnvironmentPreparer
from kube_benchmark.results_to_csv import ResultsToCsv
from kube_benchmark.scenario_resolver import DEFAULT_SCENARIOS, ScenarioResolver
from kube_benchmark.test_result import TestResult
from kube_benchmark.workload import Workload
from kube_benchmark.workload_generator import WorkloadGenerator

logger = logging.getLogger(__name__)

# Example:
#   python -m kube_benchmark -c client.yaml -w workload.yaml CreateLatency_CR_Validation WatchCR


class Benchmark:
    """Main benchmark application."""

    DATE_FORMAT = "%Y-%m-%d-%H-%M-%S"

    @staticmethod
    def main(args: List[str] = None) -> int:
        """
        Main entry point.

        :return: Process exit code, non-zero if any scenario failed
        """
        if args is None:
            args = sys.argv[1:]

        parser = Benchmark._new_parser()
        arguments = parser.parse_args(args)

        if arguments.results_dir is not None:
            ResultsToCsv().write_all_result_files(arguments.results_dir)
            return 0

        if arguments.list_scenarios:
            for name in DEFAULT_SCENARIOS:
                print(name)
            return 0

        scenarios = arguments.scenarios if arguments.scenarios else list(DEFAULT_SCENARIOS)
        workload = Benchmark._load_workload(arguments.workload)
        configuration = ClientConfiguration.load(arguments.client_config)

        logger.info(f"Starting benchmark with config: {json.dumps(vars(arguments), indent=2)}")
        logger.info(f"Client configuration: {json.dumps(configuration.to_dict(), indent=2)}")
        logger.info(f"Workload: {json.dumps(workload.to_dict(), indent=2)}")

        factory = ClientFactory.from_configuration(configuration)
        environment = EnvironmentPreparer(
            factory.api_client,
            factory.core_v1,
            factory.apiextensions_v1,
            rate_limiter=factory.rate_limiter,
            request_timeout_seconds=factory.request_timeout_seconds,
            settle_timeout_seconds=workload.settle_timeout_seconds,
            poll_interval_seconds=workload.poll_interval_seconds
        )
        resolver = ScenarioResolver(workload.large_data_size)

        # Run scenarios one after the other; a failure does not stop the remaining ones
        failed = []
        try:
            for name in scenarios:
                try:
                    logger.info(f"--------------- SCENARIO : {name} ---------------")
                    result = Benchmark._run_scenario(
                        name, resolver, factory, environment, workload, arguments.delete_collection
                    )
                    file_name = Benchmark._result_file_name(arguments.output, name, len(scenarios))
                    logger.info(f"Writing test result into {file_name}")
                    with open(file_name, 'w') as f:
                        json.dump(result.to_dict(), f, indent=2)
                except Exception as e:
                    logger.error(f"Failed to run the scenario '{name}'", exc_info=e)
                    failed.append(name)
        finally:
            factory.close()

        if failed:
            logger.error(f"{len(failed)} of {len(scenarios)} scenarios failed: {', '.join(failed)}")
            return 1
        return 0

    @staticmethod
    def _run_scenario(name: str, resolver: ScenarioResolver, factory: ClientFactory,
                      environment: EnvironmentPreparer, workload: Workload, delete_collection: bool) -> TestResult:
        scenario = resolver.resolve(name)
        logger.info(f"Resolved scenario: {json.dumps(scenario.to_dict(), indent=2)}")
        environment.prepare(scenario)

        with factory.new_benchmark_client(scenario) as benchmark_client:
            result = WorkloadGenerator(scenario, benchmark_client, workload, environment).run()
            if delete_collection:
                logger.info(f"Deleting {scenario.descriptor} objects of namespace {scenario.namespace}")
                environment.ensure_empty_collection(benchmark_client)
        return result

    @staticmethod
    def _load_workload(path: Optional[str]) -> Workload:
        if path is None:
            return Workload()
        logger.info(f"Reading workload from {path}")
        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}
        workload = Workload.from_dict(data)
        if workload.name is None:
            workload.name = Path(path).stem
        return workload

    @staticmethod
    def _result_file_name(output: Optional[str], scenario_name: str, scenario_count: int) -> str:
        if output:
            if scenario_count == 1:
                return output
            output_path = Path(output)
            return str(output_path.with_name(f"{output_path.stem}-{scenario_name}{output_path.suffix or '.json'}"))
        return f"{scenario_name}-{datetime.now().strftime(Benchmark.DATE_FORMAT)}.json"

    @staticmethod
    def _new_parser() -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(prog="kube-benchmark")
        parser.add_argument(
            "-c", "--client-config",
            dest="client_config",
            help="Path to a YAML file with the API server connection settings"
        )
        parser.add_argument(
            "-w", "--workload",
            help="Path to a YAML file with iteration counts and fan-out sizes"
        )
        parser.add_argument(
            "-o", "--output",
            help="Result file name; suffixed with the scenario name when several scenarios run"
        )
        parser.add_argument(
            "--csv",
            dest="results_dir",
            help="Print results from this directory to a csv file"
        )
        parser.add_argument(
            "--delete-collection",
            dest="delete_collection",
            action="store_true",
            help="Delete the objects created by each scenario once it completes"
        )
        parser.add_argument(
            "--list-scenarios",
            dest="list_scenarios",
            action="store_true",
            help="Print the default scenario names and exit"
        )
        parser.add_argument(
            "scenarios",
            nargs='*',
            help="Scenario names, e.g. CreateLatency_CR_Validation_LargeData. Defaults to the standard suite"
        )
        return parser


def run():
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    sys.exit(Benchmark.main())
