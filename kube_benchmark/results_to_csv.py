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

import json
import logging
import os
import time
from pathlib import Path
from typing import List, Optional

from kube_benchmark.stats.latency_recorder import PERCENTILES, percentile_key
from .test_result import TestResult

logger = logging.getLogger(__name__)

LATENCY_COLUMNS = ('avg',) + tuple(percentile_key(p) for p in PERCENTILES) + ('max',)


class ResultsToCsv:

    def write_all_result_files(self, directory: str, output_file: Optional[str] = None) -> str:
        """
        Summarize every JSON result of a directory into one CSV file.

        :param directory: Directory holding the result files written by the benchmark
        :param output_file: CSV file name; defaults to results-<epoch>.csv
        :return: Name of the written file
        """
        dir_path = Path(directory)
        if not dir_path.is_dir():
            raise ValueError(f"Not a directory: {directory}")

        results: List[TestResult] = []
        for file_path in sorted(dir_path.iterdir()):
            if file_path.is_file() and file_path.suffix == ".json":
                with open(file_path, 'r') as f:
                    results.append(TestResult.from_dict(json.load(f)))

        sorted_results = sorted(results, key=lambda x: (x.operation or "", x.scenario or ""))

        lines = [self.header()]
        for tr in sorted_results:
            lines.append(self.extract_results(tr))

        results_file_name = output_file if output_file is not None else f"results-{int(time.time())}.csv"
        try:
            with open(results_file_name, 'w') as writer:
                for line in lines:
                    writer.write(line + os.linesep)
        except IOError as e:
            logger.error(f"Failed creating csv file: {e}")
            raise

        logger.info(f"Results of {len(sorted_results)} runs extracted into CSV {results_file_name}")
        return results_file_name

    @staticmethod
    def header() -> str:
        return (
            "scenario,operation,client-kind,namespace,resource-version,validation,"
            + "operations,elapsed-ms,throughput,"
            + ",".join(f"latency-{column}-ms" for column in LATENCY_COLUMNS)
            + ",watchers,deliveries,delivery-rate"
        )

    @staticmethod
    def extract_results(tr: TestResult) -> str:
        latency = ",".join(f"{tr.latency.get(column, 0.0):.3f}" for column in LATENCY_COLUMNS)
        return (
            f"{tr.scenario},"
            f"{tr.operation},"
            f"{tr.client_kind},"
            f"{tr.namespace},"
            f"{tr.resource_version if tr.resource_version is not None else ''},"
            f"{str(tr.validation).lower()},"
            f"{tr.operations},"
            f"{tr.elapsed_millis:.1f},"
            f"{tr.throughput:.1f},"
            f"{latency},"
            f"{tr.watchers},"
            f"{tr.deliveries},"
            f"{tr.delivery_rate:.1f}"
        )
