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

import base64
import threading
from typing import Dict

from hdrh.histogram import HdrHistogram

PERCENTILES = (50.0, 75.0, 95.0, 99.0, 99.9, 99.99)


class LatencyRecorder:
    """
    Thread-safe latency histogram.

    Values are recorded in microseconds and reported in milliseconds. The highest
    trackable value matches the 10 minute request timeout of the clients.
    """

    LOWEST_TRACKABLE_VALUE = 1
    HIGHEST_TRACKABLE_VALUE = 10 * 60 * 1_000_000
    SIGNIFICANT_FIGURES = 3

    def __init__(self):
        self.histogram = self._new_histogram()
        self.lock = threading.Lock()

    def record_value(self, micros: int):
        """
        Record one sample.

        :param micros: Latency in microseconds; clamped into the trackable range
        """
        value = min(max(int(micros), self.LOWEST_TRACKABLE_VALUE), self.HIGHEST_TRACKABLE_VALUE)
        with self.lock:
            self.histogram.record_value(value)

    def get_total_count(self) -> int:
        with self.lock:
            return self.histogram.get_total_count()

    def snapshot(self) -> HdrHistogram:
        """Copy of the current histogram, safe to read while recording continues."""
        copy = self._new_histogram()
        with self.lock:
            copy.add(self.histogram)
        return copy

    def reset(self):
        with self.lock:
            self.histogram = self._new_histogram()

    def to_summary(self) -> Dict[str, float]:
        """Mean, max and percentiles in milliseconds."""
        histogram = self.snapshot()
        if histogram.get_total_count() == 0:
            summary = {'count': 0, 'avg': 0.0, 'max': 0.0}
            summary.update({percentile_key(p): 0.0 for p in PERCENTILES})
            return summary
        summary = {
            'count': histogram.get_total_count(),
            'avg': histogram.get_mean_value() / 1000.0,
            'max': histogram.get_max_value() / 1000.0,
        }
        for percentile in PERCENTILES:
            summary[percentile_key(percentile)] = histogram.get_value_at_percentile(percentile) / 1000.0
        return summary

    def encode(self) -> str:
        """Base64 HdrHistogram encoding, for merging results offline."""
        return base64.b64encode(self.snapshot().encode()).decode('ascii')

    @classmethod
    def _new_histogram(cls) -> HdrHistogram:
        return HdrHistogram(cls.LOWEST_TRACKABLE_VALUE, cls.HIGHEST_TRACKABLE_VALUE, cls.SIGNIFICANT_FIGURES)


def percentile_key(percentile: float) -> str:
    # 99.9 -> "999pct", 50.0 -> "50pct"
    return ('%g' % percentile).replace('.', '') + 'pct'
