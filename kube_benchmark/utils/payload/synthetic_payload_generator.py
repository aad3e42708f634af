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

import copy
import io
from typing import Any, Dict, Sequence

from kube_benchmark.utils.random_generator import RandomGenerator

MIN_CHUNK_LENGTH = 2
MAX_CHUNK_LENGTH = 20
SEPARATOR = ','


class SyntheticPayloadGenerator:
    """
    Enlarges a template by writing random filler text into one of its fields.

    The filler is a sequence of chunks shaped like ``abc123,`` so that it satisfies the
    ``^([a-z]+[0-9]+,)+$`` rule installed by the validation setup. Chunks are never
    truncated: the generated text is between ``target_size - 1`` and ``target_size + 19``
    characters long.
    """

    def __init__(self, target_size: int, field_path: Sequence[str]):
        """
        :param target_size: Requested filler length in bytes, at least 2
        :param field_path: Keys leading to the field that receives the filler, e.g. ("spec", "data")
        """
        if target_size < 2:
            raise ValueError(f"target_size must be at least 2, got {target_size}")
        if not field_path:
            raise ValueError("field_path must not be empty")
        self.target_size = target_size
        self.field_path = tuple(field_path)

    def generate_filler(self) -> str:
        buffer = io.StringIO()
        length = 0
        while self.target_size - length - 1 > 0:
            part_length = RandomGenerator.randint(MIN_CHUNK_LENGTH, MAX_CHUNK_LENGTH)
            buffer.write(RandomGenerator.get_random_chunk(part_length))
            buffer.write(SEPARATOR)
            length += part_length + 1
        return buffer.getvalue()

    def generate(self, base_template: Dict[str, Any]) -> Dict[str, Any]:
        """
        Return a copy of base_template with the filler written at the field path.

        :raises ValueError: if an intermediate segment is missing or not a mapping
        """
        template = copy.deepcopy(base_template)
        set_nested_field(template, self.generate_filler(), self.field_path)
        return template


def set_nested_field(obj: Dict[str, Any], value: Any, field_path: Sequence[str]):
    current = obj
    for depth, key in enumerate(field_path[:-1]):
        if key not in current:
            raise ValueError(f"{'.'.join(field_path[:depth + 1])} does not exist")
        current = current[key]
        if not isinstance(current, dict):
            raise ValueError(
                f"{'.'.join(field_path[:depth + 1])} is of type {type(current).__name__}, expected a mapping"
            )
    current[field_path[-1]] = value


def generate_payload(base_template: Dict[str, Any], target_size: int,
                     field_path: Sequence[str]) -> Dict[str, Any]:
    return SyntheticPayloadGenerator(target_size, field_path).generate(base_template)
