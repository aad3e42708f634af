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

"""
Object templates and the validation schema, as YAML text.

Templates are parsed once per scenario; the parsed documents are treated as
read-only and deep-copied by every create.
"""

import yaml

FOO_CRD_NAME = "foos.stable.example.com"
FOO_CRD_VERSION = "v1"

FOO_TEMPLATE = """\
apiVersion: stable.example.com/v1
kind: Foo
metadata:
  name: template
  annotations: {}
spec:
  data: "abc123,d4,"
"""

ENDPOINTS_TEMPLATE = """\
apiVersion: v1
kind: Endpoints
metadata:
  name: template
  annotations: {}
"""

# "validation disabled" still needs a structural schema, apiextensions.k8s.io/v1
# rejects versions without one
PERMISSIVE_SCHEMA = """\
openAPIV3Schema:
  type: object
  properties:
    spec:
      type: object
      x-kubernetes-preserve-unknown-fields: true
"""

VALIDATION_SCHEMA = """\
openAPIV3Schema:
  type: object
  properties:
    spec:
      type: object
      x-kubernetes-preserve-unknown-fields: true
      x-kubernetes-validations:
        - rule: "self.data.matches(r'^([a-z]+[0-9]+,)+$')"
          message: "data must be in expected format."
      properties:
        data:
          type: string
"""

FOO_CRD = """\
apiVersion: apiextensions.k8s.io/v1
kind: CustomResourceDefinition
metadata:
  name: foos.stable.example.com
spec:
  group: stable.example.com
  scope: Namespaced
  names:
    plural: foos
    singular: foo
    kind: Foo
    listKind: FooList
  versions:
    - name: v1
      served: true
      storage: true
      schema:
        openAPIV3Schema:
          type: object
          properties:
            spec:
              type: object
              x-kubernetes-preserve-unknown-fields: true
"""


def load_template(text: str) -> dict:
    document = yaml.safe_load(text)
    if not isinstance(document, dict):
        raise ValueError(f"Template must be a mapping, got {type(document).__name__}")
    return document
