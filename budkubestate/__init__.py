#  -----------------------------------------------------------------------------
#  Copyright (c) 2024 Bud Ecosystem Inc.
#  #
#  Licensed under the Apache License, Version 2.0 (the "License");
#  you may not use this file except in compliance with the License.
#  You may obtain a copy of the License at
#  #
#      http://www.apache.org/licenses/LICENSE-2.0
#  #
#  Unless required by applicable law or agreed to in writing, software
#  distributed under the License is distributed on an "AS IS" BASIS,
#  WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#  See the License for the specific language governing permissions and
#  limitations under the License.
#  -----------------------------------------------------------------------------

"""Projects Kubernetes resource objects into deterministic Prometheus metric families."""

from .__about__ import __version__
from .generator.family_generator import (
    FamilyGenerator,
    FamilyRegistry,
    compose_metric_gen_funcs,
    extract_metric_family_headers,
)
from .metric.exposition import render_families
from .metric.family import Family, FamilyHeader, Sample
from .resources.node import Node
from .store.node import new_node_registry, node_metric_families


__all__ = [
    "__version__",
    "Family",
    "FamilyGenerator",
    "FamilyHeader",
    "FamilyRegistry",
    "Node",
    "Sample",
    "compose_metric_gen_funcs",
    "extract_metric_family_headers",
    "new_node_registry",
    "node_metric_families",
    "render_families",
]
