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

"""Bridge exposing node families through a prometheus_client registry.

Example:
    ```python
    from kubernetes import client, config
    from prometheus_client import REGISTRY, start_http_server

    config.load_kube_config()
    v1 = client.CoreV1Api()
    REGISTRY.register(NodeStateCollector(lambda: v1.list_node().items))
    start_http_server(8080)
    ```
"""

from typing import Any, Callable, Dict, Iterable, List, Optional

from prometheus_client.core import Metric
from prometheus_client.registry import Collector

from .commons.config import app_settings
from .commons.exceptions import ResourceConversionError
from .commons.logging import configure_logging, get_logger
from .generator.family_generator import FamilyRegistry
from .metric.family import FamilyHeader
from .resources.node import Node
from .store.node import new_node_registry


logger = get_logger(__name__)


def _empty_metric(header: FamilyHeader) -> Metric:
    return Metric(header.name, header.help_text, header.type.value)


class NodeStateCollector(Collector):
    """Custom prometheus_client collector projecting every listed node on each scrape.

    Args:
        list_nodes: Returns the nodes to expose, as `Node` models, `V1Node` objects or API mappings.
        registry: Node family registry. Built from the application settings' allow-lists when omitted.
        setup_logging: Configure structlog from the application settings. Disable when the host application
            configures logging itself.
    """

    def __init__(
        self,
        list_nodes: Callable[[], Iterable[Any]],
        registry: Optional[FamilyRegistry] = None,
        setup_logging: bool = True,
    ):
        """Initialize the collector."""
        if setup_logging:
            configure_logging()

        self.list_nodes = list_nodes
        self.registry = registry or new_node_registry(
            allow_labels=app_settings.allowed_node_labels,
            allow_annotations=app_settings.allowed_node_annotations,
        )

    def describe(self) -> List[Metric]:
        """Return the node families without samples."""
        return [_empty_metric(header) for header in self.registry.headers()]

    def collect(self) -> Iterable[Metric]:
        """Project every listed node and merge the samples per family."""
        metrics: Dict[str, Metric] = {header.name: _empty_metric(header) for header in self.registry.headers()}

        for obj in self.list_nodes():
            try:
                node = Node.from_api(obj)
            except ResourceConversionError as e:
                logger.warning("node_conversion_failed", error=e.message, details=e.details)
                continue

            for family in self.registry.project(node):
                metric = metrics[family.name]
                for sample in family.samples:
                    metric.add_sample(family.name, dict(sample.labels), sample.value)

        return list(metrics.values())
