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

"""Node resource model.

Immutable pydantic models mirroring the parts of the Kubernetes `v1.Node` object the node families read. Fields use
snake_case names and accept the camelCase keys of the Kubernetes API as aliases, so both API JSON and
`kubernetes.client.V1Node` objects can be converted.
"""

from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from ..commons.exceptions import ResourceConversionError


QuantityValue = Union[str, int, float]


class ResourceModel(BaseModel):
    """Base model of all resource sub-structures."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )


class ObjectMeta(ResourceModel):
    """Identity and descriptive metadata of an object."""

    name: str = ""
    uid: str = ""
    labels: Dict[str, str] = Field(default_factory=dict)
    annotations: Dict[str, str] = Field(default_factory=dict)
    creation_timestamp: Optional[datetime] = None
    deletion_timestamp: Optional[datetime] = None


class Taint(ResourceModel):
    key: str = ""
    value: str = ""
    effect: str = ""
    time_added: Optional[datetime] = None


class NodeSpec(ResourceModel):
    """Desired state of a node."""

    unschedulable: bool = False
    provider_id: str = Field("", alias="providerID")
    pod_cidr: str = Field("", alias="podCIDR")
    taints: List[Taint] = Field(default_factory=list)


class NodeSystemInfo(ResourceModel):
    """Versions and identifiers reported by the node."""

    kernel_version: str = ""
    os_image: str = ""
    container_runtime_version: str = ""
    kubelet_version: str = ""
    kube_proxy_version: str = ""
    system_uuid: str = Field("", alias="systemUUID")
    machine_id: str = Field("", alias="machineID")
    boot_id: str = Field("", alias="bootID")
    operating_system: str = ""
    architecture: str = ""


class NodeAddress(ResourceModel):
    type: str = ""
    address: str = ""


class NodeCondition(ResourceModel):
    type: str = ""
    status: str = ""
    reason: str = ""
    message: str = ""
    last_heartbeat_time: Optional[datetime] = None
    last_transition_time: Optional[datetime] = None


class NodeStatus(ResourceModel):
    """Observed state of a node. Capacity and allocatable quantities keep their API string form."""

    capacity: Dict[str, QuantityValue] = Field(default_factory=dict)
    allocatable: Dict[str, QuantityValue] = Field(default_factory=dict)
    conditions: List[NodeCondition] = Field(default_factory=list)
    addresses: List[NodeAddress] = Field(default_factory=list)
    node_info: NodeSystemInfo = Field(default_factory=NodeSystemInfo)


class Node(ResourceModel):
    """A cluster node as seen by the projection engine."""

    metadata: ObjectMeta = Field(default_factory=ObjectMeta)
    spec: NodeSpec = Field(default_factory=NodeSpec)
    status: NodeStatus = Field(default_factory=NodeStatus)

    @property
    def name(self) -> str:
        return self.metadata.name

    @classmethod
    def from_api(cls, obj: Any) -> "Node":
        """Build a node from a `kubernetes.client.V1Node` or an API-shaped mapping.

        Args:
            obj: The node as returned by the Kubernetes client, or its JSON representation.

        Returns:
            The converted node.

        Raises:
            ResourceConversionError: If the object cannot be converted.
        """
        if isinstance(obj, cls):
            return obj

        if not isinstance(obj, Mapping):
            from kubernetes.client import ApiClient

            obj = ApiClient().sanitize_for_serialization(obj)
            if not isinstance(obj, Mapping):
                raise ResourceConversionError(f"Cannot convert {type(obj).__name__} into a Node")

        try:
            return cls.model_validate(_drop_nulls(obj))
        except ValidationError as e:
            raise ResourceConversionError("Invalid node object", details={"errors": e.errors()}) from e


def _drop_nulls(value: Any) -> Any:
    """Recursively remove None values, which the API uses for unset fields."""
    if isinstance(value, Mapping):
        return {key: _drop_nulls(val) for key, val in value.items() if val is not None}
    if isinstance(value, list):
        return [_drop_nulls(item) for item in value if item is not None]
    return value
