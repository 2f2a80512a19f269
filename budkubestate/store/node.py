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

"""Metric families of the Kubernetes node resource."""

from typing import Callable, List, Mapping, Optional, Sequence

from ..commons.constants import (
    DEPRECATED_KUBEPROXY_VERSION,
    INTERNAL_IP_ADDRESS_TYPE,
    MetricType,
    StabilityLevel,
)
from ..commons.exceptions import QuantityParseError
from ..commons.logging import get_logger
from ..generator.family_generator import FamilyGenerator, FamilyRegistry
from ..metric.codec import bool_value, classify_resource, quantity_value, timestamp_value
from ..metric.family import FamilyHeader, Sample
from ..resources.node import Node, QuantityValue
from .labels import LabelPassthrough, expand_enum, resolve_roles, sanitize_label_name


logger = get_logger(__name__)

NODE_LABEL = "node"
DEFAULT_LABEL_NAMES = (NODE_LABEL,)

NodeFunc = Callable[[Node], List[Sample]]

INFO_LABEL_NAMES = (
    "kernel_version",
    "os_image",
    "container_runtime_version",
    "kubelet_version",
    "kubeproxy_version",
    "provider_id",
    "pod_cidr",
    "system_uuid",
    "internal_ip",
)


def _node_header(
    name: str,
    help: str,
    stability: StabilityLevel = StabilityLevel.ALPHA,
    label_names: Optional[Sequence[str]] = (),
) -> FamilyHeader:
    """Build a gauge header whose label schema starts with the `node` label."""
    return FamilyHeader(
        name=name,
        help=help,
        type=MetricType.GAUGE,
        stability=stability,
        label_names=None if label_names is None else DEFAULT_LABEL_NAMES + tuple(label_names),
    )


def wrap_node_func(func: NodeFunc) -> Callable[[Node], List[Sample]]:
    """Prefix every sample produced by `func` with the node name label."""

    def wrapped(node: Node) -> List[Sample]:
        values = (node.metadata.name,)
        return [sample.with_labels(DEFAULT_LABEL_NAMES, values) for sample in func(node)]

    return wrapped


def _node_family(header: FamilyHeader, func: NodeFunc) -> FamilyGenerator:
    return FamilyGenerator(header=header, generate=wrap_node_func(func))


def _internal_ip(node: Node) -> str:
    for address in node.status.addresses:
        if address.type == INTERNAL_IP_ADDRESS_TYPE:
            return address.address
    return ""


def _node_info(node: Node) -> List[Sample]:
    info = node.status.node_info
    labels = {
        "kernel_version": info.kernel_version,
        "os_image": info.os_image,
        "container_runtime_version": info.container_runtime_version,
        "kubelet_version": info.kubelet_version,
        "kubeproxy_version": DEPRECATED_KUBEPROXY_VERSION,
        "provider_id": node.spec.provider_id,
        "pod_cidr": node.spec.pod_cidr,
        "system_uuid": info.system_uuid,
        "internal_ip": _internal_ip(node),
    }
    return [Sample(labels=labels, value=1.0)]


def _node_created(node: Node) -> List[Sample]:
    if node.metadata.creation_timestamp is None:
        return []
    return [Sample(labels={}, value=timestamp_value(node.metadata.creation_timestamp))]


def _node_deletion_timestamp(node: Node) -> List[Sample]:
    if node.metadata.deletion_timestamp is None:
        return []
    return [Sample(labels={}, value=timestamp_value(node.metadata.deletion_timestamp))]


def _passthrough_func(passthrough: LabelPassthrough, tags: Callable[[Node], Mapping[str, str]]) -> NodeFunc:
    def func(node: Node) -> List[Sample]:
        if not passthrough.enabled:
            return []
        return [Sample(labels=passthrough.resolve(tags(node)), value=1.0)]

    return func


def _node_role(node: Node) -> List[Sample]:
    return [Sample(labels={"role": role}, value=1.0) for role in resolve_roles(node.metadata.labels)]


def _node_spec_taint(node: Node) -> List[Sample]:
    return [
        Sample(labels={"key": taint.key, "value": taint.value, "effect": taint.effect}, value=1.0)
        for taint in node.spec.taints
    ]


def _node_spec_unschedulable(node: Node) -> List[Sample]:
    # An object without a spec has nothing to report
    if "spec" not in node.model_fields_set:
        return []
    return [Sample(labels={}, value=bool_value(node.spec.unschedulable))]


def _resource_samples(node: Node, resources: Mapping[str, QuantityValue], family: str) -> List[Sample]:
    """Build one sample per classifiable resource, sorted by resource name.

    Malformed quantities only drop their own sample.
    """
    samples = []
    for resource_name in sorted(resources):
        unit = classify_resource(resource_name)
        if unit is None:
            logger.debug("resource_not_classified", family=family, node=node.metadata.name, resource=resource_name)
            continue

        try:
            value = quantity_value(resources[resource_name], unit)
        except QuantityParseError as e:
            logger.warning(
                "resource_quantity_skipped",
                family=family,
                node=node.metadata.name,
                resource=resource_name,
                error=e.message,
            )
            continue

        samples.append(
            Sample(labels={"resource": sanitize_label_name(resource_name), "unit": unit.value}, value=value)
        )
    return samples


def _node_status_allocatable(node: Node) -> List[Sample]:
    return _resource_samples(node, node.status.allocatable, "kube_node_status_allocatable")


def _node_status_capacity(node: Node) -> List[Sample]:
    return _resource_samples(node, node.status.capacity, "kube_node_status_capacity")


def _node_status_condition(node: Node) -> List[Sample]:
    return [
        Sample(labels={"condition": condition.type, "status": status}, value=value)
        for condition in node.status.conditions
        for status, value in expand_enum(condition.status)
    ]


def _node_status_addresses(node: Node) -> List[Sample]:
    return [
        Sample(labels={"type": address.type, "address": address.address}, value=1.0)
        for address in node.status.addresses
    ]


def node_metric_families(
    allow_labels: Optional[Sequence[str]] = None, allow_annotations: Optional[Sequence[str]] = None
) -> List[FamilyGenerator]:
    """Return the node family generators in registry order.

    Args:
        allow_labels: Node label keys exposed by `kube_node_labels`. `["*"]` exposes every label, an empty or
            missing list exposes none.
        allow_annotations: Node annotation keys exposed by `kube_node_annotations`, with the same semantics.

    Returns:
        The ordered generator table.
    """
    labels = LabelPassthrough("label", allow_labels)
    annotations = LabelPassthrough("annotation", allow_annotations)

    return [
        _node_family(
            _node_header(
                "kube_node_info", "Information about a cluster node.", StabilityLevel.STABLE, INFO_LABEL_NAMES
            ),
            _node_info,
        ),
        _node_family(
            _node_header("kube_node_created", "Unix creation timestamp", StabilityLevel.STABLE),
            _node_created,
        ),
        _node_family(
            _node_header(
                "kube_node_labels",
                "Kubernetes labels converted to Prometheus labels.",
                StabilityLevel.STABLE,
                labels.label_names,
            ),
            _passthrough_func(labels, lambda node: node.metadata.labels),
        ),
        _node_family(
            _node_header("kube_node_role", "The role of a cluster node.", label_names=("role",)),
            _node_role,
        ),
        _node_family(
            _node_header(
                "kube_node_spec_taint",
                "The taint of a cluster node.",
                StabilityLevel.STABLE,
                ("key", "value", "effect"),
            ),
            _node_spec_taint,
        ),
        _node_family(
            _node_header("kube_node_spec_unschedulable", "Whether a node can schedule new pods.", StabilityLevel.STABLE),
            _node_spec_unschedulable,
        ),
        _node_family(
            _node_header(
                "kube_node_status_allocatable",
                "The allocatable for different resources of a node that are available for scheduling.",
                StabilityLevel.STABLE,
                ("resource", "unit"),
            ),
            _node_status_allocatable,
        ),
        _node_family(
            _node_header(
                "kube_node_status_capacity",
                "The capacity for different resources of a node.",
                StabilityLevel.STABLE,
                ("resource", "unit"),
            ),
            _node_status_capacity,
        ),
        _node_family(
            _node_header(
                "kube_node_status_condition",
                "The condition of a cluster node.",
                StabilityLevel.STABLE,
                ("condition", "status"),
            ),
            _node_status_condition,
        ),
        _node_family(
            _node_header(
                "kube_node_annotations",
                "Kubernetes annotations converted to Prometheus labels.",
                label_names=annotations.label_names,
            ),
            _passthrough_func(annotations, lambda node: node.metadata.annotations),
        ),
        _node_family(
            _node_header("kube_node_deletion_timestamp", "Unix deletion timestamp"),
            _node_deletion_timestamp,
        ),
        _node_family(
            _node_header("kube_node_status_addresses", "Node address information.", label_names=("type", "address")),
            _node_status_addresses,
        ),
    ]


def new_node_registry(
    allow_labels: Optional[Sequence[str]] = None, allow_annotations: Optional[Sequence[str]] = None
) -> FamilyRegistry:
    """Build the validated node family registry."""
    return FamilyRegistry(node_metric_families(allow_labels, allow_annotations))
