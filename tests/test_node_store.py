"""Tests for the node metric families."""

from datetime import datetime

import pytest

from budkubestate.resources.node import (
    Node,
    NodeAddress,
    NodeCondition,
    NodeSpec,
    NodeStatus,
    NodeSystemInfo,
    ObjectMeta,
    Taint,
)
from budkubestate.store.node import new_node_registry, node_metric_families

from metric_helpers import assert_metrics_output, unix


ROLE_HEADER = """
    # HELP kube_node_role The role of a cluster node.
    # TYPE kube_node_role gauge
"""


class TestNodeRole:
    """Test role label precedence."""

    def test_standard_role_label(self, node_registry):
        """Test a node-role.kubernetes.io/<role> label produces the role."""
        node = Node(metadata=ObjectMeta(name="node-1", labels={"node-role.kubernetes.io/control-plane": ""}))

        assert_metrics_output(
            node_registry.project(node),
            ROLE_HEADER + 'kube_node_role{node="node-1",role="control-plane"} 1',
            ["kube_node_role"],
        )

    def test_kubernetes_io_role_label(self, node_registry):
        """Test the kubernetes.io/role label value is used as the role."""
        node = Node(metadata=ObjectMeta(name="node-2", labels={"kubernetes.io/role": "worker"}))

        assert_metrics_output(
            node_registry.project(node),
            ROLE_HEADER + 'kube_node_role{node="node-2",role="worker"} 1',
            ["kube_node_role"],
        )

    def test_simple_role_label(self, node_registry):
        """Test the plain role label is the last fallback."""
        node = Node(metadata=ObjectMeta(name="node-3", labels={"role": "infra"}))

        assert_metrics_output(
            node_registry.project(node),
            ROLE_HEADER + 'kube_node_role{node="node-3",role="infra"} 1',
            ["kube_node_role"],
        )

    def test_standard_role_label_takes_precedence(self, node_registry):
        """Test lower precedence sources are ignored once a node-role label exists."""
        node = Node(
            metadata=ObjectMeta(
                name="node-4",
                labels={
                    "node-role.kubernetes.io/control-plane": "",
                    "kubernetes.io/role": "master",
                    "role": "control-plane",
                },
            )
        )

        assert_metrics_output(
            node_registry.project(node),
            ROLE_HEADER + 'kube_node_role{node="node-4",role="control-plane"} 1',
            ["kube_node_role"],
        )

    def test_empty_role_value_emits_nothing(self, node_registry):
        """Test an empty role value produces no sample."""
        node = Node(metadata=ObjectMeta(name="node-5", labels={"role": ""}))

        assert_metrics_output(node_registry.project(node), ROLE_HEADER, ["kube_node_role"])

    def test_multiple_standard_roles(self, node_registry):
        """Test each node-role label produces its own sample, sorted by role."""
        node = Node(
            metadata=ObjectMeta(
                name="127.0.0.1",
                labels={"node-role.kubernetes.io/master": "", "node-role.kubernetes.io/control-plane": ""},
            )
        )

        families = {family.name: family for family in node_registry.project(node)}
        roles = [sample.labels["role"] for sample in families["kube_node_role"].samples]

        assert roles == ["control-plane", "master"]
        assert_metrics_output(
            families.values(),
            ROLE_HEADER
            + """
            kube_node_role{node="127.0.0.1",role="control-plane"} 1
            kube_node_role{node="127.0.0.1",role="master"} 1
            """,
            ["kube_node_role"],
        )


class TestNodeFamilies:
    """Test the node families against their text output."""

    def test_base_metrics(self, node_registry):
        """Test info, labels and unschedulable families of a populated node."""
        node = Node(
            metadata=ObjectMeta(name="127.0.0.1"),
            status=NodeStatus(
                node_info=NodeSystemInfo(
                    kernel_version="kernel",
                    kubelet_version="kubelet",
                    kube_proxy_version="kubeproxy",
                    os_image="osimage",
                    container_runtime_version="rkt",
                    system_uuid="6a934e21-5207-4a84-baea-3a952d926c80",
                ),
                addresses=[NodeAddress(type="InternalIP", address="1.2.3.4")],
            ),
            spec=NodeSpec(provider_id="provider://i-uniqueid", pod_cidr="172.24.10.0/24"),
        )

        want = """
            # HELP kube_node_info [STABLE] Information about a cluster node.
            # HELP kube_node_labels [STABLE] Kubernetes labels converted to Prometheus labels.
            # HELP kube_node_spec_unschedulable [STABLE] Whether a node can schedule new pods.
            # TYPE kube_node_info gauge
            # TYPE kube_node_labels gauge
            # TYPE kube_node_spec_unschedulable gauge
            kube_node_info{node="127.0.0.1",kernel_version="kernel",os_image="osimage",container_runtime_version="rkt",kubelet_version="kubelet",kubeproxy_version="deprecated",provider_id="provider://i-uniqueid",pod_cidr="172.24.10.0/24",system_uuid="6a934e21-5207-4a84-baea-3a952d926c80",internal_ip="1.2.3.4"} 1
            kube_node_spec_unschedulable{node="127.0.0.1"} 0
        """
        assert_metrics_output(
            node_registry.project(node),
            want,
            ["kube_node_spec_unschedulable", "kube_node_labels", "kube_node_info"],
        )

    def test_resource_metrics(self, node_registry):
        """Test timestamps, roles and resource quantities with their units."""
        node = Node(
            metadata=ObjectMeta(
                name="127.0.0.1",
                creation_timestamp=unix(1500000000),
                labels={"node-role.kubernetes.io/master": ""},
            ),
            spec=NodeSpec(unschedulable=True, provider_id="provider://i-randomidentifier", pod_cidr="172.24.10.0/24"),
            status=NodeStatus(
                node_info=NodeSystemInfo(
                    kernel_version="kernel",
                    kubelet_version="kubelet",
                    kube_proxy_version="kubeproxy",
                    os_image="osimage",
                    container_runtime_version="rkt",
                    system_uuid="6a934e21-5207-4a84-baea-3a952d926c80",
                ),
                addresses=[NodeAddress(type="InternalIP", address="1.2.3.4")],
                capacity={
                    "cpu": "4.3",
                    "memory": "2G",
                    "pods": "1000",
                    "storage": "3G",
                    "ephemeral-storage": "4G",
                    "nvidia.com/gpu": "4",
                },
                allocatable={
                    "cpu": "3",
                    "memory": "1G",
                    "pods": "555",
                    "storage": "2G",
                    "ephemeral-storage": "3G",
                    "nvidia.com/gpu": "1",
                },
            ),
        )

        want = """
            # HELP kube_node_created [STABLE] Unix creation timestamp
            # HELP kube_node_info [STABLE] Information about a cluster node.
            # HELP kube_node_labels [STABLE] Kubernetes labels converted to Prometheus labels.
            # HELP kube_node_role The role of a cluster node.
            # HELP kube_node_spec_unschedulable [STABLE] Whether a node can schedule new pods.
            # HELP kube_node_status_allocatable [STABLE] The allocatable for different resources of a node that are available for scheduling.
            # HELP kube_node_status_capacity [STABLE] The capacity for different resources of a node.
            # TYPE kube_node_created gauge
            # TYPE kube_node_info gauge
            # TYPE kube_node_labels gauge
            # TYPE kube_node_role gauge
            # TYPE kube_node_spec_unschedulable gauge
            # TYPE kube_node_status_allocatable gauge
            # TYPE kube_node_status_capacity gauge
            kube_node_created{node="127.0.0.1"} 1.5e+09
            kube_node_info{node="127.0.0.1",kernel_version="kernel",os_image="osimage",container_runtime_version="rkt",kubelet_version="kubelet",kubeproxy_version="deprecated",provider_id="provider://i-randomidentifier",pod_cidr="172.24.10.0/24",system_uuid="6a934e21-5207-4a84-baea-3a952d926c80",internal_ip="1.2.3.4"} 1
            kube_node_role{node="127.0.0.1",role="master"} 1
            kube_node_spec_unschedulable{node="127.0.0.1"} 1
            kube_node_status_allocatable{node="127.0.0.1",resource="cpu",unit="core"} 3
            kube_node_status_allocatable{node="127.0.0.1",resource="ephemeral_storage",unit="byte"} 3e+09
            kube_node_status_allocatable{node="127.0.0.1",resource="memory",unit="byte"} 1e+09
            kube_node_status_allocatable{node="127.0.0.1",resource="nvidia_com_gpu",unit="integer"} 1
            kube_node_status_allocatable{node="127.0.0.1",resource="pods",unit="integer"} 555
            kube_node_status_allocatable{node="127.0.0.1",resource="storage",unit="byte"} 2e+09
            kube_node_status_capacity{node="127.0.0.1",resource="cpu",unit="core"} 4.3
            kube_node_status_capacity{node="127.0.0.1",resource="ephemeral_storage",unit="byte"} 4e+09
            kube_node_status_capacity{node="127.0.0.1",resource="memory",unit="byte"} 2e+09
            kube_node_status_capacity{node="127.0.0.1",resource="nvidia_com_gpu",unit="integer"} 4
            kube_node_status_capacity{node="127.0.0.1",resource="pods",unit="integer"} 1000
            kube_node_status_capacity{node="127.0.0.1",resource="storage",unit="byte"} 3e+09
        """
        assert_metrics_output(
            node_registry.project(node),
            want,
            [
                "kube_node_status_capacity",
                "kube_node_status_allocatable",
                "kube_node_spec_unschedulable",
                "kube_node_labels",
                "kube_node_role",
                "kube_node_info",
                "kube_node_created",
            ],
        )

    def test_capacity_samples_sorted_by_resource(self, node_registry):
        """Test resource samples follow resource name order regardless of input order."""
        node = Node(
            metadata=ObjectMeta(name="n1"),
            status=NodeStatus(capacity={"pods": "110", "memory": "1Gi", "cpu": "2", "hugepages-2Mi": "0"}),
        )

        families = {family.name: family for family in node_registry.project(node)}
        samples = families["kube_node_status_capacity"].samples

        assert [sample.labels["resource"] for sample in samples] == ["cpu", "hugepages_2Mi", "memory", "pods"]
        assert [sample.labels["unit"] for sample in samples] == ["core", "byte", "byte", "integer"]
        assert samples[2].value == 1073741824.0

    def test_node_conditions(self, node_registry):
        """Test every condition expands into all three states."""
        node = Node(
            metadata=ObjectMeta(name="127.0.0.1"),
            status=NodeStatus(
                conditions=[
                    NodeCondition(type="NetworkUnavailable", status="True"),
                    NodeCondition(type="Ready", status="True"),
                    NodeCondition(type="CustomizedType", status="True"),
                ]
            ),
        )

        want = """
            # HELP kube_node_status_condition [STABLE] The condition of a cluster node.
            # TYPE kube_node_status_condition gauge
            kube_node_status_condition{node="127.0.0.1",condition="CustomizedType",status="false"} 0
            kube_node_status_condition{node="127.0.0.1",condition="CustomizedType",status="true"} 1
            kube_node_status_condition{node="127.0.0.1",condition="CustomizedType",status="unknown"} 0
            kube_node_status_condition{node="127.0.0.1",condition="NetworkUnavailable",status="false"} 0
            kube_node_status_condition{node="127.0.0.1",condition="NetworkUnavailable",status="true"} 1
            kube_node_status_condition{node="127.0.0.1",condition="NetworkUnavailable",status="unknown"} 0
            kube_node_status_condition{node="127.0.0.1",condition="Ready",status="false"} 0
            kube_node_status_condition{node="127.0.0.1",condition="Ready",status="true"} 1
            kube_node_status_condition{node="127.0.0.1",condition="Ready",status="unknown"} 0
        """
        assert_metrics_output(node_registry.project(node), want, ["kube_node_status_condition"])

    def test_node_conditions_with_unknown_status(self, node_registry):
        """Test unknown condition statuses are one-hot encoded as unknown."""
        node = Node(
            metadata=ObjectMeta(name="127.0.0.1"),
            status=NodeStatus(
                conditions=[
                    NodeCondition(type="NetworkUnavailable", status="Unknown"),
                    NodeCondition(type="Ready", status="Unknown"),
                ]
            ),
        )

        want = """
            # HELP kube_node_status_condition [STABLE] The condition of a cluster node.
            # TYPE kube_node_status_condition gauge
            kube_node_status_condition{node="127.0.0.1",condition="NetworkUnavailable",status="false"} 0
            kube_node_status_condition{node="127.0.0.1",condition="NetworkUnavailable",status="true"} 0
            kube_node_status_condition{node="127.0.0.1",condition="NetworkUnavailable",status="unknown"} 1
            kube_node_status_condition{node="127.0.0.1",condition="Ready",status="false"} 0
            kube_node_status_condition{node="127.0.0.1",condition="Ready",status="true"} 0
            kube_node_status_condition{node="127.0.0.1",condition="Ready",status="unknown"} 1
        """
        assert_metrics_output(node_registry.project(node), want, ["kube_node_status_condition"])

    def test_three_conditions_yield_nine_one_hot_samples(self, node_registry):
        """Test each condition has exactly one sample set to 1."""
        node = Node(
            metadata=ObjectMeta(name="n1"),
            status=NodeStatus(
                conditions=[
                    NodeCondition(type="Ready", status="False"),
                    NodeCondition(type="MemoryPressure", status="Unknown"),
                    NodeCondition(type="DiskPressure", status=""),
                ]
            ),
        )

        families = {family.name: family for family in node_registry.project(node)}
        samples = families["kube_node_status_condition"].samples

        assert len(samples) == 9
        for condition in ("Ready", "MemoryPressure", "DiskPressure"):
            values = [sample.value for sample in samples if sample.labels["condition"] == condition]
            assert sorted(values) == [0.0, 0.0, 1.0]

    def test_node_taints(self, node_registry):
        """Test one sample per taint with an empty value for missing taint values."""
        node = Node(
            metadata=ObjectMeta(name="127.0.0.1"),
            spec=NodeSpec(
                taints=[
                    Taint(key="node.kubernetes.io/memory-pressure", value="true", effect="PreferNoSchedule"),
                    Taint(key="node.kubernetes.io/disk-pressure", value="true", effect="NoSchedule"),
                    Taint(key="dedicated", effect="PreferNoSchedule"),
                ]
            ),
        )

        want = """
            # HELP kube_node_spec_taint [STABLE] The taint of a cluster node.
            # TYPE kube_node_spec_taint gauge
            kube_node_spec_taint{node="127.0.0.1",key="node.kubernetes.io/memory-pressure",value="true",effect="PreferNoSchedule"} 1
            kube_node_spec_taint{node="127.0.0.1",key="node.kubernetes.io/disk-pressure",value="true",effect="NoSchedule"} 1
            kube_node_spec_taint{node="127.0.0.1",key="dedicated",value="",effect="PreferNoSchedule"} 1
        """
        assert_metrics_output(node_registry.project(node), want, ["kube_node_spec_taint"])

    def test_node_addresses(self, node_registry):
        """Test one sample per address in the node's own order."""
        node = Node(
            metadata=ObjectMeta(name="127.0.0.1"),
            status=NodeStatus(
                addresses=[
                    NodeAddress(type="InternalIP", address="1.2.3.4"),
                    NodeAddress(type="InternalIP", address="fc00::"),
                    NodeAddress(type="ExternalIP", address="5.6.7.8"),
                    NodeAddress(type="ExternalIP", address="2001:db8::"),
                    NodeAddress(type="Hostname", address="node1.example.com"),
                ]
            ),
        )

        want = """
            # HELP kube_node_status_addresses Node address information.
            # TYPE kube_node_status_addresses gauge
            kube_node_status_addresses{node="127.0.0.1",type="InternalIP",address="1.2.3.4"} 1
            kube_node_status_addresses{node="127.0.0.1",type="InternalIP",address="fc00::"} 1
            kube_node_status_addresses{node="127.0.0.1",type="ExternalIP",address="5.6.7.8"} 1
            kube_node_status_addresses{node="127.0.0.1",type="ExternalIP",address="2001:db8::"} 1
            kube_node_status_addresses{node="127.0.0.1",type="Hostname",address="node1.example.com"} 1
        """
        families = node_registry.project(node)
        assert_metrics_output(families, want, ["kube_node_status_addresses"])

        info = next(family for family in families if family.name == "kube_node_info")
        assert info.samples[0].labels["internal_ip"] == "1.2.3.4"

    def test_unset_fields_are_skipped(self, node_registry):
        """Test an empty node only produces the info family with empty labels."""
        families = node_registry.project(Node())

        want = """
            # HELP kube_node_info [STABLE] Information about a cluster node.
            # TYPE kube_node_info gauge
            kube_node_info{node="",kernel_version="",os_image="",container_runtime_version="",kubelet_version="",kubeproxy_version="deprecated",provider_id="",pod_cidr="",system_uuid="",internal_ip=""} 1
        """
        assert_metrics_output(families, want, ["kube_node_info"])
        assert [family.name for family in families if family.samples] == ["kube_node_info"]

    def test_empty_spec_reports_schedulable(self, node_registry):
        """Test a node carrying an empty spec reports unschedulable as 0."""
        node = Node(metadata=ObjectMeta(name="n1"), spec=NodeSpec())

        assert_metrics_output(
            node_registry.project(node),
            """
            # HELP kube_node_spec_unschedulable [STABLE] Whether a node can schedule new pods.
            # TYPE kube_node_spec_unschedulable gauge
            kube_node_spec_unschedulable{node="n1"} 0
            """,
            ["kube_node_spec_unschedulable"],
        )

    def test_node_deletion_timestamp(self, node_registry):
        """Test the deletion timestamp family only emits once the timestamp is set."""
        node = Node(metadata=ObjectMeta(name="127.0.0.1", deletion_timestamp=unix(1500000000)))

        want = """
            # HELP kube_node_deletion_timestamp Unix deletion timestamp
            # TYPE kube_node_deletion_timestamp gauge
            kube_node_deletion_timestamp{node="127.0.0.1"} 1.5e+09
        """
        assert_metrics_output(node_registry.project(node), want, ["kube_node_deletion_timestamp"])

    def test_naive_creation_timestamp_is_utc(self, node_registry):
        """Test naive timestamps are read as UTC."""
        node = Node(metadata=ObjectMeta(name="n1", creation_timestamp=datetime(2017, 7, 14, 2, 40)))

        families = {family.name: family for family in node_registry.project(node)}

        assert families["kube_node_created"].samples[0].value == 1500000000.0

    def test_malformed_quantity_skips_only_its_sample(self, node_registry):
        """Test an unparseable quantity drops its own sample and nothing else."""
        node = Node(
            metadata=ObjectMeta(name="n1"),
            status=NodeStatus(capacity={"cpu": "lots", "memory": "1Ki", "example.com/widget": "2"}),
        )

        families = {family.name: family for family in node_registry.project(node)}
        samples = families["kube_node_status_capacity"].samples

        assert [(s.labels["resource"], s.labels["unit"], s.value) for s in samples] == [
            ("example_com_widget", "integer", 2.0),
            ("memory", "byte", 1024.0),
        ]

    def test_unclassified_resources_are_skipped(self, node_registry):
        """Test resources outside the known unit classes produce no sample."""
        node = Node(
            metadata=ObjectMeta(name="n1"),
            status=NodeStatus(allocatable={"foo": "1", "kubernetes.io/bar": "1", "pods": "10"}),
        )

        families = {family.name: family for family in node_registry.project(node)}

        assert [s.labels["resource"] for s in families["kube_node_status_allocatable"].samples] == ["pods"]


class TestNodeLabelPassthrough:
    """Test the labels and annotations families."""

    def test_labels_disabled_by_default(self, node_registry):
        """Test no label sample is produced without an allow-list."""
        node = Node(metadata=ObjectMeta(name="n1", labels={"team": "a"}))

        families = {family.name: family for family in node_registry.project(node)}

        assert families["kube_node_labels"].samples == []
        assert families["kube_node_annotations"].samples == []

    def test_explicit_allowlist_keeps_declared_schema(self):
        """Test allow-listed keys are always present, missing ones as empty strings."""
        registry = new_node_registry(allow_labels=["topology.kubernetes.io/zone", "team"])
        node = Node(metadata=ObjectMeta(name="n1", labels={"team": "ml", "other": "x"}))

        assert_metrics_output(
            registry.project(node),
            """
            # HELP kube_node_labels [STABLE] Kubernetes labels converted to Prometheus labels.
            # TYPE kube_node_labels gauge
            kube_node_labels{node="n1",label_team="ml",label_topology_kubernetes_io_zone=""} 1
            """,
            ["kube_node_labels"],
        )

    def test_wildcard_passes_every_label(self):
        """Test `*` passes every label through in sorted key order."""
        registry = new_node_registry(allow_labels=["*"], allow_annotations=["*"])
        node = Node(
            metadata=ObjectMeta(
                name="n1",
                labels={"kubernetes.io/hostname": "n1", "beta.kubernetes.io/arch": "amd64"},
                annotations={"node.alpha.kubernetes.io/ttl": "0"},
            )
        )

        assert_metrics_output(
            registry.project(node),
            """
            # HELP kube_node_labels [STABLE] Kubernetes labels converted to Prometheus labels.
            # HELP kube_node_annotations Kubernetes annotations converted to Prometheus labels.
            # TYPE kube_node_labels gauge
            # TYPE kube_node_annotations gauge
            kube_node_labels{node="n1",label_beta_kubernetes_io_arch="amd64",label_kubernetes_io_hostname="n1"} 1
            kube_node_annotations{node="n1",annotation_node_alpha_kubernetes_io_ttl="0"} 1
            """,
            ["kube_node_labels", "kube_node_annotations"],
        )


class TestNodeRegistryProperties:
    """Test properties holding for every node."""

    @pytest.fixture
    def populated_node(self):
        """A node populating every family."""
        return Node(
            metadata=ObjectMeta(
                name="n1",
                creation_timestamp=unix(1600000000),
                deletion_timestamp=unix(1600000100),
                labels={"node-role.kubernetes.io/worker": "", "team": "a"},
                annotations={"note": "x"},
            ),
            spec=NodeSpec(taints=[Taint(key="k", value="v", effect="NoSchedule")]),
            status=NodeStatus(
                capacity={"cpu": "8", "memory": "32Gi"},
                allocatable={"cpu": "7500m", "memory": "30Gi"},
                conditions=[NodeCondition(type="Ready", status="True")],
                addresses=[NodeAddress(type="Hostname", address="n1")],
            ),
        )

    def test_every_sample_matches_declared_labels(self, populated_node):
        """Test each sample carries exactly its family's declared label names."""
        registry = new_node_registry(allow_labels=["team"], allow_annotations=["note"])

        families = registry.project(populated_node)

        assert all(family.samples for family in families)
        for family in families:
            for sample in family.samples:
                assert tuple(sample.labels) == family.header.label_names

    def test_headers_match_projection(self, node_registry, populated_node):
        """Test headers list exactly the families a projection produces, in the same order."""
        headers = node_registry.headers()
        families = node_registry.project(populated_node)

        assert headers == [family.header for family in families]
        assert [header.name for header in headers] == [
            "kube_node_info",
            "kube_node_created",
            "kube_node_labels",
            "kube_node_role",
            "kube_node_spec_taint",
            "kube_node_spec_unschedulable",
            "kube_node_status_allocatable",
            "kube_node_status_capacity",
            "kube_node_status_condition",
            "kube_node_annotations",
            "kube_node_deletion_timestamp",
            "kube_node_status_addresses",
        ]

    def test_projection_is_deterministic(self, node_registry, populated_node):
        """Test projecting the same node twice gives identical families."""
        assert node_registry.project(populated_node) == node_registry.project(populated_node)

    def test_family_tables_are_independent(self):
        """Test each call builds a fresh generator table."""
        assert node_metric_families() is not node_metric_families()
        assert len(node_metric_families()) == 12
