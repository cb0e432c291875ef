#!/usr/bin/env python3
# Copyright (C) 2025 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.

from collections import Counter

import pytest

from kubelet_summary_exporter import catalog
from kubelet_summary_exporter.common import Observation
from kubelet_summary_exporter.mapper import map_summary, map_value
from kubelet_summary_exporter.schemata import parse_summary

NODE = "ip-172-20-96-152.ec2.internal"
POD = (NODE, "rmux", "appcache-us-east-1f-6599bdfbcd-lf9j6")


def _by_name(observations: list[Observation]) -> dict[str, list[Observation]]:
    result: dict[str, list[Observation]] = {}
    for observation in observations:
        result.setdefault(observation.descriptor.name, []).append(observation)
    return result


def _map(content: bytes) -> list[Observation]:
    return list(map_summary(parse_summary(content)))


def test_container_fs_of_example(example_content: bytes) -> None:
    observations = _map(example_content)
    labels = (
        "ip-172-20-125-125.ec2.internal",
        "kube-system",
        "aws-xray-daemon-bpmqx",
        "aws-xray-daemon",
    )
    assert [(o.descriptor.name, o.label_values, o.value) for o in observations] == [
        ("kubelet_summary_container_fs_usage_bytes", labels, 0.0),
        ("kubelet_summary_container_fs_limit_bytes", labels, 107361579008.0),
    ]


def test_full_summary_covers_catalog(full_content: bytes) -> None:
    observations = _map(full_content)
    names = [o.descriptor.name for o in observations]
    assert Counter(names) == Counter(catalog.CATALOG.keys())


def test_observations_conform_to_label_schema(full_content: bytes) -> None:
    for observation in _map(full_content):
        assert catalog.CATALOG[observation.descriptor.name] is observation.descriptor
        assert len(observation.label_values) == len(observation.descriptor.labels)
        assert all(isinstance(v, str) for v in observation.label_values)


def test_node_scope(full_content: bytes) -> None:
    observations = _by_name(_map(full_content))
    (rlimit,) = observations["kubelet_summary_node_rlimit_max_pid"]
    assert rlimit.label_values == (NODE,)
    assert rlimit.value == 4194304.0
    (interface,) = observations["kubelet_summary_node_interface_rx_bytes"]
    assert interface.label_values == (NODE, "eth0")
    (image_fs,) = observations["kubelet_summary_node_runtime_image_fs_usage_bytes"]
    assert image_fs.value == 3848916428.0
    (swap,) = observations["kubelet_summary_node_swap_available_bytes"]
    assert swap.value == 0.0


def test_system_container_scope(full_content: bytes) -> None:
    observations = _by_name(_map(full_content))
    (memory,) = observations["kubelet_summary_node_system_container_memory_rss_bytes"]
    assert memory.label_values == (NODE, "kubelet")
    assert memory.value == 58822656.0
    (fs,) = observations["kubelet_summary_node_system_container_fs_usage_bytes"]
    assert fs.value == 4096.0


def test_pod_scope(full_content: bytes) -> None:
    observations = _by_name(_map(full_content))
    (process_count,) = observations["kubelet_summary_pod_process_count"]
    assert process_count.label_values == POD
    assert process_count.value == 3.0
    (volume,) = observations["kubelet_summary_pod_volume_limit_bytes"]
    assert volume.label_values == (*POD, "kube-api-access-8tq4n")
    (health,) = observations["kubelet_summary_pod_volume_health_status"]
    assert health.value == 1.0
    (interface,) = observations["kubelet_summary_pod_interface_tx_bytes"]
    assert interface.label_values == (*POD, "eth0")
    assert interface.value == 86632.0


def test_container_scope(full_content: bytes) -> None:
    observations = _by_name(_map(full_content))
    (logs,) = observations["kubelet_summary_container_logs_usage_bytes"]
    assert logs.label_values == (*POD, "rmux")
    assert logs.value == 28672.0


@pytest.mark.parametrize(
    "scope, expected_labels",
    [
        ("container", (*POD, "rmux", "GPU-1", "tesla-t4", "nvidia")),
        ("node_system_container", (NODE, "kubelet", "GPU-0", "tesla-t4", "nvidia")),
    ],
)
def test_accelerators(full_content: bytes, scope: str, expected_labels: tuple[str, ...]) -> None:
    prefix = f"kubelet_summary_{scope}_accelerator_"
    accelerator_metrics = [o for o in _map(full_content) if o.descriptor.name.startswith(prefix)]
    assert sorted(o.descriptor.name.rsplit("_accelerator_", 1)[1] for o in accelerator_metrics) == [
        "duty_cycle",
        "memory_total",
        "memory_used",
    ]
    assert {o.label_values for o in accelerator_metrics} == {expected_labels}


def test_accelerator_with_zero_values() -> None:
    observations = _map(
        b'{"node": {"nodeName": "n1"}, "pods": [{"podRef": {"name": "p", "namespace": "ns"},'
        b' "containers": [{"name": "c", "accelerators": [{"id": "GPU-3", "model": "a100",'
        b' "make": "nvidia"}]}]}]}'
    )
    assert [(o.descriptor.name, o.label_values, o.value) for o in observations] == [
        (
            f"kubelet_summary_container_accelerator_{name}",
            ("n1", "ns", "p", "c", "GPU-3", "a100", "nvidia"),
            0.0,
        )
        for name in ("memory_used", "memory_total", "duty_cycle")
    ]


def test_healthy_volume_and_volume_without_health() -> None:
    observations = _map(
        b'{"node": {"nodeName": "n1"}, "pods": [{"podRef": {"name": "p", "namespace": "ns"},'
        b' "volume": [{"name": "ok", "usedBytes": 7, "volumeHealthStats": {"abnormal": false}},'
        b' {"name": "unknown", "usedBytes": 9}]}]}'
    )
    assert [(o.descriptor.name, o.label_values[-1], o.value) for o in observations] == [
        ("kubelet_summary_pod_volume_usage_bytes", "ok", 7.0),
        ("kubelet_summary_pod_volume_health_status", "ok", 0.0),
        ("kubelet_summary_pod_volume_usage_bytes", "unknown", 9.0),
    ]


def test_absent_leaves_produce_nothing() -> None:
    assert _map(b'{"node": {"nodeName": "n1", "cpu": {}, "memory": {"rssBytes": null}}}') == []


def test_explicit_zero_produces_observation() -> None:
    observations = _map(b'{"node": {"nodeName": "n1", "cpu": {"usageNanoCores": 0}}}')
    assert [(o.descriptor.name, o.label_values, o.value) for o in observations] == [
        ("kubelet_summary_node_cpu_usage_nano_cores", ("n1",), 0.0)
    ]


def test_node_scope_before_pod_scope(full_content: bytes) -> None:
    scopes = [
        o.descriptor.name.removeprefix("kubelet_summary_").split("_")[0]
        for o in _map(full_content)
    ]
    assert scopes == sorted(scopes, key=["node", "pod", "container"].index)


def test_pods_in_document_order() -> None:
    observations = _map(
        b'{"node": {"nodeName": "n1"}, "pods": ['
        b'{"podRef": {"name": "b", "namespace": "ns"}, "process_stats": {"process_count": 1}},'
        b'{"podRef": {"name": "a", "namespace": "ns"}, "process_stats": {"process_count": 2}}]}'
    )
    assert [o.label_values for o in observations] == [("n1", "ns", "b"), ("n1", "ns", "a")]


def test_map_value_rejects_wrong_label_count() -> None:
    with pytest.raises(ValueError):
        list(map_value(catalog.CATALOG["kubelet_summary_pod_process_count"], 1, ("n1", "ns")))


def test_map_value_skips_absent_value() -> None:
    descriptor = catalog.CATALOG["kubelet_summary_node_cpu_usage_nano_cores"]
    assert not list(map_value(descriptor, None, ("n1",)))


def test_pod_sandbox_without_containers() -> None:
    observations = _map(
        b'{"node": {"nodeName": "n1", "cpu": {"usageNanoCores": 7}}, "pods": [{"podRef":'
        b' {"name": "p", "namespace": "ns"}, "containers": null, "process_stats":'
        b' {"process_count": 0}}]}'
    )
    assert [(o.descriptor.name, o.label_values, o.value) for o in observations] == [
        ("kubelet_summary_node_cpu_usage_nano_cores", ("n1",), 7.0),
        ("kubelet_summary_pod_process_count", ("n1", "ns", "p"), 0.0),
    ]
