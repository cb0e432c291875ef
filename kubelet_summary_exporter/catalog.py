#!/usr/bin/env python3
# Copyright (C) 2025 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""
The fixed set of metrics exported for a node

Metrics are organised in groups. A group binds the attributes of one stats
object (e.g. the memory stats of a pod) to metric names under a common
subsystem and label schema. The mapper walks the summary along these groups,
so every metric it can produce is listed here.
"""

from __future__ import annotations

import types
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Final, Literal, NamedTuple

NAMESPACE: Final = "kubelet_summary"

NODE_LABELS: Final = ("node",)
NODE_INTERFACE_LABELS: Final = (*NODE_LABELS, "name")
SYSTEM_CONTAINER_LABELS: Final = (*NODE_LABELS, "container")
POD_LABELS: Final = ("node", "namespace", "pod")
POD_VOLUME_LABELS: Final = (*POD_LABELS, "volume_name")
POD_INTERFACE_LABELS: Final = (*POD_LABELS, "name")
CONTAINER_LABELS: Final = (*POD_LABELS, "container")
ACCELERATOR_LABELS: Final = ("id", "model", "make")


@dataclass(frozen=True)
class MetricDescriptor:
    name: str
    documentation: str
    labels: tuple[str, ...]
    type_: Literal["gauge", "counter"] = "gauge"


class MetricField(NamedTuple):
    """Exported metric name, source attribute and help text template"""

    name: str
    attribute: str
    documentation: str


class MetricGroup(NamedTuple):
    subsystem: str
    members: Sequence[tuple[str, MetricDescriptor]]

    @property
    def descriptors(self) -> Iterator[MetricDescriptor]:
        return (descriptor for _attribute, descriptor in self.members)


FS_FIELDS: Final = (
    MetricField("usage_bytes", "used_bytes", "Bytes used in {}"),
    MetricField("limit_bytes", "capacity_bytes", "Capacity of {} in bytes"),
    MetricField("inodes_free", "inodes_free", "Number of inodes free in {}"),
    MetricField("inodes", "inodes", "Number of inodes in {}"),
    MetricField("inodes_used", "inodes_used", "Number of inodes used in {}"),
)

CPU_FIELDS: Final = (
    MetricField("usage_nano_cores", "usage_nano_cores", "CPU usage of {} in nanocores"),
    MetricField(
        "usage_core_nano_seconds",
        "usage_core_nano_seconds",
        "Cumulative CPU time consumed by {} in core nanoseconds",
    ),
)

MEMORY_FIELDS: Final = (
    MetricField("available_bytes", "available_bytes", "Available bytes in {} memory"),
    MetricField("usage_bytes", "usage_bytes", "Used bytes in {} memory"),
    MetricField("working_set_bytes", "working_set_bytes", "Working set bytes in {} memory"),
    MetricField("rss_bytes", "rss_bytes", "RSS bytes in {} memory"),
    MetricField("page_faults", "page_faults", "Page faults in {} memory"),
    MetricField("major_page_faults", "major_page_faults", "Major page faults in {} memory"),
)

SWAP_FIELDS: Final = (
    MetricField("available_bytes", "swap_available_bytes", "Available bytes in {} swap storage"),
    MetricField("usage_bytes", "swap_usage_bytes", "Used bytes in {} swap storage"),
)

INTERFACE_FIELDS: Final = (
    MetricField("rx_bytes", "rx_bytes", "Cumulative count of bytes received by {}"),
    MetricField("rx_errors", "rx_errors", "Cumulative count of receive errors of {}"),
    MetricField("tx_bytes", "tx_bytes", "Cumulative count of bytes transmitted by {}"),
    MetricField("tx_errors", "tx_errors", "Cumulative count of transmit errors of {}"),
)

RLIMIT_FIELDS: Final = (
    MetricField("max_pid", "max_pid", "Maximum PID of {}"),
    MetricField(
        "num_of_running_process", "num_of_running_processes", "Number of running processes in {}"
    ),
)

PROCESS_FIELDS: Final = (MetricField("process_count", "process_count", "Count of processes in {}"),)

ACCELERATOR_FIELDS: Final = (
    MetricField("memory_used", "memory_used", "Memory used in {} accelerator"),
    MetricField("memory_total", "memory_total", "Total memory in {} accelerator"),
    MetricField(
        "duty_cycle", "duty_cycle", "Percentage of time over which the {} accelerator was busy"
    ),
)


def metric_name(subsystem: str, name: str) -> str:
    return "_".join(part for part in (NAMESPACE, subsystem, name) if part)


def _group(
    subsystem: str, fields: Sequence[MetricField], labels: tuple[str, ...], owner: str
) -> MetricGroup:
    return MetricGroup(
        subsystem=subsystem,
        members=tuple(
            (
                field.attribute,
                MetricDescriptor(
                    name=metric_name(subsystem, field.name),
                    documentation=field.documentation.format(owner),
                    labels=labels,
                ),
            )
            for field in fields
        ),
    )


NODE_FS: Final = _group("node_fs", FS_FIELDS, NODE_LABELS, "node fs")
NODE_RUNTIME_IMAGE_FS: Final = _group(
    "node_runtime_image_fs", FS_FIELDS, NODE_LABELS, "node runtime image fs"
)
NODE_RUNTIME_CONTAINER_FS: Final = _group(
    "node_runtime_container_fs", FS_FIELDS, NODE_LABELS, "node runtime container fs"
)
NODE_CPU: Final = _group("node_cpu", CPU_FIELDS, NODE_LABELS, "node")
NODE_MEMORY: Final = _group("node_memory", MEMORY_FIELDS, NODE_LABELS, "node")
NODE_SWAP: Final = _group("node_swap", SWAP_FIELDS, NODE_LABELS, "node")
NODE_RLIMIT: Final = _group("node_rlimit", RLIMIT_FIELDS, NODE_LABELS, "node")
NODE_INTERFACE: Final = _group(
    "node_interface", INTERFACE_FIELDS, NODE_INTERFACE_LABELS, "node interface"
)

SYSTEM_CONTAINER_FS: Final = _group(
    "node_system_container_fs", FS_FIELDS, SYSTEM_CONTAINER_LABELS, "system container fs"
)
SYSTEM_CONTAINER_LOGS: Final = _group(
    "node_system_container_logs", FS_FIELDS, SYSTEM_CONTAINER_LABELS, "system container log space"
)
SYSTEM_CONTAINER_CPU: Final = _group(
    "node_system_container_cpu", CPU_FIELDS, SYSTEM_CONTAINER_LABELS, "system container"
)
SYSTEM_CONTAINER_MEMORY: Final = _group(
    "node_system_container_memory", MEMORY_FIELDS, SYSTEM_CONTAINER_LABELS, "system container"
)
SYSTEM_CONTAINER_SWAP: Final = _group(
    "node_system_container_swap", SWAP_FIELDS, SYSTEM_CONTAINER_LABELS, "system container"
)
SYSTEM_CONTAINER_ACCELERATOR: Final = _group(
    "node_system_container_accelerator",
    ACCELERATOR_FIELDS,
    (*SYSTEM_CONTAINER_LABELS, *ACCELERATOR_LABELS),
    "system container",
)

POD_CPU: Final = _group("pod_cpu", CPU_FIELDS, POD_LABELS, "pod")
POD_MEMORY: Final = _group("pod_memory", MEMORY_FIELDS, POD_LABELS, "pod")
POD_SWAP: Final = _group("pod_swap", SWAP_FIELDS, POD_LABELS, "pod")
POD_EPHEMERAL_STORAGE: Final = _group(
    "pod_ephemeral_storage", FS_FIELDS, POD_LABELS, "pod ephemeral storage"
)
POD_PROCESS: Final = _group("pod", PROCESS_FIELDS, POD_LABELS, "pod")
POD_VOLUME: Final = _group("pod_volume", FS_FIELDS, POD_VOLUME_LABELS, "pod volume")
POD_VOLUME_HEALTH: Final = MetricDescriptor(
    name=metric_name("pod_volume", "health_status"),
    documentation="Health status of pod volume (1 if abnormal, 0 otherwise)",
    labels=POD_VOLUME_LABELS,
)
POD_INTERFACE: Final = _group(
    "pod_interface", INTERFACE_FIELDS, POD_INTERFACE_LABELS, "pod interface"
)

CONTAINER_FS: Final = _group("container_fs", FS_FIELDS, CONTAINER_LABELS, "container fs")
CONTAINER_LOGS: Final = _group(
    "container_logs", FS_FIELDS, CONTAINER_LABELS, "container log space"
)
CONTAINER_CPU: Final = _group("container_cpu", CPU_FIELDS, CONTAINER_LABELS, "container")
CONTAINER_MEMORY: Final = _group("container_memory", MEMORY_FIELDS, CONTAINER_LABELS, "container")
CONTAINER_SWAP: Final = _group("container_swap", SWAP_FIELDS, CONTAINER_LABELS, "container")
CONTAINER_ACCELERATOR: Final = _group(
    "container_accelerator",
    ACCELERATOR_FIELDS,
    (*CONTAINER_LABELS, *ACCELERATOR_LABELS),
    "container",
)

ERRORS: Final = MetricDescriptor(
    name=metric_name("", "exporter_errors"),
    documentation="Errors scraping kubelet stats summary",
    labels=("type",),
    type_="counter",
)

METRIC_GROUPS: Final = (
    NODE_FS,
    NODE_RUNTIME_IMAGE_FS,
    NODE_RUNTIME_CONTAINER_FS,
    NODE_CPU,
    NODE_MEMORY,
    NODE_SWAP,
    NODE_RLIMIT,
    NODE_INTERFACE,
    SYSTEM_CONTAINER_FS,
    SYSTEM_CONTAINER_LOGS,
    SYSTEM_CONTAINER_CPU,
    SYSTEM_CONTAINER_MEMORY,
    SYSTEM_CONTAINER_SWAP,
    SYSTEM_CONTAINER_ACCELERATOR,
    POD_CPU,
    POD_MEMORY,
    POD_SWAP,
    POD_EPHEMERAL_STORAGE,
    POD_PROCESS,
    POD_VOLUME,
    POD_INTERFACE,
    CONTAINER_FS,
    CONTAINER_LOGS,
    CONTAINER_CPU,
    CONTAINER_MEMORY,
    CONTAINER_SWAP,
    CONTAINER_ACCELERATOR,
)


def _build_catalog() -> Mapping[str, MetricDescriptor]:
    descriptors = [d for group in METRIC_GROUPS for d in group.descriptors]
    descriptors.append(POD_VOLUME_HEALTH)
    catalog = {d.name: d for d in descriptors}
    if len(catalog) != len(descriptors):
        raise ValueError("Metric names in catalog are not unique")
    return types.MappingProxyType(catalog)


# all data metrics by name, the error counter is kept apart
CATALOG: Final = _build_catalog()
