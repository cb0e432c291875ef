#!/usr/bin/env python3
# Copyright (C) 2025 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""Flatten a stats summary into labelled observations"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence

from pydantic import BaseModel

from kubelet_summary_exporter import catalog
from kubelet_summary_exporter.common import Observation
from kubelet_summary_exporter.schemata import (
    AcceleratorStats,
    ContainerStats,
    InterfaceStats,
    NodeStats,
    PodStats,
    Summary,
    VolumeStats,
)


def map_value(
    descriptor: catalog.MetricDescriptor, value: float | None, label_values: Sequence[str]
) -> Iterator[Observation]:
    if value is None:
        return
    if len(label_values) != len(descriptor.labels):
        raise ValueError(
            f"{descriptor.name} expects labels {descriptor.labels}, got {tuple(label_values)}"
        )
    yield Observation(descriptor, tuple(label_values), float(value))


def map_group(
    group: catalog.MetricGroup, stats: BaseModel | None, label_values: Sequence[str]
) -> Iterator[Observation]:
    if stats is None:
        return
    for attribute, descriptor in group.members:
        yield from map_value(descriptor, getattr(stats, attribute), label_values)


def _map_interfaces(
    group: catalog.MetricGroup, interfaces: Iterable[InterfaceStats], label_values: Sequence[str]
) -> Iterator[Observation]:
    for interface in interfaces:
        yield from map_group(group, interface, (*label_values, interface.name))


def _map_accelerators(
    group: catalog.MetricGroup,
    accelerators: Iterable[AcceleratorStats],
    label_values: Sequence[str],
) -> Iterator[Observation]:
    for accelerator in accelerators:
        yield from map_group(
            group,
            accelerator,
            (*label_values, accelerator.id, accelerator.model, accelerator.make),
        )


def _map_system_container(container: ContainerStats, node_name: str) -> Iterator[Observation]:
    labels = (node_name, container.name)
    yield from map_group(catalog.SYSTEM_CONTAINER_FS, container.rootfs, labels)
    yield from map_group(catalog.SYSTEM_CONTAINER_LOGS, container.logs, labels)
    yield from map_group(catalog.SYSTEM_CONTAINER_CPU, container.cpu, labels)
    yield from map_group(catalog.SYSTEM_CONTAINER_MEMORY, container.memory, labels)
    yield from map_group(catalog.SYSTEM_CONTAINER_SWAP, container.swap, labels)
    yield from _map_accelerators(
        catalog.SYSTEM_CONTAINER_ACCELERATOR, container.accelerators, labels
    )


def map_node(node: NodeStats) -> Iterator[Observation]:
    labels = (node.node_name,)
    yield from map_group(catalog.NODE_FS, node.fs, labels)
    if node.runtime is not None:
        yield from map_group(catalog.NODE_RUNTIME_IMAGE_FS, node.runtime.image_fs, labels)
        yield from map_group(catalog.NODE_RUNTIME_CONTAINER_FS, node.runtime.container_fs, labels)
    yield from map_group(catalog.NODE_CPU, node.cpu, labels)
    yield from map_group(catalog.NODE_MEMORY, node.memory, labels)
    yield from map_group(catalog.NODE_SWAP, node.swap, labels)
    yield from map_group(catalog.NODE_RLIMIT, node.rlimit, labels)
    if node.network is not None:
        yield from _map_interfaces(catalog.NODE_INTERFACE, node.network.interfaces, labels)
    for container in node.system_containers:
        yield from _map_system_container(container, node.node_name)


def _map_volume(volume: VolumeStats, pod_labels: Sequence[str]) -> Iterator[Observation]:
    labels = (*pod_labels, volume.name)
    yield from map_group(catalog.POD_VOLUME, volume, labels)
    if volume.volume_health_stats is not None:
        yield from map_value(
            catalog.POD_VOLUME_HEALTH, int(volume.volume_health_stats.abnormal), labels
        )


def _map_container(container: ContainerStats, pod_labels: Sequence[str]) -> Iterator[Observation]:
    labels = (*pod_labels, container.name)
    yield from map_group(catalog.CONTAINER_FS, container.rootfs, labels)
    yield from map_group(catalog.CONTAINER_LOGS, container.logs, labels)
    yield from map_group(catalog.CONTAINER_CPU, container.cpu, labels)
    yield from map_group(catalog.CONTAINER_MEMORY, container.memory, labels)
    yield from map_group(catalog.CONTAINER_SWAP, container.swap, labels)
    yield from _map_accelerators(catalog.CONTAINER_ACCELERATOR, container.accelerators, labels)


def map_pod(pod: PodStats, node_name: str) -> Iterator[Observation]:
    labels = (node_name, pod.pod_ref.namespace, pod.pod_ref.name)
    yield from map_group(catalog.POD_CPU, pod.cpu, labels)
    yield from map_group(catalog.POD_MEMORY, pod.memory, labels)
    yield from map_group(catalog.POD_SWAP, pod.swap, labels)
    yield from map_group(catalog.POD_EPHEMERAL_STORAGE, pod.ephemeral_storage, labels)
    yield from map_group(catalog.POD_PROCESS, pod.process_stats, labels)
    for volume in pod.volume_stats:
        yield from _map_volume(volume, labels)
    if pod.network is not None:
        yield from _map_interfaces(catalog.POD_INTERFACE, pod.network.interfaces, labels)
    for container in pod.containers:
        yield from _map_container(container, labels)


def map_summary(summary: Summary) -> Iterator[Observation]:
    """Yield one observation per reported value, node scope first, then pods in order."""
    yield from map_node(summary.node)
    for pod in summary.pods:
        yield from map_pod(pod, summary.node.node_name)
