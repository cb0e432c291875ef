#!/usr/bin/env python3
# Copyright (C) 2025 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""
Schemata of the kubelet stats summary (stats/v1alpha1)

Only the parts which are exported as metrics are modelled. Unknown fields are
ignored. Every numeric leaf is optional: a missing field is kept as None and is
never defaulted to 0, since a reported 0 is a valid measurement.
"""

from __future__ import annotations

from typing import Annotated, TypeVar

from pydantic import BaseModel, BeforeValidator, Field

_T = TypeVar("_T")


def _null_as_empty(value: object) -> object:
    return [] if value is None else value


# the kubelet serializes empty lists as null, e.g. the containers of a fresh pod sandbox
NullableList = Annotated[list[_T], BeforeValidator(_null_as_empty)]


class _StatsModel(BaseModel, frozen=True, strict=True):
    pass


class FsStats(_StatsModel):
    used_bytes: int | None = Field(None, alias="usedBytes")
    capacity_bytes: int | None = Field(None, alias="capacityBytes")
    inodes: int | None = None
    inodes_free: int | None = Field(None, alias="inodesFree")
    inodes_used: int | None = Field(None, alias="inodesUsed")


class CPUStats(_StatsModel):
    usage_nano_cores: int | None = Field(None, alias="usageNanoCores")
    usage_core_nano_seconds: int | None = Field(None, alias="usageCoreNanoSeconds")


class MemoryStats(_StatsModel):
    available_bytes: int | None = Field(None, alias="availableBytes")
    usage_bytes: int | None = Field(None, alias="usageBytes")
    working_set_bytes: int | None = Field(None, alias="workingSetBytes")
    rss_bytes: int | None = Field(None, alias="rssBytes")
    page_faults: int | None = Field(None, alias="pageFaults")
    major_page_faults: int | None = Field(None, alias="majorPageFaults")


class SwapStats(_StatsModel):
    swap_available_bytes: int | None = Field(None, alias="swapAvailableBytes")
    swap_usage_bytes: int | None = Field(None, alias="swapUsageBytes")


class AcceleratorStats(_StatsModel):
    # the kubelet always reports these, there is no optional handling
    make: str = ""
    model: str = ""
    id: str = ""
    memory_total: int = Field(0, alias="memoryTotal")
    memory_used: int = Field(0, alias="memoryUsed")
    duty_cycle: int = Field(0, alias="dutyCycle")


class InterfaceStats(_StatsModel):
    name: str = ""
    rx_bytes: int | None = Field(None, alias="rxBytes")
    rx_errors: int | None = Field(None, alias="rxErrors")
    tx_bytes: int | None = Field(None, alias="txBytes")
    tx_errors: int | None = Field(None, alias="txErrors")


class NetworkStats(_StatsModel):
    interfaces: NullableList[InterfaceStats] = []


class RuntimeStats(_StatsModel):
    image_fs: FsStats | None = Field(None, alias="imageFs")
    container_fs: FsStats | None = Field(None, alias="containerFs")


class RlimitStats(_StatsModel):
    max_pid: int | None = Field(None, alias="maxpid")
    num_of_running_processes: int | None = Field(None, alias="curproc")


class ContainerStats(_StatsModel):
    """Statistics of a pod container or of a node system container

    For system containers the rootfs is the filesystem the container is
    accounted on.
    """

    name: str = ""
    rootfs: FsStats | None = None
    logs: FsStats | None = None
    cpu: CPUStats | None = None
    memory: MemoryStats | None = None
    swap: SwapStats | None = None
    accelerators: NullableList[AcceleratorStats] = []


class NodeStats(_StatsModel):
    node_name: str = Field("", alias="nodeName")
    system_containers: NullableList[ContainerStats] = Field([], alias="systemContainers")
    fs: FsStats | None = None
    runtime: RuntimeStats | None = None
    cpu: CPUStats | None = None
    memory: MemoryStats | None = None
    swap: SwapStats | None = None
    rlimit: RlimitStats | None = None
    network: NetworkStats | None = None


class PodReference(_StatsModel):
    name: str = ""
    namespace: str = ""


class VolumeHealthStats(_StatsModel):
    abnormal: bool = False


class VolumeStats(FsStats):
    # the filesystem fields of a volume are inlined next to its name
    name: str = ""
    volume_health_stats: VolumeHealthStats | None = Field(None, alias="volumeHealthStats")


class ProcessStats(_StatsModel):
    process_count: int | None = None


class PodStats(_StatsModel):
    pod_ref: PodReference = Field(PodReference(), alias="podRef")
    cpu: CPUStats | None = None
    memory: MemoryStats | None = None
    swap: SwapStats | None = None
    ephemeral_storage: FsStats | None = Field(None, alias="ephemeral-storage")
    process_stats: ProcessStats | None = None
    volume_stats: NullableList[VolumeStats] = Field([], alias="volume")
    network: NetworkStats | None = None
    containers: NullableList[ContainerStats] = []


class Summary(_StatsModel):
    node: NodeStats = NodeStats()
    pods: NullableList[PodStats] = []


def parse_summary(content: bytes | str) -> Summary:
    """Decode a stats summary document.

    Raises pydantic.ValidationError if the content is not JSON or does not have the
    shape of a stats summary. Nothing is returned for partially valid documents.
    """
    return Summary.model_validate_json(content)
