#!/usr/bin/env python3
# Copyright (C) 2025 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""
Collector for the metrics of the kubelet stats summary

Every pull runs fetch, decode and map once. A failing stage is reported through
the error counter only, no data of that pull is exported.
"""

from __future__ import annotations

import collections
import os
from collections.abc import Callable, Iterable, Iterator, Sequence

import pydantic
from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily, Metric
from prometheus_client.registry import Collector

from kubelet_summary_exporter import catalog
from kubelet_summary_exporter.common import ErrorType, LOGGER, Observation
from kubelet_summary_exporter.fetcher import (
    FetchError,
    RequestConstructionError,
    SummaryFetcher,
    TokenReadError,
)
from kubelet_summary_exporter.mapper import map_summary
from kubelet_summary_exporter.schemata import parse_summary


def _metric_family(descriptor: catalog.MetricDescriptor) -> Metric:
    if descriptor.type_ == "counter":
        return CounterMetricFamily(
            descriptor.name, descriptor.documentation, labels=descriptor.labels
        )
    return GaugeMetricFamily(descriptor.name, descriptor.documentation, labels=descriptor.labels)


def metric_families(observations: Iterable[Observation]) -> Iterator[Metric]:
    families: dict[str, Metric] = {}
    for observation in observations:
        descriptor = observation.descriptor
        if (family := families.get(descriptor.name)) is None:
            family = families[descriptor.name] = _metric_family(descriptor)
        family.add_metric(observation.label_values, observation.value)
    yield from families.values()


class KubeletSummaryCollector(Collector):
    def __init__(
        self,
        fetcher: SummaryFetcher,
        exit_process: Callable[[int], object] = os._exit,
    ) -> None:
        self._fetcher = fetcher
        # the collector runs in the threads of the exposition server, where
        # SystemExit would only end the current thread
        self._exit_process = exit_process
        self._error_counts: collections.Counter[ErrorType] = collections.Counter(
            {error_type: 0 for error_type in ErrorType}
        )

    @staticmethod
    def descriptors() -> Sequence[catalog.MetricDescriptor]:
        return (catalog.ERRORS, *catalog.CATALOG.values())

    def error_observations(self) -> list[Observation]:
        return [
            Observation(catalog.ERRORS, (error_type.value,), float(self._error_counts[error_type]))
            for error_type in ErrorType
        ]

    def _record_error(self, error_type: ErrorType) -> list[Observation]:
        # not atomic: concurrent pulls may undercount, which is fine for this counter
        self._error_counts[error_type] += 1
        return self.error_observations()

    def scrape(self) -> list[Observation]:
        try:
            content = self._fetcher.fetch()
        except RequestConstructionError as e:
            LOGGER.error("%s: %s", e, e.__cause__)
            return []
        except TokenReadError as e:
            LOGGER.critical("%s: %s", e, e.__cause__)
            self._exit_process(1)
            raise
        except FetchError as e:
            if e.error_type is ErrorType.read_body:
                LOGGER.error("%s", e)
            else:
                LOGGER.warning("%s", e)
            return self._record_error(e.error_type)

        try:
            summary = parse_summary(content)
        except pydantic.ValidationError as e:
            LOGGER.error("Failed to parse body: %s", e)
            return self._record_error(ErrorType.parse_body)

        observations = list(map_summary(summary))
        LOGGER.debug(
            "Collected %d observations for node %s", len(observations), summary.node.node_name
        )
        return self.error_observations() + observations

    def describe(self) -> Iterator[Metric]:
        for descriptor in self.descriptors():
            yield _metric_family(descriptor)

    def collect(self) -> Iterator[Metric]:
        yield from metric_families(self.scrape())
