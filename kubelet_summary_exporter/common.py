#!/usr/bin/env python3
# Copyright (C) 2025 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.

from __future__ import annotations

import enum
import logging
from collections.abc import Sequence
from typing import NamedTuple, TYPE_CHECKING

if TYPE_CHECKING:
    from kubelet_summary_exporter.catalog import MetricDescriptor

LOGGER = logging.getLogger("kubelet_summary_exporter")


class ErrorType(enum.Enum):
    """Failure classes reported through the error counter"""

    request = "request error"
    status = "status error"
    read_body = "read body error"
    parse_body = "parse body error"


class Observation(NamedTuple):
    descriptor: MetricDescriptor
    label_values: Sequence[str]
    value: float
