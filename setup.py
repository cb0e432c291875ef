#!/usr/bin/env python3
# Copyright (C) 2025 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.

from setuptools import find_packages, setup

setup(
    name="kubelet-summary-exporter",
    version="1.0.0",
    packages=find_packages(include=["kubelet_summary_exporter", "kubelet_summary_exporter.*"]),
    include_package_data=True,
    python_requires=">=3.10",
    install_requires=[
        "prometheus-client>=0.17",
        "pydantic>=2",
        "requests",
        "urllib3",
    ],
    extras_require={"test": ["pytest"]},
    entry_points={
        "console_scripts": [
            "kubelet-summary-exporter=kubelet_summary_exporter.main:main",
        ],
    },
)
