#!/usr/bin/env python3
# Copyright (C) 2025 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""
Exporter for the kubelet stats summary of a Kubernetes node. The resource usage
of the node, its system containers, pods and containers is queried from the
kubelet on every scrape and exposed as Prometheus metrics.
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading
from collections.abc import Sequence
from pathlib import Path

from prometheus_client import CollectorRegistry, start_http_server

from kubelet_summary_exporter.collector import KubeletSummaryCollector
from kubelet_summary_exporter.common import LOGGER
from kubelet_summary_exporter.fetcher import FetcherConfig, SummaryFetcher

DEFAULT_TOKEN_PATH = "/var/run/secrets/kubernetes.io/serviceaccount/token"


def parse_arguments(args: Sequence[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description=__doc__)
    p.add_argument("--debug", action="store_true", help="Debug mode: raise Python exceptions")
    p.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Verbose mode (for even more output use -vvv)",
    )
    p.add_argument(
        "--node-ip",
        required=True,
        help="Address of the node whose kubelet is queried",
    )
    p.add_argument(
        "--token-path",
        type=Path,
        default=Path(DEFAULT_TOKEN_PATH),
        help="File containing the bearer token presented to the kubelet. It is read on every "
        "scrape, so the token can be rotated without restarting the exporter.",
    )
    p.add_argument(
        "--timeout",
        type=float,
        default=10.0,
        help="The timeout in seconds the exporter will wait for a response from the kubelet.",
    )
    p.add_argument(
        "--listen-address",
        default="0.0.0.0",
        help="Address the metrics endpoint listens on",
    )
    p.add_argument(
        "--port",
        type=int,
        default=9091,
        help="Port the metrics endpoint listens on",
    )
    return p.parse_args(args)


def setup_logging(verbosity: int) -> None:
    if verbosity >= 3:
        lvl = logging.DEBUG
    elif verbosity == 2:
        lvl = logging.INFO
    elif verbosity == 1:
        lvl = logging.WARN
    else:
        logging.disable(logging.CRITICAL)
        lvl = logging.CRITICAL
    logging.basicConfig(level=lvl, format="%(asctime)s %(levelname)s %(message)s")


def _wait_for_termination() -> None:
    terminated = threading.Event()

    def _handler(signum: int, _frame: object) -> None:
        LOGGER.info("Received signal %d, shutting down", signum)
        terminated.set()

    signal.signal(signal.SIGINT, _handler)
    signal.signal(signal.SIGTERM, _handler)
    terminated.wait()


def main(args: Sequence[str] | None = None) -> int:
    if args is None:
        args = sys.argv[1:]
    arguments = parse_arguments(args)

    try:
        setup_logging(arguments.verbose)
        LOGGER.debug("parsed arguments: %s\n", arguments)

        fetcher = SummaryFetcher(
            FetcherConfig(
                target=arguments.node_ip,
                token_path=arguments.token_path,
                timeout=arguments.timeout,
            )
        )
        registry = CollectorRegistry()
        registry.register(KubeletSummaryCollector(fetcher))

        LOGGER.info(
            "Serving metrics of %s on %s:%d",
            fetcher.config.url,
            arguments.listen_address,
            arguments.port,
        )
        start_http_server(arguments.port, addr=arguments.listen_address, registry=registry)
        _wait_for_termination()
    except Exception as e:
        if arguments.debug:
            raise
        sys.stderr.write("%s" % e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
