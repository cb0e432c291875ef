#!/usr/bin/env python3
# Copyright (C) 2025 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""Retrieve the raw stats summary from the kubelet of one node"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Final

import requests
import urllib3

from kubelet_summary_exporter.common import ErrorType

KUBELET_PORT: Final = 10250
STATS_SUMMARY_PATH: Final = "/stats/summary"


@dataclass(frozen=True)
class FetcherConfig:
    target: str
    token_path: Path
    timeout: float

    @property
    def url(self) -> str:
        host = f"[{self.target}]" if ":" in self.target else self.target
        return f"https://{host}:{KUBELET_PORT}{STATS_SUMMARY_PATH}"


class RequestConstructionError(Exception):
    pass


class TokenReadError(Exception):
    pass


class FetchError(Exception):
    def __init__(self, error_type: ErrorType, detail: str) -> None:
        self.error_type = error_type
        self.detail = detail
        super().__init__()

    def __str__(self) -> str:
        return f"{self.error_type.value}: {self.detail}"


class SummaryFetcher:
    """Issues exactly one GET per call to fetch(), without retries.

    The token is read on every call, so a rotated token is picked up without a
    restart. The kubelet serving certificate is not verified: the node is
    trusted by its network placement.
    """

    def __init__(
        self,
        config: FetcherConfig,
        session_factory: Callable[[], requests.Session] = requests.Session,
    ) -> None:
        self._config = config
        self._session_factory = session_factory
        urllib3.disable_warnings(category=urllib3.exceptions.InsecureRequestWarning)

    @property
    def config(self) -> FetcherConfig:
        return self._config

    def _read_token(self) -> str:
        try:
            return self._config.token_path.read_text().strip()
        except (OSError, UnicodeDecodeError) as e:
            raise TokenReadError(f"Unable to load token from {self._config.token_path}") from e

    def fetch(self) -> bytes:
        with self._session_factory() as session:
            try:
                prepared_request = session.prepare_request(
                    requests.Request("GET", self._config.url)
                )
            except requests.RequestException as e:
                raise RequestConstructionError(
                    f"Failed to create request for {self._config.url}"
                ) from e

            prepared_request.headers["Authorization"] = f"Bearer {self._read_token()}"

            try:
                # Watch out: verify must be passed to the individual call, the session
                # setting would be overwritten by REQUESTS_CA_BUNDLE
                response = session.send(
                    prepared_request, verify=False, timeout=self._config.timeout, stream=True
                )
            except requests.RequestException as e:
                # timeouts are reported like any other connection problem
                raise FetchError(
                    ErrorType.request, f"Failed to make request to {self._config.url}: {e}"
                ) from e

            with response:
                if response.status_code != requests.codes.ok:
                    raise FetchError(
                        ErrorType.status,
                        f"Got unexpected status {response.status_code} {response.reason} "
                        f"for {self._config.url}",
                    )
                try:
                    return response.content
                except requests.RequestException as e:
                    raise FetchError(
                        ErrorType.read_body, f"Failed to read body from {self._config.url}: {e}"
                    ) from e
