#!/usr/bin/env python3
# Copyright (C) 2025 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.

# pylint: disable=redefined-outer-name

import io
from collections.abc import Callable
from http import HTTPStatus
from pathlib import Path
from typing import Any

import pytest
import requests

from kubelet_summary_exporter.fetcher import FetcherConfig, SummaryFetcher

TESTDATA = Path(__file__).parent / "testdata"

Responder = Callable[[requests.PreparedRequest], requests.Response]


class _BrokenBody:
    def read(self, *_args: object) -> bytes:
        raise requests.exceptions.ChunkedEncodingError("Connection broken: IncompleteRead")

    def close(self) -> None:
        pass


def make_response(
    request: requests.PreparedRequest, status: int = 200, body: bytes = b""
) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response.reason = HTTPStatus(status).phrase
    response.url = request.url or ""
    response.request = request
    response.raw = io.BytesIO(body)
    return response


def make_broken_response(request: requests.PreparedRequest) -> requests.Response:
    response = make_response(request)
    response.raw = _BrokenBody()
    return response


class FakeSession(requests.Session):
    """A session which never touches the network"""

    def __init__(self, respond: Responder, sent: list) -> None:
        super().__init__()
        self._respond = respond
        self._sent = sent

    def send(self, request: requests.PreparedRequest, **kwargs: Any) -> requests.Response:
        self._sent.append((request, kwargs))
        return self._respond(request)


class FakeKubelet:
    def __init__(self) -> None:
        self.sent: list[tuple[requests.PreparedRequest, dict]] = []
        self.respond: Responder = lambda request: make_response(request, body=b"{}")

    def session(self) -> FakeSession:
        return FakeSession(lambda request: self.respond(request), self.sent)

    def reply(self, status: int = 200, body: bytes = b"") -> None:
        self.respond = lambda request: make_response(request, status=status, body=body)

    def reply_broken_body(self) -> None:
        self.respond = make_broken_response

    def fail(self, exception: Exception) -> None:
        def _raise(_request: requests.PreparedRequest) -> requests.Response:
            raise exception

        self.respond = _raise


@pytest.fixture
def example_content() -> bytes:
    return (TESTDATA / "example.json").read_bytes()


@pytest.fixture
def full_content() -> bytes:
    return (TESTDATA / "full.json").read_bytes()


@pytest.fixture
def token_file(tmp_path: Path) -> Path:
    path = tmp_path / "token"
    path.write_text("s3cr3t-t0ken\n")
    return path


@pytest.fixture
def fetcher_config(token_file: Path) -> FetcherConfig:
    return FetcherConfig(target="10.0.0.12", token_path=token_file, timeout=2.5)


@pytest.fixture
def kubelet() -> FakeKubelet:
    return FakeKubelet()


@pytest.fixture
def fetcher(fetcher_config: FetcherConfig, kubelet: FakeKubelet) -> SummaryFetcher:
    return SummaryFetcher(fetcher_config, session_factory=kubelet.session)
