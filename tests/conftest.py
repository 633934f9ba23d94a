# -*- coding: utf-8 -*-
"""Shared fixtures: synthetic datasets and a fake HTTP session, so no test touches the network."""

import logging

import matplotlib

matplotlib.use("Agg")

import pytest  # noqa: E402
import requests  # noqa: E402

from spatialio.utils.helpers import create_sample_points, create_sample_raster, create_sample_vector  # noqa: E402


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo handlers a CLI test may have installed on the package logger."""
    yield
    logger = logging.getLogger("spatialio")
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def world():
    return create_sample_vector()


@pytest.fixture
def points():
    return create_sample_points()


@pytest.fixture
def image():
    return create_sample_raster(bands=4, width=32, height=24)


class FakeResponse:
    """Stands in for a streamed requests.Response."""

    def __init__(self, body=b"", status_code=200, reason="OK"):
        self.body = body if isinstance(body, bytes) else body.encode("utf-8")
        self.status_code = status_code
        self.reason = reason

    @property
    def text(self):
        return self.body.decode("utf-8", errors="replace")

    def iter_content(self, chunk_size=1):
        for start in range(0, len(self.body), chunk_size):
            yield self.body[start : start + chunk_size]

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


class FakeSession:
    """Answers GET requests from a list of canned responses, recording every call.

    ``routes`` maps the value of the ``request`` query parameter (e.g. "GetCapabilities")
    to a FakeResponse, or to an exception instance to raise. A None key matches requests
    without that parameter.
    """

    def __init__(self, routes):
        self.routes = routes
        self.calls = []
        self.headers = {}

    def get(self, url, params=None, stream=False, timeout=None):
        self.calls.append({"url": url, "params": dict(params or {}), "stream": stream, "timeout": timeout})
        key = (params or {}).get("request")
        answer = self.routes[key]
        if isinstance(answer, Exception):
            raise answer
        return answer


@pytest.fixture
def fake_session():
    def _make(routes):
        return FakeSession(routes)

    return _make


@pytest.fixture
def fake_response():
    return FakeResponse


@pytest.fixture
def connection_error():
    return requests.ConnectionError("Failed to establish a new connection: [Errno -2] Name or service not known")
