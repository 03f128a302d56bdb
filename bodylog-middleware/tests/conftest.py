"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import patch

import pytest
from starlette.requests import Request

from bodylog.state import ResponseInfo

# Sunday, 5 March 2017, 07:05:09.123 UTC
FIXED_NOW = datetime(2017, 3, 5, 7, 5, 9, 123000, tzinfo=timezone.utc)


def pytest_configure(config):
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (requires a running demo service)",
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless --run-integration flag is passed."""
    if not config.getoption("--run-integration", default=False):
        skip = pytest.mark.skip(reason="need --run-integration to run")
        for item in items:
            if "integration" in item.keywords:
                item.add_marker(skip)


def pytest_addoption(parser):
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="run integration tests (requires `bodylog-demo` to be running)",
    )


def build_request(
    method: str = "GET",
    path: str = "/",
    query: bytes = b"",
    headers: list[tuple[bytes, bytes]] | None = None,
    client: tuple[str, int] | None = ("127.0.0.1", 51000),
    http_version: str = "1.1",
    raw_path: bytes | None = None,
) -> Request:
    scope = {
        "type": "http",
        "method": method,
        "path": path,
        "query_string": query,
        "headers": headers or [],
        "http_version": http_version,
        "client": client,
        "server": ("testserver", 80),
        "scheme": "http",
        "root_path": "",
    }
    if raw_path is not None:
        scope["raw_path"] = raw_path
    return Request(scope)


def build_response(
    status: int = 200,
    headers: list[tuple[bytes, bytes]] | None = None,
) -> ResponseInfo:
    """A response whose headers have already been sent."""
    response = ResponseInfo()
    response.on_start({"type": "http.response.start", "status": status, "headers": headers or []})
    return response


@pytest.fixture
def make_request():
    return build_request


@pytest.fixture
def make_response():
    return build_response


@pytest.fixture
def fixed_now():
    """Freeze the clock used by the :date token."""
    with patch("bodylog.tokens.utcnow", return_value=FIXED_NOW):
        yield FIXED_NOW
