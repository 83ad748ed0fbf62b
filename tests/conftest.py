"""Shared test fixtures for alexa-util.

Provides reusable fixtures for isolated config environments, credential
stores, mock authorization servers, output state, and CLI invocation.
These fixtures are automatically discovered by pytest and available to
all test modules without explicit imports.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Iterator

import httpx
import pytest

from alexa_util.auth.credential_store import CredentialStore
from alexa_util.auth.device_flow import DeviceFlowClient
from alexa_util.output import OutputFormat, OutputManager, reset_output, set_output


AUTH_BASE = "https://auth.test"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> Iterator[None]:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams and the
    test finishes, the cached references become stale. Resetting forces a
    fresh manager on next use. Log handlers bound to those streams are
    removed for the same reason.
    """
    yield
    reset_output()
    logger = logging.getLogger("alexa_util")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Forces XDG path resolution, points XDG_CONFIG_HOME and XDG_DATA_HOME at
    subdirectories of tmp_path, and clears all ALEXA_UTIL_* environment
    variables so that tests never touch real user config.

    Returns:
        The tmp_path root directory.
    """
    monkeypatch.setattr("alexa_util.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    for var in ["ALEXA_UTIL_PROFILE", "ALEXA_UTIL_CLIENT_ID"]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Store fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store_path(tmp_path: Path) -> Path:
    return tmp_path / "store" / "profiles.json"


@pytest.fixture
def store(store_path: Path) -> CredentialStore:
    """An empty credential store backed by a temp file."""
    return CredentialStore.load_or_create(store_path)


# ---------------------------------------------------------------------------
# Mock authorization server
# ---------------------------------------------------------------------------


class MockAuthServer:
    """Scripted authorization server for :class:`httpx.MockTransport`.

    Queue JSON bodies per path with :meth:`queue`. Each request pops the
    next body for its path; the last body repeats once the queue is down
    to one entry. Every request is recorded in :attr:`requests`.
    """

    def __init__(self) -> None:
        self._responses: dict[str, list[tuple[int, Any]]] = {}
        self.requests: list[httpx.Request] = []

    def queue(self, path: str, body: Any, status_code: int = 200) -> MockAuthServer:
        self._responses.setdefault(path, []).append((status_code, body))
        return self

    def requests_to(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]

    def form(self, index: int = -1) -> dict[str, str]:
        """Decoded form body of a recorded request."""
        from urllib.parse import parse_qsl

        return dict(parse_qsl(self.requests[index].content.decode()))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queued = self._responses.get(request.url.path)
        if not queued:
            return httpx.Response(404, json={"error": "invalid_request"})
        status_code, body = queued[0] if len(queued) == 1 else queued.pop(0)
        if isinstance(body, (bytes, str)):
            return httpx.Response(status_code, content=body)
        return httpx.Response(status_code, json=body)


@pytest.fixture
def auth_server() -> MockAuthServer:
    return MockAuthServer()


@pytest.fixture
def device_client(auth_server: MockAuthServer) -> Iterator[DeviceFlowClient]:
    """A DeviceFlowClient wired to :class:`MockAuthServer`."""
    http = httpx.Client(transport=httpx.MockTransport(auth_server.handler))
    yield DeviceFlowClient(base_url=AUTH_BASE, http=http)
    http.close()


# ---------------------------------------------------------------------------
# Fake clock
# ---------------------------------------------------------------------------


class FakeClock:
    """Monotonic clock advanced only by :meth:`sleep`."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> Iterator[OutputManager]:
    """Install a quiet PLAIN OutputManager for tests that don't care about output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()


def code_pair_body(**overrides: Any) -> dict[str, Any]:
    body: dict[str, Any] = {
        "user_code": "ABCD-1234",
        "device_code": "dev-code-123",
        "verification_uri": "https://amazon.com/us/code",
        "expires_in": 600,
        "interval": 5,
    }
    body.update(overrides)
    return body


def token_body(**overrides: Any) -> dict[str, Any]:
    body: dict[str, Any] = {
        "access_token": "Atza|access-1",
        "refresh_token": "Atzr|refresh-1",
        "token_type": "bearer",
        "expires_in": 3600,
    }
    body.update(overrides)
    return body


@pytest.fixture
def make_code_pair_body() -> Callable[..., dict[str, Any]]:
    return code_pair_body


@pytest.fixture
def make_token_body() -> Callable[..., dict[str, Any]]:
    return token_body
