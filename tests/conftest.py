"""Pytest configuration and fixtures for repoaudit tests."""

import sys
import tempfile
from pathlib import Path

import httpx
import pytest

from repoaudit.core.config import CheckDefinition
from repoaudit.core.log import ConsoleSink, setup_logger


@pytest.fixture(autouse=True, scope="session")
def configure_logging():
    """Console-only debug logging, nothing sent to logfire.dev."""
    setup_logger(
        log_root=Path(tempfile.gettempdir()) / "repoaudit-tests",
        run_name="test",
        console=ConsoleSink(level="debug"),
    )


@pytest.fixture
def isolated_cwd(tmp_path, monkeypatch):
    """Empty working directory and argv so no project config or CLI
    arguments leak into State()."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(sys, "argv", ["repoaudit"])
    return tmp_path


@pytest.fixture
def make_check():
    """Factory for CheckDefinition with sensible defaults."""
    def _make(name="has-license", file="LICENSE", pattern="MIT", **kwargs):
        return CheckDefinition(name=name, file=file, pattern=pattern, **kwargs)
    return _make


class FakeFetcher:
    """In-memory fetcher keyed by (repository, file_path).

    Values may be strings (returned) or exceptions (raised).
    """

    def __init__(self, files):
        self.files = files
        self.calls = []

    async def fetch(self, repository, file_path):
        from repoaudit.core.errors import NotFound
        from repoaudit.github.client import parse_repository

        self.calls.append((repository, file_path))
        parse_repository(repository)
        value = self.files.get((repository, file_path))
        if value is None:
            raise NotFound(file_path)
        if isinstance(value, Exception):
            raise value
        return value


@pytest.fixture
def fake_fetcher():
    return FakeFetcher


def raw_github_transport(files, fail_hosts=()):
    """MockTransport serving raw.githubusercontent.com paths.

    Args:
        files: Mapping of "owner/repo/branch/path" to body text
        fail_hosts: Hosts for which a ConnectError is raised
    """
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host in fail_hosts:
            raise httpx.ConnectError("connection refused", request=request)
        key = request.url.path.lstrip("/")
        if key in files:
            return httpx.Response(200, text=files[key])
        return httpx.Response(404, text="404: Not Found")

    return httpx.MockTransport(handler)


@pytest.fixture
def raw_transport():
    return raw_github_transport
