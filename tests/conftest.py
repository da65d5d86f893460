"""Shared test fixtures for pharsync."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import httpx
import pytest

from pharsync.config import SyncConfig
from pharsync.models.plugin import (
    HttpSource,
    PluginResource,
    PluginSource,
    PluginSpec,
    PluginStatus,
)
from pharsync.runtime import ControllerContext
from pharsync.store.memory import InMemoryStore


class FakeHttp:
    """Route table for ``httpx.MockTransport``.

    Unrouted URLs answer 404.  Every request is recorded.
    """

    def __init__(self) -> None:
        self.routes: dict[str, httpx.Response | Callable[[httpx.Request], httpx.Response]] = {}
        self.requests: list[httpx.Request] = []
        self._lock = threading.Lock()

    def serve(self, url: str, body: bytes, status_code: int = 200) -> None:
        self.routes[url] = httpx.Response(status_code, content=body)

    def handler(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.requests.append(request)
        route = self.routes.get(str(request.url))
        if route is None:
            return httpx.Response(404, content=b"not found")
        if callable(route):
            return route(request)
        return httpx.Response(route.status_code, content=route.content)

    def urls(self) -> list[str]:
        with self._lock:
            return [str(r.url) for r in self.requests]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def wait_until(predicate: Callable[[], bool], timeout: float = 5.0) -> bool:
    """Poll *predicate* until it is true or *timeout* elapses."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


@pytest.fixture
def mount_path(tmp_path: Path) -> Path:
    """Provide an existing, empty plugin mount directory."""
    path = tmp_path / "plugins"
    path.mkdir()
    return path


@pytest.fixture
def config(mount_path: Path, tmp_path: Path) -> SyncConfig:
    """Provide a fast-cycling config rooted in temp directories."""
    return SyncConfig(
        _env_file=None,
        mount_path=mount_path,
        store_path=tmp_path / "store.db",
        sync_wait_initial_seconds=0.0,
        wakeup_poll_seconds=0.02,
        store_poll_interval_seconds=0.02,
    )


@pytest.fixture
def http() -> FakeHttp:
    return FakeHttp()


@pytest.fixture
def http_client(http: FakeHttp) -> Iterator[httpx.Client]:
    client = httpx.Client(transport=http.transport)
    yield client
    client.close()


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def context(
    config: SyncConfig, store: InMemoryStore, http_client: httpx.Client
) -> ControllerContext:
    """Provide a ControllerContext wired to the in-memory store and fake HTTP."""
    return ControllerContext(config=config, store=store, http_client=http_client)


@pytest.fixture
def make_resource() -> Callable[..., PluginResource]:
    """Factory fixture: build a PluginResource with sensible defaults.

    Pass ``url=`` for an HTTP source, otherwise inline ``data`` is used.
    """

    def _factory(
        name: str = "worldedit",
        namespace: str = "survival",
        *,
        url: str | None = None,
        data: bytes | None = None,
        timeout_seconds: int = 60,
        expected_checksum: int | None = None,
        **overrides: Any,
    ) -> PluginResource:
        if url is not None:
            source = PluginSource(http=HttpSource(url=url, timeout_seconds=timeout_seconds))
        else:
            source = PluginSource(data=data if data is not None else b"phar-bytes")
        defaults: dict[str, Any] = {
            "namespace": namespace,
            "name": name,
            "spec": PluginSpec(source=source),
            "status": PluginStatus(expected_checksum=expected_checksum),
        }
        defaults.update(overrides)
        return PluginResource(**defaults)

    return _factory


@pytest.fixture
def eventually() -> Callable[..., bool]:
    """Provide ``wait_until(predicate, timeout=5.0)`` for threaded tests."""
    return wait_until
