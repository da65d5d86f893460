"""End-to-end: SQLite store watch + reconcile loop + fake HTTP origin.

A second ``SQLiteStore`` on the same database file plays the operator
running ``pharsync apply`` / ``pharsync delete`` from another process.
"""

from __future__ import annotations

import threading
import time
from pathlib import Path

import pytest

from pharsync.core.hasher import checksum_bytes
from pharsync.core.scheduler import ReconcileScheduler, SchedulerState
from pharsync.models.plugin import PluginResource
from pharsync.runtime import ControllerContext
from pharsync.store.sqlite import SQLiteStore

URL = "https://plugins.example.org/essentials.phar"


@pytest.fixture
def operator(config) -> SQLiteStore:
    return SQLiteStore(config.store_path)


@pytest.fixture
def controller(config, http_client):
    """Start the store watch and the reconcile loop; stop both afterwards."""
    store = SQLiteStore(config.store_path, poll_interval=config.store_poll_interval_seconds)
    context = ControllerContext(config=config, store=store, http_client=http_client)
    scheduler = ReconcileScheduler(context)
    store.start()
    thread = threading.Thread(target=scheduler.run, daemon=True)
    thread.start()
    yield scheduler
    scheduler.stop()
    thread.join(timeout=5.0)
    context.close()
    assert not thread.is_alive()


class TestController:
    def test_existing_declarations_are_installed_at_startup(
        self, operator, http, make_resource, mount_path: Path, eventually, request
    ):
        http.serve(URL, b"essentials build 1")
        operator.apply(make_resource(name="worldedit", data=b"we"))
        operator.apply(make_resource(name="essentials", namespace="lobby", url=URL))

        scheduler = request.getfixturevalue("controller")

        assert eventually(lambda: scheduler.state is SchedulerState.STEADY_STATE)
        assert eventually(lambda: (mount_path / "lobby" / "essentials.phar").exists())
        assert (mount_path / "survival" / "worldedit.phar").read_bytes() == b"we"
        assert eventually(
            lambda: [r.status.expected_checksum for r in operator.list()]
            == [checksum_bytes(URL, b"essentials build 1"), checksum_bytes("", b"we")]
        )

    def test_follows_apply_update_and_delete(
        self, controller, operator, http, make_resource, mount_path: Path, eventually
    ):
        path = mount_path / "lobby" / "essentials.phar"
        http.serve(URL, b"build 1")
        assert eventually(lambda: controller.state is SchedulerState.STEADY_STATE)

        resource = operator.apply(make_resource(name="essentials", namespace="lobby", url=URL))
        assert eventually(lambda: path.exists() and path.read_bytes() == b"build 1")

        # New build at the same URL: the operator clears the checksum to force a pull.
        http.serve(URL, b"build 2")
        operator.apply(make_resource(name="essentials", namespace="lobby", url=URL))
        assert eventually(lambda: path.read_bytes() == b"build 2")

        operator.delete(resource.identity)
        assert eventually(lambda: not path.exists())

    def test_in_sync_plugins_are_not_refetched(
        self, controller, operator, http, make_resource, eventually
    ):
        http.serve(URL, b"build 1")
        identity = operator.apply(
            make_resource(name="essentials", namespace="lobby", url=URL)
        ).identity
        assert eventually(lambda: operator.get(identity).status.expected_checksum is not None)
        fetched = len(http.requests)

        # A spec-only re-apply bumps the version but keeps the recorded checksum.
        current = operator.get(identity)
        operator.apply(
            PluginResource(namespace=current.namespace, name=current.name, spec=current.spec)
        )
        # Give the loop a few watch intervals to pick the change up.
        time.sleep(0.2)

        assert len(http.requests) == fetched

    def test_failing_origin_leaves_other_plugins_alone(
        self, controller, operator, make_resource, mount_path: Path, eventually
    ):
        operator.apply(
            make_resource(name="broken", url="https://plugins.example.org/missing.phar")
        )
        operator.apply(make_resource(name="worldedit", data=b"we"))

        assert eventually(lambda: (mount_path / "survival" / "worldedit.phar").exists())
        assert not (mount_path / "survival" / "broken.phar").exists()
