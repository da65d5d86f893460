"""Persistent desired-state store backed by SQLite.

Design:
- One row per plugin, keyed by ``(namespace, name)``.
- ``resource_version`` is the optimistic-concurrency token; writes use
  ``UPDATE ... WHERE resource_version = ?`` so that two writers racing on
  the same row cannot both win.
- WAL journal mode so the controller can read while the CLI writes.
- A row that no longer validates (hand edits, an older schema) is skipped by
  ``list()`` with an error log and raises ``InvalidRecordError`` from ``get()``.
- Watch events come from a poller thread that diffs version snapshots,
  the way an informer would.  Writes made through this object are *not*
  published directly; they show up on the next poll like anyone else's.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from pathlib import Path

from pydantic import ValidationError

from pharsync.models.events import EventKind, StoreEvent
from pharsync.models.plugin import Identity, PluginResource, PluginSpec, PluginStatus
from pharsync.store.base import (
    ConflictError,
    EventHandler,
    InvalidRecordError,
    NotFoundError,
    StoreError,
    SubscriberList,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# DDL
# ---------------------------------------------------------------------------

_CREATE_PLUGINS = """
CREATE TABLE IF NOT EXISTS plugins (
    namespace        TEXT NOT NULL,
    name             TEXT NOT NULL,
    spec_json        TEXT NOT NULL,
    status_json      TEXT NOT NULL DEFAULT '{}',
    resource_version INTEGER NOT NULL DEFAULT 1,
    PRIMARY KEY (namespace, name)
);
"""

_SELECT_COLUMNS = "namespace, name, spec_json, status_json, resource_version"


class SQLiteStore:
    """SQLite-backed store with a polling watch.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file.  Created if it does not exist.
    poll_interval:
        Seconds between watch polls once ``start()`` has been called.
    """

    def __init__(self, db_path: Path, *, poll_interval: float = 1.0) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._poll_interval = poll_interval
        self._subscribers = SubscriberList()

        # Watch state: last observed resource per identity
        self._snapshot: dict[Identity, PluginResource] = {}
        self._poll_lock = threading.Lock()
        self._synced = threading.Event()
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

        self._init_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0, check_same_thread=False)
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _init_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(_CREATE_PLUGINS)
            conn.commit()

    # ------------------------------------------------------------------
    # DesiredStateStore
    # ------------------------------------------------------------------

    def list(self, namespace: str | None = None) -> list[PluginResource]:
        try:
            with self._connect() as conn:
                if namespace is None:
                    rows = conn.execute(
                        f"SELECT {_SELECT_COLUMNS} FROM plugins ORDER BY namespace, name"
                    ).fetchall()
                else:
                    rows = conn.execute(
                        f"SELECT {_SELECT_COLUMNS} FROM plugins WHERE namespace = ? "
                        "ORDER BY name",
                        (namespace,),
                    ).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"listing plugins failed: {exc}") from exc

        resources: list[PluginResource] = []
        for row in rows:
            try:
                resources.append(self._row_to_resource(row))
            except InvalidRecordError as exc:
                logger.error("Skipping %s", exc)
        return resources

    def get(self, identity: Identity) -> PluginResource:
        try:
            with self._connect() as conn:
                row = conn.execute(
                    f"SELECT {_SELECT_COLUMNS} FROM plugins WHERE namespace = ? AND name = ?",
                    (identity.namespace, identity.name),
                ).fetchone()
        except sqlite3.Error as exc:
            raise StoreError(f"reading plugin {identity} failed: {exc}") from exc
        if row is None:
            raise NotFoundError(identity)
        return self._row_to_resource(row)

    def update(self, resource: PluginResource) -> PluginResource:
        identity = resource.identity
        try:
            with self._connect() as conn:
                cursor = conn.execute(
                    """
                    UPDATE plugins
                       SET spec_json = ?, status_json = ?,
                           resource_version = resource_version + 1
                     WHERE namespace = ? AND name = ? AND resource_version = ?
                    """,
                    (
                        resource.spec.model_dump_json(by_alias=True),
                        resource.status.model_dump_json(by_alias=True),
                        identity.namespace,
                        identity.name,
                        resource.resource_version,
                    ),
                )
                if cursor.rowcount == 0:
                    row = conn.execute(
                        "SELECT resource_version FROM plugins WHERE namespace = ? AND name = ?",
                        (identity.namespace, identity.name),
                    ).fetchone()
                    if row is None:
                        raise NotFoundError(identity)
                    raise ConflictError(identity, resource.resource_version, row[0])
                conn.commit()
        except sqlite3.Error as exc:
            raise StoreError(f"updating plugin {identity} failed: {exc}") from exc
        return resource.model_copy(update={"resource_version": resource.resource_version + 1})

    def subscribe(self, handler: EventHandler) -> None:
        self._subscribers.add(handler)

    def has_synced(self) -> bool:
        return self._synced.is_set()

    # ------------------------------------------------------------------
    # Authoring
    # ------------------------------------------------------------------

    def apply(self, resource: PluginResource) -> PluginResource:
        """Create *resource*, or replace the spec of the existing one.

        The stored status is kept unless *resource* sets ``status``
        explicitly.
        """
        identity = resource.identity
        spec_json = resource.spec.model_dump_json(by_alias=True)
        status_json = resource.status.model_dump_json(by_alias=True)
        explicit_status = "status" in resource.model_fields_set
        try:
            with self._connect() as conn:
                row = conn.execute(
                    "SELECT status_json, resource_version FROM plugins "
                    "WHERE namespace = ? AND name = ?",
                    (identity.namespace, identity.name),
                ).fetchone()
                if row is None:
                    conn.execute(
                        "INSERT INTO plugins (namespace, name, spec_json, status_json) "
                        "VALUES (?, ?, ?, ?)",
                        (identity.namespace, identity.name, spec_json, status_json),
                    )
                    version = 1
                else:
                    if not explicit_status:
                        status_json = row[0]
                    version = row[1] + 1
                    conn.execute(
                        "UPDATE plugins SET spec_json = ?, status_json = ?, "
                        "resource_version = ? WHERE namespace = ? AND name = ?",
                        (spec_json, status_json, version, identity.namespace, identity.name),
                    )
                conn.commit()
        except sqlite3.Error as exc:
            raise StoreError(f"applying plugin {identity} failed: {exc}") from exc
        return resource.model_copy(
            update={
                "status": PluginStatus.model_validate_json(status_json),
                "resource_version": version,
            }
        )

    def delete(self, identity: Identity) -> None:
        """Remove the resource; raise ``NotFoundError`` if absent."""
        try:
            with self._connect() as conn:
                cursor = conn.execute(
                    "DELETE FROM plugins WHERE namespace = ? AND name = ?",
                    (identity.namespace, identity.name),
                )
                conn.commit()
        except sqlite3.Error as exc:
            raise StoreError(f"deleting plugin {identity} failed: {exc}") from exc
        if cursor.rowcount == 0:
            raise NotFoundError(identity)

    # ------------------------------------------------------------------
    # Watch
    # ------------------------------------------------------------------

    def poll_once(self) -> list[StoreEvent]:
        """Diff the table against the last snapshot and publish the changes.

        The first successful poll reports every row as ``Added`` and marks
        the store as synced.
        """
        with self._poll_lock:
            current = {r.identity: r for r in self.list()}
            events: list[StoreEvent] = []
            for identity, resource in current.items():
                previous = self._snapshot.get(identity)
                if previous is None:
                    events.append(StoreEvent(kind=EventKind.ADDED, resource=resource))
                elif previous.resource_version != resource.resource_version:
                    events.append(StoreEvent(kind=EventKind.UPDATED, resource=resource))
            for identity, resource in self._snapshot.items():
                if identity not in current:
                    events.append(StoreEvent(kind=EventKind.DELETED, resource=resource))
            self._snapshot = current
            self._synced.set()

        for event in events:
            self._subscribers.publish(event)
        return events

    def start(self) -> None:
        """Start the background poller thread (idempotent)."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._poll_loop, name="pharsync-store-watch", daemon=True
        )
        self._thread.start()

    def close(self) -> None:
        """Stop the watch; connections are per call, so nothing else is held."""
        self.stop()

    def stop(self, timeout: float | None = None) -> None:
        """Stop the poller thread and wait for it to exit."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _poll_loop(self) -> None:
        while not self._stop.is_set():
            try:
                self.poll_once()
            except StoreError as exc:
                logger.error("Store watch poll failed: %s", exc)
            except Exception:  # noqa: BLE001
                logger.exception("Unexpected error in store watch poll")
            self._stop.wait(self._poll_interval)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_resource(row: tuple) -> PluginResource:
        namespace, name, spec_json, status_json, resource_version = row
        try:
            return PluginResource(
                namespace=namespace,
                name=name,
                spec=PluginSpec.model_validate_json(spec_json),
                status=PluginStatus.model_validate_json(status_json),
                resource_version=resource_version,
            )
        except ValidationError as exc:
            raise InvalidRecordError(
                namespace, name, f"{exc.error_count()} validation error(s)"
            ) from exc
