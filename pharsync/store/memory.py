"""Process-local desired-state store.

Used by tests and by embedders that feed resources from their own source of
truth.  Every write publishes its watch event synchronously, after the store
lock has been released.
"""

from __future__ import annotations

import threading

from pharsync.models.events import EventKind, StoreEvent
from pharsync.models.plugin import Identity, PluginResource
from pharsync.store.base import (
    ConflictError,
    EventHandler,
    NotFoundError,
    SubscriberList,
)


class InMemoryStore:
    """Dict-backed store with optimistic concurrency.

    Parameters
    ----------
    resources:
        Optional initial contents, applied without publishing events.
    """

    def __init__(self, resources: list[PluginResource] | None = None) -> None:
        self._items: dict[Identity, PluginResource] = {}
        self._lock = threading.Lock()
        self._subscribers = SubscriberList()
        for resource in resources or []:
            self._items[resource.identity] = resource.model_copy(
                update={"resource_version": 1}
            )

    # ------------------------------------------------------------------
    # DesiredStateStore
    # ------------------------------------------------------------------

    def list(self, namespace: str | None = None) -> list[PluginResource]:
        with self._lock:
            items = list(self._items.values())
        if namespace is not None:
            items = [r for r in items if r.namespace == namespace]
        return sorted(items, key=lambda r: (r.namespace, r.name))

    def get(self, identity: Identity) -> PluginResource:
        with self._lock:
            try:
                return self._items[identity]
            except KeyError:
                raise NotFoundError(identity) from None

    def update(self, resource: PluginResource) -> PluginResource:
        identity = resource.identity
        with self._lock:
            current = self._items.get(identity)
            if current is None:
                raise NotFoundError(identity)
            if current.resource_version != resource.resource_version:
                raise ConflictError(
                    identity, resource.resource_version, current.resource_version
                )
            stored = resource.model_copy(
                update={"resource_version": current.resource_version + 1}
            )
            self._items[identity] = stored
        self._subscribers.publish(StoreEvent(kind=EventKind.UPDATED, resource=stored))
        return stored

    def subscribe(self, handler: EventHandler) -> None:
        self._subscribers.add(handler)

    def has_synced(self) -> bool:
        return True

    def close(self) -> None:
        pass

    # ------------------------------------------------------------------
    # Authoring
    # ------------------------------------------------------------------

    def apply(self, resource: PluginResource) -> PluginResource:
        """Create *resource*, or replace the spec of the existing one.

        The stored status is kept unless *resource* sets ``status``
        explicitly.
        """
        identity = resource.identity
        with self._lock:
            current = self._items.get(identity)
            if current is None:
                kind = EventKind.ADDED
                stored = resource.model_copy(update={"resource_version": 1})
            else:
                kind = EventKind.UPDATED
                status = (
                    resource.status
                    if "status" in resource.model_fields_set
                    else current.status
                )
                stored = current.model_copy(
                    update={
                        "spec": resource.spec,
                        "status": status,
                        "resource_version": current.resource_version + 1,
                    }
                )
            self._items[identity] = stored
        self._subscribers.publish(StoreEvent(kind=kind, resource=stored))
        return stored

    def delete(self, identity: Identity) -> PluginResource:
        """Remove and return the resource; raise ``NotFoundError`` if absent."""
        with self._lock:
            try:
                removed = self._items.pop(identity)
            except KeyError:
                raise NotFoundError(identity) from None
        self._subscribers.publish(StoreEvent(kind=EventKind.DELETED, resource=removed))
        return removed
