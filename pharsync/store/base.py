"""The desired-state store boundary.

Defines the ``DesiredStateStore`` Protocol the sync core depends on, the
error family every backend raises, and a small ``SubscriberList`` helper the
backends share for fanning watch events out to subscribers.

Backends:

1. **InMemoryStore** — process-local, events emitted synchronously on write.
2. **SQLiteStore** — persistent, events emitted by an informer-style poller
   so that writes from other processes are observed too.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Protocol, runtime_checkable

from pharsync.models.events import StoreEvent
from pharsync.models.plugin import Identity, PluginResource

logger = logging.getLogger(__name__)

EventHandler = Callable[[StoreEvent], None]


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class StoreError(RuntimeError):
    """Raised when a store operation fails."""


class NotFoundError(StoreError):
    """Raised when the requested resource does not exist."""

    def __init__(self, identity: Identity) -> None:
        super().__init__(f"plugin {identity} not found")
        self.identity = identity


class InvalidRecordError(StoreError):
    """Raised when a stored record does not validate as a plugin resource."""

    def __init__(self, namespace: str, name: str, detail: str) -> None:
        super().__init__(f"stored plugin {namespace}/{name} is invalid: {detail}")
        self.namespace = namespace
        self.name = name


class ConflictError(StoreError):
    """Raised when an optimistic write loses against a concurrent writer."""

    def __init__(self, identity: Identity, expected: int, actual: int) -> None:
        super().__init__(
            f"plugin {identity} was modified concurrently "
            f"(resourceVersion {expected} != {actual})"
        )
        self.identity = identity
        self.expected = expected
        self.actual = actual


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class DesiredStateStore(Protocol):
    """What the sync core needs from the system of record."""

    def list(self, namespace: str | None = None) -> list[PluginResource]:
        """Return every resource, optionally restricted to one namespace."""
        ...

    def get(self, identity: Identity) -> PluginResource:
        """Return the resource or raise ``NotFoundError``."""
        ...

    def update(self, resource: PluginResource) -> PluginResource:
        """Optimistic write keyed on ``resource_version``.

        Raises ``ConflictError`` if the stored version differs and
        ``NotFoundError`` if the resource is gone.  Returns the stored
        resource with its new version.
        """
        ...

    def subscribe(self, handler: EventHandler) -> None:
        """Register *handler* to receive every subsequent watch event."""
        ...

    def has_synced(self) -> bool:
        """``True`` once the store's initial listing is complete."""
        ...

    def close(self) -> None:
        """Release background resources (watch threads, connections)."""
        ...


# ---------------------------------------------------------------------------
# Shared helper
# ---------------------------------------------------------------------------


class SubscriberList:
    """Thread-safe list of event handlers.

    A handler that raises is logged and skipped; the remaining handlers
    still receive the event and the store write that produced it is not
    affected.
    """

    def __init__(self) -> None:
        self._handlers: list[EventHandler] = []
        self._lock = threading.Lock()

    def add(self, handler: EventHandler) -> None:
        with self._lock:
            self._handlers.append(handler)

    def __len__(self) -> int:
        with self._lock:
            return len(self._handlers)

    def publish(self, event: StoreEvent) -> None:
        with self._lock:
            handlers = list(self._handlers)
        for handler in handlers:
            try:
                handler(event)
            except Exception:  # noqa: BLE001
                logger.exception(
                    "Event handler failed for %s %s", event.kind.value, event.identity
                )
