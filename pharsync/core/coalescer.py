"""Coalesce bursts of store notifications into single wake-ups.

Producers (store watch callbacks, any number of threads) call ``notify``;
the one consumer (the scheduler loop) calls ``wait`` then ``drain``.

- The pending set is never lossy: every notified identity is returned by
  exactly one later ``drain``.
- Repeated notifications for the same identity between drains collapse
  into one entry.
- The wake-up is a single level-triggered slot.  Notifying while a wake-up
  is already outstanding does not queue another one, and ``notify`` never
  blocks on the consumer.
"""

from __future__ import annotations

import threading

from pharsync.models.events import StoreEvent
from pharsync.models.plugin import Identity


class ChangeCoalescer:
    """Pending identity set plus a single-slot wake-up signal."""

    def __init__(self) -> None:
        self._pending: set[Identity] = set()
        self._lock = threading.Lock()
        self._wakeup = threading.Event()

    # ------------------------------------------------------------------
    # Producer side
    # ------------------------------------------------------------------

    def notify(self, identity: Identity) -> None:
        """Record *identity* as changed and make sure a wake-up is pending."""
        with self._lock:
            self._pending.add(identity)
            self._wakeup.set()

    def on_event(self, event: StoreEvent) -> None:
        """Store subscription adapter; the event kind is irrelevant here."""
        self.notify(event.identity)

    # ------------------------------------------------------------------
    # Consumer side (single consumer)
    # ------------------------------------------------------------------

    def wait(self, timeout: float | None = None) -> bool:
        """Block until a wake-up is pending, then consume it.

        Returns ``False`` if *timeout* elapsed without a wake-up.
        """
        if not self._wakeup.wait(timeout):
            return False
        self._wakeup.clear()
        return True

    def drain(self) -> set[Identity]:
        """Atomically take and return every pending identity."""
        with self._lock:
            pending, self._pending = self._pending, set()
        return pending

    def __len__(self) -> int:
        with self._lock:
            return len(self._pending)

    @property
    def wakeup_pending(self) -> bool:
        return self._wakeup.is_set()
