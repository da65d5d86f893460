"""The reconcile control loop.

State machine::

    STARTING -> WAITING_FOR_SYNC -> INITIAL_RECONCILE -> STEADY_STATE -> STOPPED

- WAITING_FOR_SYNC polls ``store.has_synced()`` with bounded exponential
  backoff.  Exhausting the bound is logged and the loop carries on.
- INITIAL_RECONCILE lists every resource and reconciles them as one batch,
  so the mount path converges even if no event ever arrives.  A failing
  listing is fatal (``InitialListError``).
- STEADY_STATE waits for a coalesced wake-up, drains the pending set and
  reconciles it as one batch.  The batch is joined before the next drain:
  at most one batch is in flight and an identity is never reconciled by
  two tasks at once.
- A stop request is only observed between batches; an in-flight batch
  always runs to completion.
"""

from __future__ import annotations

import logging
import threading
from collections import Counter
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor, as_completed
from enum import Enum
from typing import TYPE_CHECKING

from tenacity import RetryCallState, Retrying, retry_if_result, stop_after_attempt, wait_exponential

from pharsync.core.coalescer import ChangeCoalescer
from pharsync.core.syncer import SyncOutcome
from pharsync.models.plugin import Identity
from pharsync.store.base import StoreError

if TYPE_CHECKING:
    from pharsync.runtime import ControllerContext

logger = logging.getLogger(__name__)


class SchedulerState(str, Enum):
    """Lifecycle phase of the control loop."""

    STARTING = "starting"
    WAITING_FOR_SYNC = "waiting_for_sync"
    INITIAL_RECONCILE = "initial_reconcile"
    STEADY_STATE = "steady_state"
    STOPPED = "stopped"


class InitialListError(RuntimeError):
    """Raised when the startup listing of the store fails."""


class ReconcileScheduler:
    """Drives ``ArtifactSyncer`` from store notifications.

    Subscribes the coalescer to the context's store on construction, so no
    notification between construction and ``run()`` is missed.

    Parameters
    ----------
    context:
        Provides the store, the syncer and the loop tuning knobs.
    coalescer:
        Pending-change set.  A fresh one is created if not given.
    """

    def __init__(
        self,
        context: ControllerContext,
        *,
        coalescer: ChangeCoalescer | None = None,
    ) -> None:
        self._context = context
        self._coalescer = coalescer or ChangeCoalescer()
        self._stop = threading.Event()
        self._state = SchedulerState.STARTING
        context.store.subscribe(self._coalescer.on_event)

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def coalescer(self) -> ChangeCoalescer:
        return self._coalescer

    def stop(self) -> None:
        """Request shutdown; honoured between batches."""
        self._stop.set()

    @property
    def stop_requested(self) -> bool:
        return self._stop.is_set()

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------

    def run(self) -> None:
        """Run until ``stop()`` is called.

        Raises ``InitialListError`` if the startup listing fails.
        """
        if self._state is not SchedulerState.STARTING:
            raise RuntimeError(f"scheduler cannot run from state {self._state.value}")

        try:
            self._state = SchedulerState.WAITING_FOR_SYNC
            if not self.wait_for_sync() and not self._stop.is_set():
                logger.warning("Store has not reported initial sync; reconciling anyway")
            if self._stop.is_set():
                return

            self._state = SchedulerState.INITIAL_RECONCILE
            self.reconcile_initial()

            self._state = SchedulerState.STEADY_STATE
            poll = self._context.config.wakeup_poll_seconds
            while not self._stop.is_set():
                if not self._coalescer.wait(poll) or self._stop.is_set():
                    continue
                identities = self._coalescer.drain()
                if identities:
                    self.reconcile_batch(identities)
        finally:
            self._state = SchedulerState.STOPPED
            logger.info("Reconcile loop stopped")

    def wait_for_sync(self) -> bool:
        """Poll the store's sync flag with bounded backoff.

        Returns the last observed flag.  Backoff sleeps end early on stop.
        """
        config = self._context.config
        store = self._context.store

        def _log_wait(retry_state: RetryCallState) -> None:
            logger.info("Waiting for initial sync (attempt %d)", retry_state.attempt_number)

        retrying = Retrying(
            stop=stop_after_attempt(config.sync_wait_attempts),
            wait=wait_exponential(
                multiplier=config.sync_wait_initial_seconds,
                exp_base=config.sync_wait_factor,
            ),
            retry=retry_if_result(lambda synced: not synced and not self._stop.is_set()),
            sleep=self._stop.wait,
            before_sleep=_log_wait,
            retry_error_callback=lambda retry_state: retry_state.outcome.result(),
        )
        return retrying(store.has_synced)

    # ------------------------------------------------------------------
    # Batches
    # ------------------------------------------------------------------

    def reconcile_initial(self) -> dict[Identity, SyncOutcome]:
        """Reconcile every resource currently in the store."""
        try:
            resources = self._context.store.list()
        except StoreError as exc:
            raise InitialListError(f"failed to list plugins: {exc}") from exc
        return self.reconcile_batch(r.identity for r in resources)

    def reconcile_batch(self, identities: Iterable[Identity]) -> dict[Identity, SyncOutcome]:
        """Reconcile *identities* concurrently and wait for all of them.

        One task per identity (optionally capped by ``max_workers``).  A
        task that raises is logged and recorded as ``FAILED`` without
        affecting the rest of the batch.
        """
        batch = sorted(set(identities), key=str)
        logger.info("Reconciling %d plugins", len(batch))
        results: dict[Identity, SyncOutcome] = {}
        if not batch:
            return results

        syncer = self._context.syncer
        max_workers = self._context.config.max_workers or len(batch)
        with ThreadPoolExecutor(
            max_workers=min(max_workers, len(batch)),
            thread_name_prefix="pharsync-sync",
        ) as executor:
            futures = {executor.submit(syncer.reconcile, identity): identity for identity in batch}
            for future in as_completed(futures):
                identity = futures[future]
                try:
                    results[identity] = future.result()
                except Exception:  # noqa: BLE001
                    logger.exception("Unexpected error reconciling plugin %s", identity)
                    results[identity] = SyncOutcome.FAILED

        counts = Counter(outcome.value for outcome in results.values())
        logger.info(
            "Reconciliation complete: %s",
            ", ".join(f"{count} {name}" for name, count in sorted(counts.items())),
        )
        return results
