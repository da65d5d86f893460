"""Per-identity reconciliation: skip, download, or delete.

``ArtifactSyncer.reconcile(identity)`` compares the local file for one
identity with its declaration in the store and takes the minimal corrective
action:

1. Resource gone from the store: remove the local file if present.
2. Local file present and ``checksum(hash_base + bytes)`` equals the stored
   ``expected_checksum``: nothing to do, no network call, no store write.
3. Otherwise: download, recompute the checksum and write it back to the
   store's status if it changed.

Every failure is logged and ends the attempt for this identity only; the
next change notification (or restart) retries it.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path

from pharsync.core.downloader import DownloadError, Downloader
from pharsync.core.hasher import checksum_file, format_checksum
from pharsync.core.paths import PathResolver
from pharsync.models.plugin import Identity, PluginResource, PluginStatus
from pharsync.store.base import (
    ConflictError,
    DesiredStateStore,
    NotFoundError,
    StoreError,
)

logger = logging.getLogger(__name__)


class SyncOutcome(str, Enum):
    """What a single reconcile did."""

    IN_SYNC = "in_sync"
    DOWNLOADED = "downloaded"
    REMOVED = "removed"
    ABSENT = "absent"
    FAILED = "failed"


def _file_exists(path: Path) -> bool:
    """``Path.exists`` that lets stat errors other than ENOENT propagate."""
    try:
        path.stat()
    except FileNotFoundError:
        return False
    return True


class ArtifactSyncer:
    """Reconciles one plugin identity at a time.

    Instances hold no per-identity state, so one syncer can serve many
    concurrent reconciles of *different* identities.

    Parameters
    ----------
    store:
        The desired-state store.
    downloader:
        Materializes plugin sources on disk.
    paths:
        Maps identities to file paths.
    """

    def __init__(
        self,
        store: DesiredStateStore,
        downloader: Downloader,
        paths: PathResolver,
    ) -> None:
        self._store = store
        self._downloader = downloader
        self._paths = paths

    def reconcile(self, identity: Identity) -> SyncOutcome:
        path = self._paths.resolve(identity)

        try:
            resource = self._store.get(identity)
        except NotFoundError:
            return self._remove(identity, path)
        except StoreError as exc:
            logger.error("Error fetching plugin %s from store: %s", identity, exc)
            return SyncOutcome.FAILED

        return self._sync(resource, path)

    # ------------------------------------------------------------------
    # Delete path
    # ------------------------------------------------------------------

    def _remove(self, identity: Identity, path: Path) -> SyncOutcome:
        try:
            exists = _file_exists(path)
        except OSError as exc:
            logger.error("Cannot stat file %s: %s", path, exc)
            exists = True  # attempt the unlink anyway

        if not exists:
            return SyncOutcome.ABSENT

        try:
            path.unlink()
        except FileNotFoundError:
            return SyncOutcome.ABSENT
        except OSError as exc:
            logger.error("Error unlinking plugin %s from %s: %s", identity, path, exc)
            return SyncOutcome.FAILED

        logger.info("Removed plugin %s from %s", identity, path)
        return SyncOutcome.REMOVED

    # ------------------------------------------------------------------
    # Download path
    # ------------------------------------------------------------------

    def _sync(self, resource: PluginResource, path: Path) -> SyncOutcome:
        identity = resource.identity
        source = resource.spec.source
        hash_base = source.hash_base
        expected = resource.status.expected_checksum

        try:
            exists = _file_exists(path)
        except OSError as exc:
            logger.error("Cannot stat file %s: %s", path, exc)
            exists = False

        if exists and expected is not None:
            try:
                current = checksum_file(hash_base, path)
            except OSError as exc:
                logger.error("Cannot calculate checksum of file %s: %s", path, exc)
            else:
                if current == expected:
                    logger.debug("Plugin %s is in sync (%s)", identity, format_checksum(current))
                    return SyncOutcome.IN_SYNC

        try:
            self._downloader.download(source, path)
        except DownloadError as exc:
            logger.error("Error downloading plugin %s: %s", identity, exc)
            return SyncOutcome.FAILED

        try:
            checksum = checksum_file(hash_base, path)
        except OSError as exc:
            logger.error("Cannot calculate checksum of file %s: %s", path, exc)
            return SyncOutcome.FAILED

        logger.info(
            "Downloaded plugin %s to %s (%s)", identity, path, format_checksum(checksum)
        )

        if checksum != expected:
            self._write_status(resource, checksum)

        return SyncOutcome.DOWNLOADED

    def _write_status(self, resource: PluginResource, checksum: int) -> None:
        """Record *checksum* as the expected checksum.

        A conflict means another writer advanced the resource first; the
        spec may have changed with it, so the write is dropped rather than
        retried.  The resulting watch event brings the identity back.
        """
        updated = resource.with_status(PluginStatus(expected_checksum=checksum))
        try:
            self._store.update(updated)
        except ConflictError:
            logger.debug("Status write for %s lost to a concurrent update", resource.identity)
        except StoreError as exc:
            logger.error("Cannot update plugin %s: %s", resource.identity, exc)
