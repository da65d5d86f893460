"""Sync core: checksums, paths, downloads, per-identity sync and the control loop."""

from pharsync.core.coalescer import ChangeCoalescer
from pharsync.core.downloader import (
    DownloadError,
    Downloader,
    DownloadStatusError,
    DownloadTimeoutError,
    InvalidSourceError,
)
from pharsync.core.hasher import checksum_bytes, checksum_file
from pharsync.core.paths import PathResolver
from pharsync.core.scheduler import InitialListError, ReconcileScheduler, SchedulerState
from pharsync.core.syncer import ArtifactSyncer, SyncOutcome

__all__ = [
    "ArtifactSyncer",
    "ChangeCoalescer",
    "Downloader",
    "DownloadError",
    "DownloadStatusError",
    "DownloadTimeoutError",
    "InitialListError",
    "InvalidSourceError",
    "PathResolver",
    "ReconcileScheduler",
    "SchedulerState",
    "SyncOutcome",
    "checksum_bytes",
    "checksum_file",
]
