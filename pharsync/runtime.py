"""Controller context — the process-wide collaborators, built once.

The context owns the HTTP client and the store and is passed by reference
into the scheduler and the syncer; nothing is held in module globals.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import httpx

from pharsync.config import SyncConfig
from pharsync.core.downloader import Downloader
from pharsync.core.paths import PathResolver
from pharsync.core.syncer import ArtifactSyncer
from pharsync.store.base import DesiredStateStore


def create_http_client(config: SyncConfig, **kwargs) -> httpx.Client:
    """Build the shared HTTP client.

    Per-request timeouts come from each plugin source, so the client itself
    carries none.  Extra keyword arguments (e.g. ``transport``) are passed to
    ``httpx.Client``.
    """
    return httpx.Client(
        headers={"User-Agent": config.user_agent},
        follow_redirects=config.follow_redirects,
        timeout=None,
        **kwargs,
    )


@dataclass
class ControllerContext:
    """Everything the control loop needs, constructed once per process."""

    config: SyncConfig
    store: DesiredStateStore
    http_client: httpx.Client
    paths: PathResolver = field(init=False)
    syncer: ArtifactSyncer = field(init=False)

    def __post_init__(self) -> None:
        self.paths = PathResolver(self.config.mount_path)
        self.syncer = ArtifactSyncer(
            self.store,
            Downloader(self.http_client, atomic=self.config.atomic_writes),
            self.paths,
        )

    def close(self) -> None:
        """Close the store and the HTTP client."""
        self.store.close()
        self.http_client.close()

    def __enter__(self) -> ControllerContext:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
