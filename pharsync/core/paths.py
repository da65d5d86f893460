"""Filesystem layout for installed plugins.

Layout: {mount_path}/{namespace}/{name}.phar
"""

from __future__ import annotations

import logging
from pathlib import Path

from pharsync.models.plugin import Identity

logger = logging.getLogger(__name__)

PLUGIN_SUFFIX = ".phar"
NAMESPACE_DIR_MODE = 0o755


class PathResolver:
    """Maps identities to file paths under the mount root.

    Parameters
    ----------
    mount_path:
        Root directory that holds one subdirectory per namespace.
    """

    def __init__(self, mount_path: Path) -> None:
        self._root = Path(mount_path)

    @property
    def root(self) -> Path:
        return self._root

    def namespace_dir(self, namespace: str) -> Path:
        return self._root / namespace

    def path_for(self, identity: Identity) -> Path:
        """Compute the plugin path without touching the filesystem."""
        return self.namespace_dir(identity.namespace) / f"{identity.name}{PLUGIN_SUFFIX}"

    def resolve(self, identity: Identity) -> Path:
        """Return the plugin path, creating the namespace directory if absent.

        A creation failure other than "already exists" is logged and the
        directory is assumed usable; any real problem surfaces on write.
        """
        directory = self.namespace_dir(identity.namespace)
        try:
            directory.mkdir(mode=NAMESPACE_DIR_MODE)
        except FileExistsError:
            pass
        except OSError as exc:
            logger.error("Error creating namespace directory %s: %s", directory, exc)
        return self.path_for(identity)
