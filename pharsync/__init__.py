"""pharsync: keep a plugin directory in sync with a desired-state store.

Each declared plugin (HTTP URL or inline bytes) is materialized at
``<mount>/<namespace>/<name>.phar``; its CRC-32 is written back to the
store so other readers can tell it is installed.  Plugins removed from the
store are removed from disk.
"""

__version__ = "0.1.0"
__description__ = "Reconcile a plugin mount directory against a desired-state store"

from pharsync.core.scheduler import ReconcileScheduler
from pharsync.runtime import ControllerContext

__all__ = ["ControllerContext", "ReconcileScheduler", "__version__"]
