"""pharsync data models — all Pydantic v2, all frozen (immutable)."""

from pharsync.models.events import EventKind, StoreEvent
from pharsync.models.plugin import (
    MAX_CHECKSUM,
    DependencyPolicy,
    HttpSource,
    Identity,
    PluginResource,
    PluginSource,
    PluginSpec,
    PluginStatus,
)

__all__ = [
    # plugin
    "Identity",
    "DependencyPolicy",
    "HttpSource",
    "PluginSource",
    "PluginSpec",
    "PluginStatus",
    "PluginResource",
    "MAX_CHECKSUM",
    # events
    "EventKind",
    "StoreEvent",
]
