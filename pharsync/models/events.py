"""Store change notifications."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict

from pharsync.models.plugin import Identity, PluginResource


class EventKind(str, Enum):
    """What happened to a resource in the store."""

    ADDED = "Added"
    UPDATED = "Updated"
    DELETED = "Deleted"


class StoreEvent(BaseModel):
    """A single watch notification.

    Consumers that only care *which* resource changed should read
    ``identity`` and ignore ``kind``.
    """

    model_config = ConfigDict(frozen=True)

    kind: EventKind
    resource: PluginResource

    @property
    def identity(self) -> Identity:
        return self.resource.identity
