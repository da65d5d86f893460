"""Plugin resource models — the unit exchanged with the desired-state store.

Wire form (JSON)::

    {
      "namespace": "survival",
      "name": "worldedit",
      "resourceVersion": 3,
      "spec": {
        "source": {"http": {"url": "https://...", "timeoutSeconds": 60}},
        "dependencyPolicy": "AutoCreate"
      },
      "status": {"expectedChecksum": 2309238741}
    }

Inline ``data`` is base64 on the wire and raw ``bytes`` in Python.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

# DNS-1123 subdomain: the names the store accepts, and the only names that
# cannot escape the mount root when joined into a path.
_DNS_SUBDOMAIN = r"^[a-z0-9]([-a-z0-9.]*[a-z0-9])?$"

MAX_CHECKSUM = 0xFFFFFFFF


class _WireModel(BaseModel):
    """Frozen base with camelCase wire aliases and base64 bytes."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        ser_json_bytes="base64",
        val_json_bytes="base64",
    )


class Identity(_WireModel):
    """The ``{namespace, name}`` pair that uniquely names a plugin."""

    namespace: str = Field(min_length=1, max_length=253, pattern=_DNS_SUBDOMAIN)
    name: str = Field(min_length=1, max_length=253, pattern=_DNS_SUBDOMAIN)

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"

    @classmethod
    def parse(cls, key: str) -> Identity:
        """Parse a ``namespace/name`` key."""
        namespace, sep, name = key.partition("/")
        if not sep:
            raise ValueError(f"Expected 'namespace/name', got {key!r}")
        return cls(namespace=namespace, name=name)


class DependencyPolicy(str, Enum):
    """Behaviour when a plugin has a missing dependency.

    Stored and forwarded only; nothing in the sync core interprets it.
    """

    AUTO_CREATE = "AutoCreate"
    FAIL_ON_MISSING = "FailOnMissing"


class HttpSource(_WireModel):
    """Download the plugin from an HTTP/HTTPS URL."""

    url: str = Field(min_length=1)
    timeout_seconds: int = Field(default=60, gt=0)


class PluginSource(_WireModel):
    """Where the plugin bytes come from: exactly one of ``http`` or ``data``."""

    http: HttpSource | None = None
    data: bytes | None = None

    @model_validator(mode="after")
    def _exactly_one_kind(self) -> PluginSource:
        if (self.http is None) == (self.data is None):
            raise ValueError("source must set exactly one of 'http' or 'data'")
        return self

    @property
    def kind(self) -> str:
        """``"http"``, ``"data"`` or ``"invalid"``."""
        if self.data is not None:
            return "data"
        if self.http is not None:
            return "http"
        return "invalid"

    @property
    def hash_base(self) -> str:
        """Salt mixed into the artifact checksum: the URL, or ``""`` for inline data."""
        return self.http.url if self.http is not None else ""


class PluginSpec(_WireModel):
    """Declared desired state of a plugin."""

    source: PluginSource
    dependency_policy: DependencyPolicy = DependencyPolicy.AUTO_CREATE


class PluginStatus(_WireModel):
    """Observed state written back by the syncer.

    ``expected_checksum`` is absent until some host has installed the plugin.
    Resetting it to absent forces every host to re-download.
    """

    expected_checksum: int | None = Field(default=None, ge=0, le=MAX_CHECKSUM)


class PluginResource(_WireModel):
    """A plugin declaration as held by the desired-state store."""

    namespace: str = Field(min_length=1, max_length=253, pattern=_DNS_SUBDOMAIN)
    name: str = Field(min_length=1, max_length=253, pattern=_DNS_SUBDOMAIN)
    spec: PluginSpec
    status: PluginStatus = PluginStatus()
    resource_version: int = 0

    @property
    def identity(self) -> Identity:
        return Identity(namespace=self.namespace, name=self.name)

    def with_status(self, status: PluginStatus) -> PluginResource:
        """Return a copy carrying *status*, same resource version."""
        return self.model_copy(update={"status": status})

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=2)
