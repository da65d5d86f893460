"""Materialize a plugin file from its declared source.

Two source kinds:

* **Inline data** — the bytes are written to the destination as-is.
* **HTTP** — a single GET bounded by the source's ``timeout_seconds``.  The
  response status is validated *before* the destination is opened, so a
  non-2xx answer leaves any existing file untouched.

With ``atomic=True`` the body is written to a sibling ``.<hex>.part`` file
and moved onto the destination with ``os.replace``; a failure mid-stream
then leaves the previous file intact instead of a truncated one.
"""

from __future__ import annotations

import logging
import os
import time
import uuid
from collections.abc import Iterable
from pathlib import Path

import httpx

from pharsync.models.plugin import HttpSource, PluginSource

logger = logging.getLogger(__name__)

FILE_MODE = 0o644


class DownloadError(RuntimeError):
    """Raised when a plugin could not be materialized locally."""


class DownloadStatusError(DownloadError):
    """Raised when the HTTP source answers with a non-2xx status."""

    def __init__(self, url: str, status_code: int) -> None:
        super().__init__(f"HTTP request to {url} failed with status code {status_code}")
        self.url = url
        self.status_code = status_code


class DownloadTimeoutError(DownloadError):
    """Raised when the HTTP download exceeds its deadline."""


class InvalidSourceError(DownloadError):
    """Raised when a source declares neither inline data nor an HTTP URL."""


def _create_file(path: str, flags: int) -> int:
    return os.open(path, flags, FILE_MODE)


class Downloader:
    """Writes plugin sources to disk.

    Parameters
    ----------
    client:
        Shared HTTP client.  Its lifetime is owned by the caller.
    atomic:
        Write through a temp file and rename into place.
    """

    def __init__(self, client: httpx.Client, *, atomic: bool = True) -> None:
        self._client = client
        self._atomic = atomic

    def download(self, source: PluginSource, destination: Path) -> None:
        """Materialize *source* at *destination*, overwriting it.

        Raises ``DownloadError`` (or a subclass) on any failure.
        """
        if source.data is not None:
            self._write(destination, [source.data])
            return

        if source.http is not None:
            self._fetch(source.http, destination)
            return

        raise InvalidSourceError("invalid plugin source: neither 'http' nor 'data' is set")

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    def _fetch(self, http: HttpSource, destination: Path) -> None:
        deadline = time.monotonic() + http.timeout_seconds
        try:
            with self._client.stream(
                "GET", http.url, timeout=httpx.Timeout(float(http.timeout_seconds))
            ) as response:
                if not response.is_success:
                    raise DownloadStatusError(http.url, response.status_code)
                self._write(destination, self._body(response, http, deadline))
        except httpx.TimeoutException as exc:
            raise DownloadTimeoutError(
                f"HTTP request to {http.url} timed out after {http.timeout_seconds}s"
            ) from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise DownloadError(f"{exc} during HTTP request to {http.url}") from exc

        logger.debug("Downloaded %s to %s", http.url, destination)

    @staticmethod
    def _body(
        response: httpx.Response, http: HttpSource, deadline: float
    ) -> Iterable[bytes]:
        for chunk in response.iter_bytes():
            if time.monotonic() > deadline:
                raise DownloadTimeoutError(
                    f"HTTP request to {http.url} timed out after {http.timeout_seconds}s"
                )
            yield chunk

    # ------------------------------------------------------------------
    # Filesystem
    # ------------------------------------------------------------------

    def _write(self, destination: Path, chunks: Iterable[bytes]) -> None:
        target = destination
        if self._atomic:
            # Fixed length, so any name that fits as a plugin fits as a temp file.
            target = destination.with_name(f".{uuid.uuid4().hex}.part")

        try:
            with open(target, "wb", opener=_create_file) as handle:
                for chunk in chunks:
                    handle.write(chunk)
            if self._atomic:
                os.replace(target, destination)
        except OSError as exc:
            raise DownloadError(f"{exc} during writing file {destination}") from exc
        finally:
            if self._atomic:
                self._discard(target)

    @staticmethod
    def _discard(path: Path) -> None:
        """Remove a leftover temp file without masking the error in flight."""
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Cannot remove temp file %s: %s", path, exc)
