"""Artifact checksums for change detection.

The fingerprint of an installed plugin is CRC-32 (IEEE) over
``hash_base ++ file_bytes``, where ``hash_base`` is the declared source URL
for HTTP sources and the empty string for inline data.  Salting with the URL
means that editing only the URL invalidates the stored checksum even when
the downloaded bytes turn out identical.
"""

from __future__ import annotations

import zlib
from pathlib import Path

_CHUNK_SIZE = 4096


def checksum_bytes(hash_base: str, data: bytes) -> int:
    """CRC-32 of ``hash_base`` (UTF-8) followed by *data*."""
    return zlib.crc32(data, zlib.crc32(hash_base.encode("utf-8")))


def checksum_file(hash_base: str, path: Path) -> int:
    """CRC-32 of ``hash_base`` followed by the contents of *path*.

    The file is streamed in small chunks.  ``OSError`` propagates to the
    caller.
    """
    crc = zlib.crc32(hash_base.encode("utf-8"))
    with open(path, "rb") as handle:
        while chunk := handle.read(_CHUNK_SIZE):
            crc = zlib.crc32(chunk, crc)
    return crc


def format_checksum(value: int | None) -> str:
    """Render a checksum as 8 hex digits, or ``-`` when absent."""
    return "-" if value is None else f"{value:08x}"
