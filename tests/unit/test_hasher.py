"""Tests for artifact checksums — CRC-32 over hash base plus file bytes."""

from __future__ import annotations

import zlib
from pathlib import Path

import pytest

from pharsync.core.hasher import checksum_bytes, checksum_file, format_checksum


class TestChecksumBytes:
    def test_empty_hash_base_is_plain_crc32(self):
        assert checksum_bytes("", b"abc") == zlib.crc32(b"abc") == 0x352441C2

    def test_hash_base_is_prepended(self):
        url = "https://example.org/plugin.phar"
        assert checksum_bytes(url, b"abc") == zlib.crc32(url.encode() + b"abc")

    def test_url_change_changes_checksum_for_same_bytes(self):
        data = b"identical plugin bytes"
        a = checksum_bytes("https://mirror-a.example.org/p.phar", data)
        b = checksum_bytes("https://mirror-b.example.org/p.phar", data)
        assert a != b

    def test_result_fits_uint32(self):
        assert 0 <= checksum_bytes("base", b"\xff" * 100) <= 0xFFFFFFFF


class TestChecksumFile:
    def test_matches_checksum_bytes(self, tmp_path: Path):
        data = bytes(range(256)) * 64  # spans several read chunks
        path = tmp_path / "p.phar"
        path.write_bytes(data)
        assert checksum_file("https://x/p.phar", path) == checksum_bytes("https://x/p.phar", data)

    def test_empty_file(self, tmp_path: Path):
        path = tmp_path / "empty.phar"
        path.write_bytes(b"")
        assert checksum_file("", path) == 0

    def test_missing_file_raises(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            checksum_file("", tmp_path / "missing.phar")


class TestFormatChecksum:
    def test_absent(self):
        assert format_checksum(None) == "-"

    def test_zero_padded_hex(self):
        assert format_checksum(0x1A) == "0000001a"
