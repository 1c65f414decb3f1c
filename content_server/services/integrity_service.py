"""
Integrity Service - checksum and compressed size of one asset
"""

import zlib
from pathlib import Path
from typing import Tuple

import anyio

from content_server.schemas.manifest import ManifestEntry
from content_server.services.discovery_service import relative_name

CHUNK_SIZE = 65536

# CRC-32 initial value; zlib.crc32(b"") == 0
CRC32_SEED = 0

# gzip framing (header + trailer), matching what clients are sent by the
# compression middleware
GZIP_WBITS = zlib.MAX_WBITS | 16


class IntegrityAccumulator:
    """
    Two independent folds over one ordered chunk sequence: a running CRC-32
    of the raw bytes and the number of bytes a gzip encoder emits for them.
    """

    def __init__(self):
        self._crc = CRC32_SEED
        self._encoder = zlib.compressobj(zlib.Z_DEFAULT_COMPRESSION, zlib.DEFLATED, GZIP_WBITS)
        self._compressed = 0
        self._size = 0
        self._finalized = False

    @property
    def size(self) -> int:
        """Raw bytes consumed so far"""
        return self._size

    def update(self, chunk: bytes) -> None:
        if self._finalized:
            raise RuntimeError("accumulator already finalized")
        self._crc = zlib.crc32(chunk, self._crc)
        self._compressed += len(self._encoder.compress(chunk))
        self._size += len(chunk)

    def finalize(self) -> Tuple[int, int]:
        """Flush the encoder and return (checksum, compressed_size)."""
        if self._finalized:
            raise RuntimeError("accumulator already finalized")
        self._finalized = True
        self._compressed += len(self._encoder.flush())
        return self._crc & 0xFFFFFFFF, self._compressed


def checksum_bytes(data: bytes) -> int:
    """CRC-32 of an in-memory buffer, same convention as the manifest."""
    return zlib.crc32(data, CRC32_SEED) & 0xFFFFFFFF


def _digest_file_sync(file_path: Path) -> Tuple[int, int]:
    """
    Synchronous streaming digest.
    Intended to be run in a thread to avoid blocking the event loop.
    """
    acc = IntegrityAccumulator()
    with open(file_path, "rb") as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
            acc.update(chunk)
    return acc.finalize()


async def digest_file(file_path: Path, root: Path, limiter: anyio.CapacityLimiter | None = None) -> ManifestEntry:
    """
    Build the manifest entry of one file.

    Args:
        file_path (Path): Absolute path of the asset
        root (Path): Content root the entry name is relative to
        limiter (CapacityLimiter, Optional): Bounds how many files are digested at once

    Returns:
        ManifestEntry: name, checksum and compressed size

    Raises:
        OSError: if the file cannot be read to the end
    """
    checksum, compressed = await anyio.to_thread.run_sync(_digest_file_sync, Path(file_path), limiter=limiter)
    return ManifestEntry(
        name=relative_name(file_path, root),
        checksum=checksum,
        compressed_size=compressed,
    )
