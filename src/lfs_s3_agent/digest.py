"""
Content digests for LFS objects.

Objects are identified by the SHA-256 of their full content, the same scheme
Git LFS uses for oids. Hashing always streams in fixed-size chunks so large
objects are never held in memory.
"""
from __future__ import annotations

import hashlib
import re
from pathlib import Path
from typing import IO, Iterable, Union

from .errors import DigestError

__all__ = ["CHUNK_SIZE", "HashingReader", "digest_stream", "digest_file", "is_digest"]

CHUNK_SIZE = 1024 * 1024  # 1 MiB

ByteStream = Union[IO[bytes], Iterable[bytes]]

_DIGEST_RE = re.compile(r"[a-f0-9]{64}")


def is_digest(value: str) -> bool:
    """Return True if value looks like a SHA-256 hex digest (64 lowercase hex chars)."""
    return bool(_DIGEST_RE.fullmatch(value or ""))


class HashingReader:
    """
    Read-through wrapper that hashes and counts bytes as they pass.

    Lets a caller copy a stream somewhere else and learn its digest in the
    same pass. Errors from the wrapped stream propagate unchanged.
    """

    def __init__(self, stream: IO[bytes]) -> None:
        self._stream = stream
        self._hash = hashlib.sha256()
        self.size = 0

    def read(self, size: int = -1) -> bytes:
        chunk = self._stream.read(size)
        if chunk:
            self._hash.update(chunk)
            self.size += len(chunk)
        return chunk

    def hexdigest(self) -> str:
        return self._hash.hexdigest()


def digest_stream(stream: ByteStream) -> str:
    """
    Hash a byte stream to completion.

    Args:
        stream: File-like object with read() or iterable of byte chunks

    Returns:
        Lowercase hex SHA-256 digest

    Raises:
        DigestError: If reading the stream fails
    """
    try:
        if hasattr(stream, "read"):
            reader = HashingReader(stream)
            while reader.read(CHUNK_SIZE):
                pass
            return reader.hexdigest()

        hash_obj = hashlib.sha256()
        for chunk in stream:
            hash_obj.update(chunk)
        return hash_obj.hexdigest()
    except OSError as e:
        raise DigestError(f"Failed to read content for hashing: {e}") from e


def digest_file(path: Path | str) -> str:
    """
    Hash a local file.

    Raises:
        DigestError: If the file cannot be opened or read
    """
    try:
        with open(path, "rb") as f:
            return digest_stream(f)
    except OSError as e:
        raise DigestError(f"Failed to hash file {str(path)!r}: {e}") from e
