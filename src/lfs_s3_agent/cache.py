"""
Hash-sharded local object cache.

Layout::

    <cache-root>/<oid[:prefix_length]>/<object-name>   committed objects
    <cache-root>/tmp/<oid>.<random>                     in-flight downloads

There is no index: a cache entry exists when a file sits at its final path
with the expected size and digest. Downloads are written to the staging
directory and renamed into place, so the final path only ever holds a
complete, verified file.
"""
from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Iterator, Optional

from .digest import CHUNK_SIZE, HashingReader, digest_file, is_digest
from .errors import CacheDirectoryError, CacheRenameError, DigestError, DigestMismatchError, StoreReadError
from .path_safety import STAGING_DIR, safe_object_name, safe_shard

__all__ = ["ObjectCache", "CacheEntry", "StagedObject"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StagedObject:
    """A fully written, not yet committed download."""
    path: Path
    size: int
    sha256: str


@dataclass(frozen=True)
class CacheEntry:
    """A committed file found while walking the cache tree."""
    shard: str
    name: str
    path: Path
    size: int


class ObjectCache:
    """
    Resolves and commits objects in the local cache tree.

    Path resolution is pure: the same (oid, prefix_length, name) always maps
    to the same path. Only stage/commit/purge touch the filesystem.
    """

    def __init__(self, root: Path | str, prefix_length: int = 16) -> None:
        self.root = Path(root)
        self.prefix_length = prefix_length

    @property
    def staging_dir(self) -> Path:
        return self.root / STAGING_DIR

    def shard(self, oid: str) -> str:
        """Return the shard directory name for an oid."""
        try:
            return safe_shard(oid[:self.prefix_length])
        except ValueError as e:
            raise CacheDirectoryError(f"Cannot shard oid {oid!r}: {e}") from e

    def path_for(self, oid: str, name: Optional[str] = None) -> Path:
        """
        Resolve the final cache path for an object.

        Args:
            oid: Object identifier
            name: Cache file name; defaults to the oid itself

        Raises:
            CacheDirectoryError: If oid or name cannot form a safe path
        """
        name = oid if name is None else name
        try:
            safe_object_name(name)
        except ValueError as e:
            raise CacheDirectoryError(f"Cannot cache object {oid} as {name!r}: {e}") from e
        return self.root / self.shard(oid) / name

    def lookup(self, oid: str, size: int, name: Optional[str] = None) -> Optional[Path]:
        """
        Return the cached path if a valid copy is already present.

        A hit requires the file to exist, have the expected size, and hash to
        the oid. Size alone never proves content.
        """
        path = self.path_for(oid, name)
        if not path.is_file():
            return None

        actual_size = path.stat().st_size
        if actual_size != size:
            logger.debug(f"Cache entry {path} has size {actual_size}, expected {size}")
            return None

        try:
            actual_sha = digest_file(path)
        except DigestError as e:
            logger.warning(f"Ignoring unreadable cache entry {path}: {e}")
            return None

        if actual_sha != oid:
            logger.debug(f"Cache entry {path} hashes to {actual_sha}, expected {oid}")
            return None

        return path

    def stage(self, oid: str, stream: IO[bytes], *, expected_size: Optional[int] = None) -> StagedObject:
        """
        Stream content into a fresh staging file and verify it.

        Args:
            oid: Expected SHA-256 of the content
            stream: Readable source (file-like with read())
            expected_size: Declared size to check, if known

        Returns:
            StagedObject describing the verified staging file

        Raises:
            CacheDirectoryError: If the staging file cannot be created or written
            StoreReadError: If reading the source stream fails
            DigestMismatchError: If size or digest do not match
        """
        try:
            self.staging_dir.mkdir(parents=True, exist_ok=True)
            prefix = f"{oid}." if is_digest(oid) else "object."
            fd, temp_name = tempfile.mkstemp(prefix=prefix, dir=self.staging_dir)
        except (OSError, ValueError) as e:
            raise CacheDirectoryError(f"Failed to create staging file in {self.staging_dir}: {e}") from e

        temp_path = Path(temp_name)
        reader = HashingReader(stream)

        try:
            with os.fdopen(fd, "wb") as out:
                while True:
                    try:
                        chunk = reader.read(CHUNK_SIZE)
                    except Exception as e:
                        raise StoreReadError(f"Failed to read object {oid}: {e}") from e
                    if not chunk:
                        break
                    try:
                        out.write(chunk)
                    except OSError as e:
                        raise CacheDirectoryError(f"Failed to write staging file {temp_path}: {e}") from e

                out.flush()
                os.fsync(out.fileno())

            actual_sha = reader.hexdigest()
            size = reader.size
            if expected_size is not None and size != expected_size:
                raise DigestMismatchError(
                    f"Size mismatch for {oid}: expected {expected_size} bytes, got {size}",
                    expected=str(expected_size), actual=str(size),
                )
            if actual_sha != oid:
                raise DigestMismatchError(
                    f"SHA mismatch for {oid}: got {actual_sha}",
                    expected=oid, actual=actual_sha,
                )
        except BaseException:
            self.discard(temp_path)
            raise

        return StagedObject(path=temp_path, size=size, sha256=actual_sha)

    def commit(self, staged: StagedObject, final_path: Path) -> Path:
        """
        Atomically move a staged object into its final cache path.

        Raises:
            CacheDirectoryError: If the shard directory cannot be created
            CacheRenameError: If the rename fails
        """
        try:
            final_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            self.discard(staged.path)
            raise CacheDirectoryError(f"Failed to create cache directory {final_path.parent}: {e}") from e

        try:
            os.replace(staged.path, final_path)
        except OSError as e:
            self.discard(staged.path)
            raise CacheRenameError(f"Failed to move {staged.path} to {final_path}: {e}") from e

        logger.debug(f"Committed {staged.sha256} ({staged.size} bytes) to {final_path}")
        return final_path

    @staticmethod
    def discard(path: Path) -> None:
        """Remove a staging file, ignoring one that is already gone."""
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove staging file {path}: {e}")

    def iter_entries(self) -> Iterator[CacheEntry]:
        """Walk committed cache files in sorted order, skipping staging."""
        if not self.root.is_dir():
            return
        for shard_dir in sorted(self.root.iterdir()):
            if not shard_dir.is_dir() or shard_dir.name == STAGING_DIR:
                continue
            for path in sorted(shard_dir.iterdir()):
                if path.is_file():
                    yield CacheEntry(
                        shard=shard_dir.name,
                        name=path.name,
                        path=path,
                        size=path.stat().st_size,
                    )

    def purge_staging(self) -> int:
        """Delete leftover staging files from interrupted downloads."""
        if not self.staging_dir.is_dir():
            return 0
        removed = 0
        for path in self.staging_dir.iterdir():
            if path.is_file():
                self.discard(path)
                removed += 1
        return removed
