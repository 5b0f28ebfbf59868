"""
Path safety utilities for the local object cache.

Object names recovered from transfer references end up as file names inside
the cache tree, so they are validated before any filesystem access.
"""
from __future__ import annotations

from pathlib import PurePosixPath

# Reserved for in-flight downloads
STAGING_DIR = "tmp"


def safe_object_name(name: str) -> str:
    """
    Validate a cache file name taken from a transfer reference.

    This function enforces the following safety rules:
    - No empty strings, "." or ".."
    - No path separators (forward or backslash); names are a single component
    - No NUL bytes

    Args:
        name: Candidate file name

    Returns:
        The name unchanged if it is safe

    Raises:
        ValueError: If name violates safety rules

    Examples:
        >>> safe_object_name("test.csv")
        'test.csv'

        >>> safe_object_name("../secrets.txt")
        ValueError: unsafe object name: ../secrets.txt
    """
    if not name or name in (".", ".."):
        raise ValueError(f"unsafe object name: {name}")
    if "/" in name or "\\" in name or "\x00" in name:
        raise ValueError(f"unsafe object name: {name}")
    if PurePosixPath(name).name != name:
        raise ValueError(f"unsafe object name: {name}")
    return name


def safe_shard(shard: str) -> str:
    """
    Validate a shard directory name.

    Shards come from oids, which callers may assert without proof, so the
    same single-component rules apply plus the staging directory is reserved.
    """
    safe_object_name(shard)
    if shard == STAGING_DIR:
        raise ValueError(f"unsafe shard: {shard} is reserved for staging")
    return shard
