"""
Storage interfaces for the transfer agent.

These protocols define the boundary between the transfer handlers and the
object store, enabling clean dependency injection and testing with fakes.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import IO, Dict, Optional, Protocol, runtime_checkable

__all__ = ["RemoteStat", "ObjectStore", "METADATA_DIGEST_KEY"]

# User metadata key holding an object's content digest
METADATA_DIGEST_KEY = "sha256"


@dataclass(frozen=True)
class RemoteStat:
    """
    Result of a HEAD-style existence query.

    Invariants:
    - exists=False means the store confirmed the object is absent
    - sha256 is None when the object predates digest tagging
    """
    exists: bool
    sha256: Optional[str] = None
    size: Optional[int] = None

    @classmethod
    def absent(cls) -> RemoteStat:
        return cls(exists=False)


@runtime_checkable
class ObjectStore(Protocol):
    """Protocol for object store operations, keyed within one bucket."""

    def head(self, key: str) -> RemoteStat:
        """
        Query existence and recorded digest without fetching the body.

        Returns:
            RemoteStat; exists=False only when absence is confirmed

        Raises:
            StoreQueryError: If existence could not be determined
        """
        ...

    def get(self, key: str) -> IO[bytes]:
        """
        Open a streaming reader for an object body.

        Raises:
            StoreReadError: If the object is missing or cannot be fetched
        """
        ...

    def put(self, key: str, body: IO[bytes], *, sha256: str, acl: str = "private") -> None:
        """
        Upload an object tagged with its content digest.

        Raises:
            StoreWriteError: If the upload fails
        """
        ...

    def copy_metadata(self, key: str, metadata: Dict[str, str]) -> None:
        """
        Replace an object's user metadata in place (server-side copy).

        Raises:
            StoreWriteError: If the update fails
        """
        ...
