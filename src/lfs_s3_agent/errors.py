"""
Transfer agent error classes.

Provides a taxonomy of the failures a single transfer can hit. Every error
carries a ``kind`` so logs can classify failures, but all of them reach the
caller with the same wire code; only the message differs.
"""
from __future__ import annotations

__all__ = [
    "AgentError",
    "LocalFileError",
    "DigestError",
    "DigestMismatchError",
    "StoreQueryError",
    "StoreReadError",
    "StoreWriteError",
    "CacheDirectoryError",
    "CacheRenameError",
    "ReferenceParseError",
    "InvalidOidError",
    "ProtocolError",
    "WIRE_ERROR_CODE",
]

# Every failure CompleteEvent uses this code
WIRE_ERROR_CODE = 1


class AgentError(Exception):
    """
    Base class for all per-transfer failures.

    Caught at the handler boundary and converted to a failure CompleteEvent;
    never allowed to end the process.
    """
    kind = "agent-error"


class LocalFileError(AgentError):
    """Local source file missing or unreadable."""
    kind = "local-file-unreadable"


class DigestError(AgentError):
    """I/O failure while streaming content through the hash function."""
    kind = "digest-computation-failure"


class DigestMismatchError(AgentError):
    """
    Content digest validation failed.

    Raised when:
    - an upload source does not hash to its declared oid
    - downloaded bytes do not hash to the expected oid
    - downloaded size differs from the declared size
    """
    kind = "digest-mismatch"

    def __init__(self, message: str, expected: str | None = None, actual: str | None = None):
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class StoreQueryError(AgentError):
    """Existence check could not determine whether an object exists."""
    kind = "store-query-failure"


class StoreReadError(AgentError):
    """Object body could not be fetched."""
    kind = "store-read-failure"


class StoreWriteError(AgentError):
    """Upload or metadata update rejected by the store."""
    kind = "store-write-failure"


class CacheDirectoryError(AgentError):
    """Cache or staging directory could not be created or written."""
    kind = "local-directory-creation-failure"


class CacheRenameError(AgentError):
    """Staged download could not be moved into its final cache path."""
    kind = "local-rename-failure"


class InvalidOidError(AgentError):
    """Oid is not a SHA-256 digest and so can never be verified."""
    kind = "invalid-oid"


class ReferenceParseError(AgentError):
    """Transfer action reference does not have the <oid>/<filename> shape."""
    kind = "reference-parse-failure"


class ProtocolError(Exception):
    """
    Input line is not a JSON object.

    Unlike AgentError this is fatal: the stream framing can no longer be
    trusted, so the protocol loop stops.
    """
    pass
