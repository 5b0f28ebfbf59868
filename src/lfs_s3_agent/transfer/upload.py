"""
Upload handler.

Trust boundary: with ``verify_upload`` enabled (the default) the local file
is re-hashed and must match the declared oid before the oid is used for the
dedup decision or written as the remote digest tag. With it disabled the
declared oid is trusted as-is, saving one local read per upload at the cost
of tagging unverified content.
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional

from ..digest import digest_file
from ..errors import DigestMismatchError, LocalFileError, StoreQueryError
from ..events import UploadEvent
from ..settings import Settings
from ..storage.base import ObjectStore, RemoteStat
from .outcome import TransferOutcome

__all__ = ["upload_object"]


def upload_object(event: UploadEvent, *, store: ObjectStore, settings: Settings) -> TransferOutcome:
    """
    Upload a local file unless the store already holds the same content.

    Args:
        event: Upload event with ``path`` pointing at the local source
        store: Object store to write to
        settings: Agent settings (key namespace, ACL, trust mode)

    Returns:
        TransferOutcome with skipped=True when the remote copy already
        carries a digest equal to the oid (zero store writes)

    Raises:
        LocalFileError: If the source file is missing or unreadable
        DigestError: If hashing the source fails
        DigestMismatchError: If the source does not hash to the declared oid
        StoreWriteError: If the upload fails
    """
    source = Path(event.path)
    if not source.is_file():
        raise LocalFileError(f"Failed to open file {event.path!r}: no such file")

    if settings.verify_upload:
        actual_sha = digest_file(source)
        if actual_sha != event.oid:
            raise DigestMismatchError(
                f"File {event.path!r} hashes to {actual_sha}, not the declared oid {event.oid}",
                expected=event.oid, actual=actual_sha,
            )

    key = settings.object_key(event.oid)

    remote: Optional[RemoteStat]
    try:
        remote = store.head(key)
    except StoreQueryError:
        # Could not determine existence: attempt the upload rather than skip
        remote = None

    if remote is not None and remote.exists and remote.sha256 == event.oid:
        return TransferOutcome(skipped=True)

    try:
        f = open(source, "rb")
    except OSError as e:
        raise LocalFileError(f"Failed to open file {event.path!r}: {e}") from e

    with f:
        store.put(key, f, sha256=event.oid, acl=settings.acl)

    return TransferOutcome(remote_unknown=remote is None)
