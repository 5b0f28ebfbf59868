"""
Download handler.

Objects are cached under ``<cache-root>/<oid[:prefix]>/<filename>`` where the
file name comes from the transfer reference (the oid itself when there is
none). A cached copy is reused only after its size and digest are checked;
otherwise the body is streamed into staging, verified, and renamed into place.
"""
from __future__ import annotations

from contextlib import closing
from typing import Optional

from ..cache import ObjectCache
from ..digest import is_digest
from ..errors import DigestMismatchError, InvalidOidError, StoreQueryError, StoreReadError
from ..events import DownloadEvent
from ..refs import parse_transfer_ref
from ..settings import Settings
from ..storage.base import METADATA_DIGEST_KEY, ObjectStore, RemoteStat
from .outcome import TransferOutcome

__all__ = ["download_object"]


def download_object(
    event: DownloadEvent,
    *,
    store: ObjectStore,
    cache: ObjectCache,
    settings: Settings,
) -> TransferOutcome:
    """
    Make an object available in the local cache.

    This function:
    - Parses the transfer reference into store key and file name
    - Returns the cached copy when size and digest already match (no store calls)
    - Otherwise queries the remote digest tag and size; a size that disagrees
      with the event fails before any body is fetched
    - Streams the body into staging, verifies size and digest, and renames it
      into its cache path
    - Back-fills the remote digest tag on legacy objects that lack one

    Args:
        event: Download event
        store: Object store to read from
        cache: Local object cache
        settings: Agent settings

    Returns:
        TransferOutcome whose ``path`` is the committed cache file

    Raises:
        InvalidOidError: If the oid is not a SHA-256 digest
        ReferenceParseError: If the transfer reference is malformed
        StoreReadError: If the object is missing or cannot be fetched
        DigestMismatchError: If the fetched bytes fail verification
        CacheDirectoryError, CacheRenameError: If the cache cannot be written
        StoreWriteError: If the digest back-fill fails
    """
    if not is_digest(event.oid):
        raise InvalidOidError(f"oid {event.oid!r} is not a SHA-256 digest; cannot verify download")

    href = event.action.href if event.action else None
    ref = parse_transfer_ref(href, event.oid, settings)

    final_path = cache.path_for(ref.oid, ref.filename)
    cached = cache.lookup(ref.oid, event.size, ref.filename)
    if cached is not None:
        return TransferOutcome(path=cached, skipped=True)

    remote: Optional[RemoteStat]
    try:
        remote = store.head(ref.key)
    except StoreQueryError:
        # Unknown: still try the fetch, but never back-fill on a guess
        remote = None

    if remote is not None and not remote.exists:
        raise StoreReadError(f"Object not found: {ref.key}")

    if remote is not None and remote.size is not None and remote.size != event.size:
        raise DigestMismatchError(
            f"Size mismatch for {ref.oid}: store holds {remote.size} bytes, expected {event.size}",
            expected=str(event.size), actual=str(remote.size),
        )

    with closing(store.get(ref.key)) as body:
        staged = cache.stage(ref.oid, body, expected_size=event.size)

    path = cache.commit(staged, final_path)

    backfilled = False
    if remote is not None and remote.sha256 is None:
        store.copy_metadata(ref.key, {METADATA_DIGEST_KEY: staged.sha256})
        backfilled = True

    return TransferOutcome(path=path, backfilled=backfilled, remote_unknown=remote is None)
