"""
Transfer reference parsing.

A download's ``action.href`` is an opaque locator naming the object and the
file name it should be cached under. Accepted forms:

    s3://<bucket>/<prefix...>/<oid>/<filename>
    <prefix...>/<oid>/<filename>
    <oid>/<filename>

The segment before the last separator is the object identifier; the last
segment is the display file name. When a prefix is present, the store key is
the path up to and including the identifier; the bare <oid>/<filename> form
and an absent reference both fall back to the configured namespace. An absent
or empty reference means the event's oid names both the object and the cache
file.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from .errors import ReferenceParseError
from .path_safety import safe_object_name
from .settings import Settings

__all__ = ["TransferRef", "parse_transfer_ref"]


@dataclass(frozen=True)
class TransferRef:
    """
    Parsed components of a transfer reference.

    Attributes:
        key: Store key the object lives under
        oid: Canonical object identifier (expected digest)
        filename: Name the object is cached under
        original: Original reference string for error messages
    """
    key: str
    oid: str
    filename: str
    original: str


_SCHEME_RE = re.compile(r"^s3://([^/]+)/(.*)$")


def parse_transfer_ref(href: Optional[str], oid: str, settings: Settings) -> TransferRef:
    """
    Resolve store key, identifier and file name from a transfer reference.

    Args:
        href: The event's action.href (may be None or empty)
        oid: The event's declared oid
        settings: Settings used to derive the store key

    Returns:
        TransferRef with validated components

    Raises:
        ReferenceParseError: If the reference does not split into
            <oid>/<filename>, names a different object, holds an empty
            or relative key segment, or holds an unsafe file name

    Examples:
        >>> parse_transfer_ref("s3://bucket/alice/<oid>/test.csv", "<oid>", settings)
        TransferRef(key='alice/<oid>', oid='<oid>', filename='test.csv', original='...')

        >>> parse_transfer_ref("<oid>/test.csv", "<oid>", settings).key
        '<namespace>/<oid>'
    """
    if not href:
        return TransferRef(key=settings.object_key(oid), oid=oid, filename=oid, original="")

    if "\\" in href:
        raise ReferenceParseError(f"Invalid reference format (backslashes not allowed): {href}")

    path = href
    match = _SCHEME_RE.match(href)
    if match:
        bucket, path = match.groups()
        if bucket != settings.bucket:
            raise ReferenceParseError(
                f"Reference bucket '{bucket}' does not match configured bucket '{settings.bucket}': {href}"
            )
    elif "://" in href:
        raise ReferenceParseError(f"Invalid reference format, unsupported scheme: {href}")

    path = path.strip("/")
    if "/" not in path:
        raise ReferenceParseError(f"Invalid reference format, expected <oid>/<filename>: {href}")

    head, filename = path.rsplit("/", 1)
    ref_oid = head.rsplit("/", 1)[-1]

    if not ref_oid or not filename:
        raise ReferenceParseError(f"Invalid reference format, expected <oid>/<filename>: {href}")

    if ref_oid != oid:
        raise ReferenceParseError(f"Reference names object {ref_oid}, expected {oid}: {href}")

    if any(segment in ("", ".", "..") for segment in head.split("/")):
        raise ReferenceParseError(f"Invalid reference format, empty or relative key segment: {href}")

    try:
        safe_object_name(filename)
    except ValueError as e:
        raise ReferenceParseError(f"Invalid reference format, {e}: {href}") from e

    key = head if "/" in head else settings.object_key(oid)
    return TransferRef(key=key, oid=oid, filename=filename, original=href)
