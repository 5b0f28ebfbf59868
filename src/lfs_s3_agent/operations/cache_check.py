"""Offline integrity check of the local object cache."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from ..cache import CacheEntry, ObjectCache
from ..digest import digest_file, is_digest
from ..errors import DigestError

__all__ = ["EntryReport", "verify_cache"]


@dataclass(frozen=True)
class EntryReport:
    entry: CacheEntry
    sha256: Optional[str]
    problem: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.problem is None


def verify_cache(cache: ObjectCache) -> List[EntryReport]:
    """
    Re-hash every committed cache file.

    A file is consistent when its digest starts with its shard directory
    name, and equals its file name when that name is itself a digest.
    """
    reports = []
    for entry in cache.iter_entries():
        try:
            sha = digest_file(entry.path)
        except DigestError as e:
            reports.append(EntryReport(entry=entry, sha256=None, problem=f"unreadable: {e}"))
            continue

        problem = None
        if not sha.startswith(entry.shard):
            problem = f"digest {sha[:12]}… not under shard"
        elif is_digest(entry.name) and entry.name != sha:
            problem = f"digest {sha[:12]}… does not match name"
        reports.append(EntryReport(entry=entry, sha256=sha, problem=problem))
    return reports
