"""Result value returned by the transfer handlers."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

__all__ = ["TransferOutcome"]


@dataclass(frozen=True)
class TransferOutcome:
    """
    What a handler did for one object.

    Handlers never log or serialize; the protocol loop turns this into a
    CompleteEvent and a log line.

    Attributes:
        path: Local path to report back (downloads only)
        skipped: True when existing remote or cached content made I/O unnecessary
        backfilled: True when a missing remote digest tag was repaired
        remote_unknown: True when the existence check failed and the cautious
            path was taken
    """
    path: Optional[Path] = None
    skipped: bool = False
    backfilled: bool = False
    remote_unknown: bool = False
