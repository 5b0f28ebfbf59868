"""Sample objects shared across tests."""
from __future__ import annotations

import hashlib

# 290 bytes, the size of the sample file in the upload walkthrough
CSV_CONTENT = (
    b"id,name,score\n"
    + b"".join(f"{i},sample-{i:03d},{(i * 37) % 100}\n".encode() for i in range(1, 14))
)
CSV_CONTENT = CSV_CONTENT + b"#" * (290 - len(CSV_CONTENT) - 1) + b"\n"
CSV_OID = hashlib.sha256(CSV_CONTENT).hexdigest()


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()
