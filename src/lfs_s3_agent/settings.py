"""
Settings and configuration for the LFS S3 transfer agent.

Centralizes configuration values and provides validation with fail-fast behavior.
Settings are loaded from environment variables once at startup and passed by
reference into every component; nothing else reads the process environment.
"""
from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

__all__ = ["Settings", "create_settings_from_env", "DEFAULT_CACHE_ROOT", "CANNED_ACLS"]

DEFAULT_CACHE_ROOT = ".git/lfs/objects"

# S3 canned ACLs accepted for uploaded objects
CANNED_ACLS = frozenset({
    "private",
    "public-read",
    "public-read-write",
    "authenticated-read",
    "aws-exec-read",
    "bucket-owner-read",
    "bucket-owner-full-control",
})


@dataclass(frozen=True)
class Settings:
    """
    Configuration settings for the transfer agent.

    Object Store Settings:
        bucket: S3 bucket holding LFS objects (required)
        namespace: Per-user key prefix; objects live at <namespace>/<oid>
        aws_profile: Shared-credentials profile name (None = default chain)
        endpoint_url: S3-compatible endpoint URL (None = AWS)
        region: Store region
        acl: Canned ACL applied to uploaded objects
        timeout_s: Connect/read timeout handed to botocore
        max_attempts: Total attempts botocore makes per request

    Cache Settings:
        cache_root: Local cache directory root
        prefix_length: Number of leading oid characters used as shard directory

    Behavior:
        verify_upload: Recompute the local file digest before trusting an oid
        verbose: Emit debug logging on stderr
    """
    bucket: str
    namespace: str = ""
    aws_profile: Optional[str] = None
    endpoint_url: Optional[str] = None
    region: Optional[str] = None
    acl: str = "private"
    timeout_s: float = 60.0
    max_attempts: int = 5

    cache_root: Path = Path(DEFAULT_CACHE_ROOT)
    prefix_length: int = 16

    verify_upload: bool = True
    verbose: bool = False

    def __post_init__(self):
        """Validate settings on construction."""
        if not self.bucket:
            raise ValueError("bucket is required")

        # S3 bucket naming rules (lowercase, digits, dots, hyphens)
        bucket_pattern = r"^[a-z0-9][a-z0-9.-]{1,61}[a-z0-9]$"
        if not re.match(bucket_pattern, self.bucket):
            raise ValueError(f"Invalid bucket name: {self.bucket}")

        if self.namespace.startswith("/") or self.namespace.endswith("/"):
            raise ValueError(f"namespace must not start or end with '/': {self.namespace}")
        if ".." in self.namespace.split("/"):
            raise ValueError(f"namespace contains path traversal: {self.namespace}")

        if not 1 <= self.prefix_length <= 64:
            raise ValueError(f"prefix_length must be between 1 and 64, got {self.prefix_length}")

        if self.acl not in CANNED_ACLS:
            raise ValueError(f"Unsupported acl '{self.acl}'. Use one of: {', '.join(sorted(CANNED_ACLS))}")

        if self.timeout_s <= 0:
            raise ValueError(f"timeout_s must be positive, got {self.timeout_s}")

        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")

        # Path-typed even when constructed from a string
        if not isinstance(self.cache_root, Path):
            object.__setattr__(self, "cache_root", Path(self.cache_root))

    def object_key(self, oid: str) -> str:
        """Return the store key an object is kept under."""
        if self.namespace:
            return f"{self.namespace}/{oid}"
        return oid

    @property
    def endpoint(self) -> Optional[str]:
        """Endpoint URL with a scheme, as botocore expects it."""
        if not self.endpoint_url:
            return None
        if self.endpoint_url.startswith(("http://", "https://")):
            return self.endpoint_url
        return f"https://{self.endpoint_url}"


def create_settings_from_env() -> Settings:
    """
    Load settings from environment variables.

    Environment Variables:
        Object store:
        - LFS_S3_BUCKET (required)
        - LFS_AWS_USER (optional key namespace)
        - LFS_AWS_PROFILE (optional)
        - LFS_AWS_ENDPOINT (optional, e.g. s3.wasabisys.com)
        - LFS_AWS_REGION (optional)
        - LFS_S3_ACL (default: private)
        - LFS_S3_TIMEOUT (default: 60.0)
        - LFS_S3_MAX_ATTEMPTS (default: 5)

        Cache:
        - LFS_LOCAL_STORAGE (default: .git/lfs/objects)
        - LFS_HASH_LENGTH (default: 16)

        Behavior:
        - LFS_VERIFY_UPLOAD (default: true)
        - LFS_VERBOSE (default: false)

    Returns:
        Settings object with validated configuration

    Raises:
        ValueError: If configuration is invalid or required values missing

    Note:
        Creates a fresh Settings instance every time (no caching).
    """
    def str_to_bool(value: str) -> bool:
        return value.lower() in ('true', '1', 'yes', 'on')

    def get_float(key: str, default: float) -> float:
        value = os.getenv(key)
        try:
            return float(value) if value else default
        except ValueError:
            raise ValueError(f"{key} must be a number, got {value!r}")

    def get_int(key: str, default: int) -> int:
        value = os.getenv(key)
        try:
            return int(value) if value else default
        except ValueError:
            raise ValueError(f"{key} must be an integer, got {value!r}")

    bucket = os.getenv("LFS_S3_BUCKET")
    if not bucket:
        raise ValueError("LFS_S3_BUCKET environment variable is required")

    return Settings(
        bucket=bucket,
        namespace=os.getenv("LFS_AWS_USER", "").strip("/"),
        aws_profile=os.getenv("LFS_AWS_PROFILE") or None,
        endpoint_url=os.getenv("LFS_AWS_ENDPOINT") or None,
        region=os.getenv("LFS_AWS_REGION") or None,
        acl=os.getenv("LFS_S3_ACL") or "private",
        timeout_s=get_float("LFS_S3_TIMEOUT", 60.0),
        max_attempts=get_int("LFS_S3_MAX_ATTEMPTS", 5),
        cache_root=Path(os.getenv("LFS_LOCAL_STORAGE") or DEFAULT_CACHE_ROOT),
        prefix_length=get_int("LFS_HASH_LENGTH", 16),
        verify_upload=str_to_bool(os.getenv("LFS_VERIFY_UPLOAD", "true")),
        verbose=str_to_bool(os.getenv("LFS_VERBOSE", "false")),
    )
