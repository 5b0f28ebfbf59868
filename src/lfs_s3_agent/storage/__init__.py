"""Object store interfaces and adapters."""
from .base import METADATA_DIGEST_KEY, ObjectStore, RemoteStat

__all__ = ["METADATA_DIGEST_KEY", "ObjectStore", "RemoteStat"]
