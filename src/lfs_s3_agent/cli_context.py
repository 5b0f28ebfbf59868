"""
CLI Context for managing application dependencies.

Settings are read from the environment once per command and the object
store client is built lazily, so cache-only commands never need credentials.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .cache import ObjectCache
from .settings import Settings, create_settings_from_env
from .storage.base import ObjectStore


@dataclass
class CLIContext:
    """
    Shared context for CLI commands.

    Manages application-level dependencies (settings, store, cache) that are
    initialized once and shared across a CLI command execution.
    """
    settings: Settings
    _store: Optional[ObjectStore] = None

    @classmethod
    def from_env(cls) -> CLIContext:
        """Create CLI context from environment variables."""
        return cls(settings=create_settings_from_env())

    @property
    def store(self) -> ObjectStore:
        """Get or create the S3 store (lazy initialization)."""
        if self._store is None:
            from .storage.s3 import S3ObjectStore
            self._store = S3ObjectStore(settings=self.settings)
        return self._store

    @property
    def cache(self) -> ObjectCache:
        return ObjectCache(self.settings.cache_root, self.settings.prefix_length)
