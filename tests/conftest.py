"""Root pytest configuration for lfs-s3-agent tests."""
import pytest

from lfs_s3_agent.cache import ObjectCache
from lfs_s3_agent.settings import Settings
from .helpers.samples import CSV_CONTENT
from .storage.fakes.fake_object_store import FakeObjectStore


@pytest.fixture(autouse=True)
def test_env(monkeypatch):
    """Keep tests independent of the developer's LFS environment."""
    for name in (
        "LFS_AWS_PROFILE", "LFS_AWS_ENDPOINT", "LFS_AWS_REGION", "LFS_AWS_USER",
        "LFS_LOCAL_STORAGE", "LFS_VERBOSE", "LFS_HASH_LENGTH", "LFS_S3_ACL",
        "LFS_VERIFY_UPLOAD", "LFS_S3_TIMEOUT", "LFS_S3_MAX_ATTEMPTS",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("LFS_S3_BUCKET", "lfs-test-bucket")


@pytest.fixture
def settings(tmp_path):
    """Standard test settings with the cache under tmp_path."""
    return Settings(
        bucket="lfs-test-bucket",
        namespace="alice",
        cache_root=tmp_path / "cache",
    )


@pytest.fixture
def store():
    """In-memory object store."""
    return FakeObjectStore()


@pytest.fixture
def cache(settings):
    return ObjectCache(settings.cache_root, settings.prefix_length)


@pytest.fixture
def csv_file(tmp_path):
    """The 290-byte sample file on disk."""
    path = tmp_path / "work" / "test.csv"
    path.parent.mkdir(parents=True)
    path.write_bytes(CSV_CONTENT)
    return path
