"""
Tests for settings module.

Tests settings validation and environment variable loading.
"""
from __future__ import annotations

from pathlib import Path

import pytest

from lfs_s3_agent.settings import DEFAULT_CACHE_ROOT, Settings, create_settings_from_env


class TestSettings:
    """Test Settings dataclass validation."""

    def test_minimal_valid_settings(self):
        """Test creating settings with only the bucket."""
        settings = Settings(bucket="visionlab-members")
        assert settings.bucket == "visionlab-members"
        assert settings.namespace == ""
        assert settings.cache_root == Path(DEFAULT_CACHE_ROOT)
        assert settings.prefix_length == 16
        assert settings.acl == "private"
        assert settings.verify_upload is True
        assert settings.verbose is False
        assert settings.max_attempts == 5

    def test_empty_bucket_raises(self):
        with pytest.raises(ValueError, match="bucket is required"):
            Settings(bucket="")

    def test_invalid_bucket_name_raises(self):
        with pytest.raises(ValueError, match="Invalid bucket name"):
            Settings(bucket="Not_A_Bucket")

    def test_prefix_length_bounds(self):
        """Test that prefix length must fit inside a SHA-256 hex digest."""
        Settings(bucket="lfs-test-bucket", prefix_length=1)
        Settings(bucket="lfs-test-bucket", prefix_length=64)
        with pytest.raises(ValueError, match="prefix_length"):
            Settings(bucket="lfs-test-bucket", prefix_length=0)
        with pytest.raises(ValueError, match="prefix_length"):
            Settings(bucket="lfs-test-bucket", prefix_length=65)

    def test_unknown_acl_raises(self):
        with pytest.raises(ValueError, match="Unsupported acl"):
            Settings(bucket="lfs-test-bucket", acl="world-writable")

    def test_namespace_validation(self):
        with pytest.raises(ValueError, match="must not start or end"):
            Settings(bucket="lfs-test-bucket", namespace="/alice")
        with pytest.raises(ValueError, match="path traversal"):
            Settings(bucket="lfs-test-bucket", namespace="alice/../bob")

    def test_non_positive_timeout_raises(self):
        with pytest.raises(ValueError, match="timeout_s must be positive"):
            Settings(bucket="lfs-test-bucket", timeout_s=0)

    def test_cache_root_coerced_to_path(self):
        settings = Settings(bucket="lfs-test-bucket", cache_root="some/dir")  # type: ignore[arg-type]
        assert settings.cache_root == Path("some/dir")

    def test_object_key_with_and_without_namespace(self):
        assert Settings(bucket="lfs-test-bucket").object_key("abc") == "abc"
        assert Settings(bucket="lfs-test-bucket", namespace="alvarez").object_key("abc") == "alvarez/abc"

    def test_endpoint_gets_scheme(self):
        """Test that bare endpoint hosts are given https://."""
        assert Settings(bucket="lfs-test-bucket").endpoint is None
        assert Settings(bucket="lfs-test-bucket", endpoint_url="s3.wasabisys.com").endpoint == "https://s3.wasabisys.com"
        assert Settings(bucket="lfs-test-bucket", endpoint_url="http://localhost:9000").endpoint == "http://localhost:9000"

    def test_settings_are_frozen(self):
        settings = Settings(bucket="lfs-test-bucket")
        with pytest.raises(AttributeError):
            settings.bucket = "other"  # type: ignore[misc]


class TestCreateSettingsFromEnv:
    """Test loading settings from environment variables."""

    def test_missing_bucket_raises(self, monkeypatch):
        monkeypatch.delenv("LFS_S3_BUCKET")
        with pytest.raises(ValueError, match="LFS_S3_BUCKET environment variable is required"):
            create_settings_from_env()

    def test_defaults(self):
        settings = create_settings_from_env()
        assert settings.bucket == "lfs-test-bucket"
        assert settings.namespace == ""
        assert settings.aws_profile is None
        assert settings.endpoint_url is None
        assert settings.cache_root == Path(DEFAULT_CACHE_ROOT)
        assert settings.prefix_length == 16
        assert settings.verify_upload is True

    def test_full_environment(self, monkeypatch):
        """Test every variable the agent reads."""
        monkeypatch.setenv("LFS_AWS_PROFILE", "wasabi")
        monkeypatch.setenv("LFS_AWS_ENDPOINT", "s3.wasabisys.com")
        monkeypatch.setenv("LFS_AWS_USER", "alvarez")
        monkeypatch.setenv("LFS_AWS_REGION", "us-east-1")
        monkeypatch.setenv("LFS_LOCAL_STORAGE", "./lfs_cache")
        monkeypatch.setenv("LFS_VERBOSE", "yes")
        monkeypatch.setenv("LFS_HASH_LENGTH", "8")
        monkeypatch.setenv("LFS_S3_ACL", "public-read")
        monkeypatch.setenv("LFS_VERIFY_UPLOAD", "false")
        monkeypatch.setenv("LFS_S3_TIMEOUT", "12.5")
        monkeypatch.setenv("LFS_S3_MAX_ATTEMPTS", "2")

        settings = create_settings_from_env()

        assert settings.aws_profile == "wasabi"
        assert settings.endpoint == "https://s3.wasabisys.com"
        assert settings.namespace == "alvarez"
        assert settings.region == "us-east-1"
        assert settings.cache_root == Path("lfs_cache")
        assert settings.verbose is True
        assert settings.prefix_length == 8
        assert settings.acl == "public-read"
        assert settings.verify_upload is False
        assert settings.timeout_s == 12.5
        assert settings.max_attempts == 2

    def test_namespace_slashes_trimmed(self, monkeypatch):
        monkeypatch.setenv("LFS_AWS_USER", "/team/alice/")
        assert create_settings_from_env().namespace == "team/alice"

    def test_bad_integer_raises(self, monkeypatch):
        monkeypatch.setenv("LFS_HASH_LENGTH", "sixteen")
        with pytest.raises(ValueError, match="LFS_HASH_LENGTH must be an integer"):
            create_settings_from_env()

    def test_fresh_instance_each_call(self, monkeypatch):
        """Test that settings are not cached between calls."""
        first = create_settings_from_env()
        monkeypatch.setenv("LFS_HASH_LENGTH", "4")
        second = create_settings_from_env()
        assert first.prefix_length == 16
        assert second.prefix_length == 4
