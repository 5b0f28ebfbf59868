"""
S3 object store adapter.

Works with any S3-compatible backend (AWS S3, Wasabi, MinIO) by pointing
``LFS_AWS_ENDPOINT`` at the service. Network resilience (retries, backoff,
timeouts) is configured on the botocore client rather than in the agent.
"""
from __future__ import annotations

import logging
from typing import IO, Any, Dict, Optional

import boto3
from boto3.exceptions import S3UploadFailedError
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from ..errors import StoreQueryError, StoreReadError, StoreWriteError
from ..settings import Settings
from .base import METADATA_DIGEST_KEY, ObjectStore, RemoteStat

__all__ = ["S3ObjectStore", "create_s3_client"]

logger = logging.getLogger(__name__)

# Error codes S3 uses for a confirmed-missing object
_NOT_FOUND_CODES = frozenset({"404", "NoSuchKey", "NotFound"})


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))


def create_s3_client(settings: Settings) -> Any:
    """
    Build a boto3 S3 client from settings.

    Uses the named shared-credentials profile when configured, otherwise the
    default credential chain. Retries use botocore's standard mode.
    """
    session = boto3.session.Session(
        profile_name=settings.aws_profile,
        region_name=settings.region,
    )
    config = BotoConfig(
        connect_timeout=settings.timeout_s,
        read_timeout=settings.timeout_s,
        retries={"max_attempts": settings.max_attempts, "mode": "standard"},
    )
    logger.debug(
        f"S3 client: profile={settings.aws_profile or 'default'} region={settings.region} "
        f"endpoint={settings.endpoint or 'aws'} max_attempts={settings.max_attempts}"
    )
    return session.client("s3", endpoint_url=settings.endpoint, config=config)


class S3ObjectStore(ObjectStore):
    """
    ObjectStore adapter for one S3 bucket.

    The object's content digest travels in user metadata
    (``x-amz-meta-sha256``) so existence checks can prove content without
    fetching the body.
    """

    def __init__(self, *, settings: Settings, client: Optional[Any] = None) -> None:
        """
        Initialize the adapter.

        Args:
            settings: Settings naming the bucket and client configuration
            client: Pre-built boto3 S3 client (tests inject a mock)
        """
        self._settings = settings
        self._bucket = settings.bucket
        self._client = client if client is not None else create_s3_client(settings)

    @property
    def bucket(self) -> str:
        return self._bucket

    def head(self, key: str) -> RemoteStat:
        try:
            response = self._client.head_object(Bucket=self._bucket, Key=key)
        except ClientError as e:
            if _error_code(e) in _NOT_FOUND_CODES:
                return RemoteStat.absent()
            raise StoreQueryError(f"Failed to query {self._bucket}/{key}: {e}") from e
        except BotoCoreError as e:
            raise StoreQueryError(f"Failed to query {self._bucket}/{key}: {e}") from e

        metadata = response.get("Metadata") or {}
        return RemoteStat(
            exists=True,
            sha256=metadata.get(METADATA_DIGEST_KEY) or None,
            size=response.get("ContentLength"),
        )

    def get(self, key: str) -> IO[bytes]:
        try:
            response = self._client.get_object(Bucket=self._bucket, Key=key)
        except ClientError as e:
            if _error_code(e) in _NOT_FOUND_CODES:
                raise StoreReadError(f"Object not found: {self._bucket}/{key}") from e
            raise StoreReadError(f"Failed to download data from {self._bucket}/{key}: {e}") from e
        except BotoCoreError as e:
            raise StoreReadError(f"Failed to download data from {self._bucket}/{key}: {e}") from e
        return response["Body"]

    def put(self, key: str, body: IO[bytes], *, sha256: str, acl: str = "private") -> None:
        # upload_fileobj switches to multipart for large objects
        try:
            self._client.upload_fileobj(
                body,
                self._bucket,
                key,
                ExtraArgs={
                    "Metadata": {METADATA_DIGEST_KEY: sha256},
                    "ACL": acl,
                },
            )
        except (ClientError, BotoCoreError, S3UploadFailedError) as e:
            raise StoreWriteError(f"Failed to upload data to {self._bucket}/{key}: {e}") from e

    def copy_metadata(self, key: str, metadata: Dict[str, str]) -> None:
        # Managed copy switches to multipart above 5 GiB, where copy_object fails
        try:
            self._client.copy(
                {"Bucket": self._bucket, "Key": key},
                self._bucket,
                key,
                ExtraArgs={
                    "Metadata": metadata,
                    "MetadataDirective": "REPLACE",
                    "ACL": self._settings.acl,
                },
            )
        except (ClientError, BotoCoreError) as e:
            raise StoreWriteError(f"Failed to update metadata on {self._bucket}/{key}: {e}") from e
