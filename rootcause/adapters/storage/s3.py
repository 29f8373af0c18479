"""S3 object store adapter.

Implements ObjectStoreClient for one AWS region with boto3. boto3 is
blocking, so calls run in a worker thread. S3 error codes are mapped
onto the core's object store exceptions so the payload fetcher can
decide whether to probe the next region.
"""

import asyncio
import logging
import threading
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from rootcause.core.exceptions import (
    LocationRedirectError,
    ObjectNotFoundError,
    ObjectStoreError,
)
from rootcause.core.ports import ObjectStoreClient

logger = logging.getLogger(__name__)

REDIRECT_CODES = frozenset({"PermanentRedirect", "301", "AuthorizationHeaderMalformed"})
NOT_FOUND_CODES = frozenset({"NoSuchKey", "NoSuchBucket", "404"})


class S3ObjectStoreClient(ObjectStoreClient):
    """S3 client bound to a single region."""

    def __init__(self, region: str, client: Any | None = None):
        """Initialize the client.

        Args:
            region: AWS region name, e.g. "eu-central-1".
            client: Optional pre-built boto3 S3 client (used by tests).
                Without one, the boto3 client is built on first download
                inside the worker thread.
        """
        self.region = region
        self._client = client
        self._client_lock = threading.Lock()

    async def get_object(self, bucket: str, key: str) -> bytes:
        """Download an object's body."""
        return await asyncio.to_thread(self._get_object_sync, bucket, key)

    def _boto_client(self) -> Any:
        with self._client_lock:
            if self._client is None:
                self._client = boto3.client("s3", region_name=self.region)
            return self._client

    def _get_object_sync(self, bucket: str, key: str) -> bytes:
        try:
            response = self._boto_client().get_object(Bucket=bucket, Key=key)
            body = response.get("Body")
            if body is None:
                return b""
            return body.read()
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code", ""))
            if code in REDIRECT_CODES:
                raise LocationRedirectError(
                    f"Bucket {bucket} is not in {self.region}", location=self.region
                ) from e
            if code in NOT_FOUND_CODES:
                raise ObjectNotFoundError(
                    f"s3://{bucket}/{key} not found", location=self.region
                ) from e
            raise ObjectStoreError(
                f"S3 error {code or 'unknown'} for s3://{bucket}/{key}",
                location=self.region,
            ) from e
        except BotoCoreError as e:
            raise ObjectStoreError(
                f"S3 request failed in {self.region}: {e}", location=self.region
            ) from e

    async def close(self) -> None:
        """Close the underlying HTTP connection pool, if one was opened."""
        if self._client is None:
            return
        close = getattr(self._client, "close", None)
        if close is not None:
            await asyncio.to_thread(close)
