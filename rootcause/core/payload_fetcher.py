"""Error payload retrieval with multi-region fallback.

Investigations carry a pointer to an out-of-line JSON document holding
the stack trace and error message. The bucket behind a pointer may live
in any of several regions, and the document may have expired, so a
missing payload is an expected outcome rather than an error.
"""

import asyncio
import json
import logging
from collections.abc import Sequence
from typing import Any
from urllib.parse import urlsplit

from .exceptions import (
    InvalidPointerError,
    LocationRedirectError,
    MalformedPayloadError,
    ObjectNotFoundError,
    ObjectStoreError,
)
from .models import ErrorPayload
from .ports import ObjectStoreClient, ObjectStoreClientFactory

logger = logging.getLogger(__name__)

DEFAULT_REGION = "eu-central-1"
DEFAULT_FALLBACK_REGIONS = ("eu-central-1", "us-east-1", "us-west-2")

COMPACT_SCHEME = "s3://"

# Historical field names accepted for each payload field, in priority order
STACK_TRACE_KEYS = ("stack_trace", "stackTrace")
ERROR_MESSAGE_KEYS = ("error_message", "message", "error")


def parse_pointer(pointer: str) -> tuple[str, str]:
    """Split a storage pointer into (bucket, key).

    Supports the compact form ``s3://bucket/path/to/key`` and URL forms such
    as ``https://bucket.s3.eu-central-1.amazonaws.com/path/to/key``, where
    the bucket is the first DNS label of the host.

    Raises:
        InvalidPointerError: If no bucket or key can be derived.
    """
    pointer = (pointer or "").strip()
    if not pointer:
        raise InvalidPointerError("Storage pointer is empty")

    if pointer.startswith(COMPACT_SCHEME):
        bucket, _, key = pointer[len(COMPACT_SCHEME):].partition("/")
    else:
        parts = urlsplit(pointer)
        if not parts.scheme or not parts.hostname:
            raise InvalidPointerError(f"Storage pointer is not a URL: {pointer!r}")
        bucket = parts.hostname.split(".")[0]
        key = parts.path[1:] if parts.path.startswith("/") else parts.path

    if not bucket or not key:
        raise InvalidPointerError(f"Storage pointer has no bucket or key: {pointer!r}")
    return bucket, key


def candidate_regions(default_region: str, fallback_regions: Sequence[str]) -> list[str]:
    """Default region first, then fallbacks, duplicates removed."""
    regions: list[str] = []
    for region in (default_region, *fallback_regions):
        if region and region not in regions:
            regions.append(region)
    return regions


def decode_payload(body: bytes) -> ErrorPayload:
    """Map a retrieved JSON document onto an ErrorPayload.

    Raises:
        MalformedPayloadError: If the bytes are not a JSON object.
    """
    try:
        data = json.loads(body)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MalformedPayloadError(f"Payload is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise MalformedPayloadError(
            f"Payload must be a JSON object, got {type(data).__name__}"
        )

    context = data.get("context")
    if not isinstance(context, dict) or not context:
        context = data

    return ErrorPayload(
        stack_trace=_first_text(data, STACK_TRACE_KEYS),
        error_message=_first_text(data, ERROR_MESSAGE_KEYS),
        context=context,
    )


def _first_text(data: dict[str, Any], keys: Sequence[str]) -> str:
    """Return the first truthy value among keys, as text."""
    for key in keys:
        value = data.get(key)
        if value:
            return value if isinstance(value, str) else str(value)
    return ""


class PayloadFetcher:
    """Fetches error payloads, probing an ordered list of regions.

    Each region is tried once. A redirect, a missing object, or any other
    retrieval failure moves on to the next region; the first successful
    retrieval wins. Clients are created lazily per region and cached for
    the lifetime of the fetcher.
    """

    def __init__(
        self,
        client_factory: ObjectStoreClientFactory,
        default_region: str = DEFAULT_REGION,
        fallback_regions: Sequence[str] = DEFAULT_FALLBACK_REGIONS,
    ):
        """Initialize the fetcher.

        Args:
            client_factory: Creates an ObjectStoreClient for a region name.
            default_region: Region tried first.
            fallback_regions: Regions tried next, in order.
        """
        self.client_factory = client_factory
        self.regions = candidate_regions(default_region, fallback_regions)
        self._clients: dict[str, ObjectStoreClient] = {}
        self._clients_lock = asyncio.Lock()

    async def _get_client(self, region: str) -> ObjectStoreClient:
        """Return the cached client for a region, creating it on first use."""
        async with self._clients_lock:
            client = self._clients.get(region)
            if client is None:
                client = self.client_factory(region)
                self._clients[region] = client
            return client

    async def fetch(self, pointer: str) -> ErrorPayload | None:
        """Return the payload behind a pointer, or None if unavailable."""
        try:
            bucket, key = parse_pointer(pointer)
        except InvalidPointerError as e:
            logger.warning(f"Skipping unparseable storage pointer: {e}")
            return None

        for region in self.regions:
            try:
                client = await self._get_client(region)
                body = await client.get_object(bucket, key)
            except LocationRedirectError:
                logger.debug(f"Bucket {bucket} is not in {region}, trying next region")
                continue
            except ObjectNotFoundError:
                logger.debug(f"Object {bucket}/{key} not found in {region}")
                continue
            except ObjectStoreError as e:
                logger.debug(f"Failed to fetch {bucket}/{key} from {region}: {e}")
                continue
            except Exception as e:
                logger.debug(
                    f"Unexpected error fetching {bucket}/{key} from {region}: {e}"
                )
                continue

            if not body:
                continue

            try:
                return decode_payload(body)
            except MalformedPayloadError as e:
                # Same bytes in every region; probing further cannot help
                logger.warning(f"Discarding malformed payload at {pointer}: {e}")
                return None

        return None

    async def close(self) -> None:
        """Close every cached client that supports closing."""
        async with self._clients_lock:
            for client in self._clients.values():
                close = getattr(client, "close", None)
                if close is not None:
                    await close()
            self._clients.clear()
