"""Fake ObjectStoreClient implementation for testing."""

import json
from typing import Any

from rootcause.core.exceptions import ObjectNotFoundError
from rootcause.core.ports import ObjectStoreClient


class FakeObjectStore:
    """In-memory multi-region object store.

    Acts as the client factory handed to PayloadFetcher. Objects and
    failures are registered per region; every get_object call is logged
    as (region, bucket, key) for assertions.
    """

    def __init__(self) -> None:
        self.objects: dict[tuple[str, str, str], bytes] = {}
        self.failures: dict[str, Exception] = {}
        self.attempts: list[tuple[str, str, str]] = []
        self.created_regions: list[str] = []

    def __call__(self, region: str) -> "FakeObjectStoreClient":
        self.created_regions.append(region)
        return FakeObjectStoreClient(self, region)

    def put(self, region: str, bucket: str, key: str, body: bytes) -> None:
        self.objects[(region, bucket, key)] = body

    def put_json(self, region: str, bucket: str, key: str, document: Any) -> None:
        self.put(region, bucket, key, json.dumps(document).encode("utf-8"))

    def fail_region(self, region: str, error: Exception) -> None:
        """Make every request to a region raise the given error."""
        self.failures[region] = error


class FakeObjectStoreClient(ObjectStoreClient):
    """Client bound to one region of a FakeObjectStore."""

    def __init__(self, store: FakeObjectStore, region: str):
        self.store = store
        self.region = region
        self.closed = False

    async def get_object(self, bucket: str, key: str) -> bytes:
        self.store.attempts.append((self.region, bucket, key))
        if self.region in self.store.failures:
            raise self.store.failures[self.region]
        try:
            return self.store.objects[(self.region, bucket, key)]
        except KeyError:
            raise ObjectNotFoundError(
                f"{bucket}/{key} not found", location=self.region
            ) from None

    async def close(self) -> None:
        self.closed = True
