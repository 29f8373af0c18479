"""Object store adapters for error payload retrieval."""

from .s3 import S3ObjectStoreClient

__all__ = ["S3ObjectStoreClient"]
