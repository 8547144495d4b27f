"""Object store clients used for publishing."""

from castfeed.storage.base import ObjectStoreClient
from castfeed.storage.memory import InMemoryObjectStore, StoredObject
from castfeed.storage.s3 import S3ObjectStore

__all__ = [
    "ObjectStoreClient",
    "InMemoryObjectStore",
    "StoredObject",
    "S3ObjectStore",
]
