"""Abstract object store interface."""

from abc import ABC, abstractmethod
from pathlib import Path

Body = bytes | Path


class ObjectStoreClient(ABC):
    """Capability to durably store a named byte stream at a public URL.

    Implementations must overwrite on repeated ``put`` with the same key and
    must be safe for concurrent ``put`` calls from worker threads. The
    pipeline never checks for existing objects.
    """

    @abstractmethod
    def put(self, key: str, body: Body, content_type: str) -> str:
        """Store an object, replacing any previous object at ``key``.

        Args:
            key: Object key (path inside the bucket)
            body: Raw bytes, or a local file to stream
            content_type: MIME type recorded with the object

        Returns:
            Public URL of the stored object

        Raises:
            UploadError: Or a subclass describing the failure
        """

    @abstractmethod
    def url_for(self, key: str) -> str:
        """Public URL an object at ``key`` resolves to."""

    def close(self) -> None:
        """Release the underlying session. Safe to call more than once."""

    def __enter__(self) -> "ObjectStoreClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.close()
        return False
