"""In-memory object store for tests and dry runs."""

import threading
from dataclasses import dataclass
from pathlib import Path

from castfeed.storage.base import Body, ObjectStoreClient
from castfeed.utils.errors import UploadError
from castfeed.utils.urls import public_url


@dataclass(frozen=True)
class StoredObject:
    """An object held by InMemoryObjectStore."""

    key: str
    data: bytes
    content_type: str


class InMemoryObjectStore(ObjectStoreClient):
    """Dict-backed store with optional injected failures.

    Example:
        >>> store = InMemoryObjectStore("https://cdn.test", fail_keys={"b.mp3"})
        >>> store.put("a.mp3", b"...", "audio/mpeg")
        'https://cdn.test/a.mp3'
    """

    def __init__(
        self,
        base_url: str = "https://store.invalid",
        fail_keys: set[str] | None = None,
    ) -> None:
        self.base_url = base_url
        self.fail_keys = set(fail_keys or ())
        self.objects: dict[str, StoredObject] = {}
        self.put_calls: list[str] = []
        self.closed = False
        self._lock = threading.Lock()

    def put(self, key: str, body: Body, content_type: str) -> str:
        with self._lock:
            self.put_calls.append(key)
        if key in self.fail_keys:
            raise UploadError(f"Injected failure for {key}", key)

        data = body.read_bytes() if isinstance(body, Path) else bytes(body)
        with self._lock:
            self.objects[key] = StoredObject(key=key, data=data, content_type=content_type)
        return self.url_for(key)

    def url_for(self, key: str) -> str:
        return public_url(self.base_url, key)

    def close(self) -> None:
        self.closed = True
