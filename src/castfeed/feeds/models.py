"""Data models for episodes, publication targets and feed documents."""

import os
import tempfile
from datetime import datetime
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class EpisodeFact(BaseModel):
    """Facts about one input audio file.

    Created once per input path by the metadata extractor and never mutated.

    Example:
        >>> fact = EpisodeFact(
        ...     path=Path("episodes/001-intro.mp3"),
        ...     title="001-intro",
        ...     duration_seconds=1834,
        ...     size_bytes=29_360_128,
        ...     media_type="audio/mpeg",
        ...     published=datetime(2024, 5, 1, tzinfo=timezone.utc),
        ... )
    """

    model_config = ConfigDict(frozen=True)

    path: Path
    title: str
    duration_seconds: int | None = Field(default=None, ge=0)
    size_bytes: int = Field(..., ge=0)
    media_type: str
    published: datetime

    @property
    def filename(self) -> str:
        """Filename including extension."""
        return self.path.name


class TargetKind(str, Enum):
    """What a publication target carries."""

    MEDIA = "media"
    FEED = "feed"


class PublicationTarget(BaseModel):
    """A local artifact paired with its deterministic remote location."""

    model_config = ConfigDict(frozen=True)

    kind: TargetKind
    source: Path | None = None  # None for a feed that only lives in memory
    key: str
    url: str
    content_type: str


class FeedEntry(BaseModel):
    """One ``item`` of the rendered feed."""

    model_config = ConfigDict(frozen=True)

    title: str
    url: str
    size_bytes: int
    media_type: str
    duration_seconds: int | None = None
    published: datetime


class FeedDocument(BaseModel):
    """An assembled podcast feed.

    Holds the show header, the ordered entries and the rendered XML bytes.
    Entry order always equals the order episodes were supplied in.
    """

    model_config = ConfigDict(frozen=True)

    title: str
    description: str
    link: str
    feed_url: str | None = None
    author: str | None = None
    image_url: str | None = None
    pub_date: datetime | None = None
    last_build_date: datetime
    entries: tuple[FeedEntry, ...] = ()
    content: bytes = Field(..., repr=False)

    @property
    def entry_count(self) -> int:
        """Number of ``item`` elements in the feed."""
        return len(self.entries)

    def write(self, path: Path) -> Path:
        """Write the feed to disk atomically.

        Writes to a temporary file in the destination directory, then
        replaces the destination so readers never see a partial feed.

        Args:
            path: Destination file

        Returns:
            The destination path
        """
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(self.content)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_name, path)
        except BaseException:
            Path(temp_name).unlink(missing_ok=True)
            raise
        return path
