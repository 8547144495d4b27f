"""Episode metadata extraction from local audio files."""

import logging
import os
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path

import mutagen

from castfeed.feeds.models import EpisodeFact
from castfeed.media.types import MEDIA_TYPES, media_type_for
from castfeed.utils.errors import MediaIOError, UnsupportedFormatError

logger = logging.getLogger(__name__)

DurationReader = Callable[[Path], float | None]


def read_duration(path: Path) -> float | None:
    """Read the playing time of an audio file with mutagen.

    Args:
        path: Audio file to inspect

    Returns:
        Duration in seconds, or None if the container can't be parsed
    """
    audio = mutagen.File(path)
    if audio is None or audio.info is None:
        return None
    length = getattr(audio.info, "length", None)
    if length is None or length < 0:
        return None
    return float(length)


class MetadataExtractor:
    """Derive EpisodeFacts from audio files.

    Only file stat data and container headers are read. A failed duration
    reader leaves the duration unknown instead of failing the file.

    Example:
        >>> extractor = MetadataExtractor()
        >>> fact = extractor.extract(Path("episodes/001-intro.mp3"))
        >>> fact.title
        '001-intro'
    """

    def __init__(self, duration_reader: DurationReader | None = None) -> None:
        """Initialize the extractor.

        Args:
            duration_reader: Callable returning seconds or None (defaults to mutagen)
        """
        self.duration_reader = duration_reader or read_duration

    def extract(self, path: Path, title: str | None = None) -> EpisodeFact:
        """Extract episode facts for one file.

        Args:
            path: Audio file path
            title: Explicit episode title (defaults to the filename stem)

        Returns:
            EpisodeFact for the file

        Raises:
            MediaIOError: If the file is missing or unreadable
            UnsupportedFormatError: If the extension isn't a supported audio format
        """
        path = Path(path)

        try:
            stat_result = path.stat()
        except FileNotFoundError as e:
            raise MediaIOError(f"File not found: {path}", path) from e
        except OSError as e:
            raise MediaIOError(f"Cannot read {path}: {e.strerror or e}", path) from e

        if not path.is_file():
            raise MediaIOError(f"Not a regular file: {path}", path)
        if not os.access(path, os.R_OK):
            raise MediaIOError(f"Permission denied: {path}", path)

        media_type = media_type_for(path.suffix)
        if media_type is None:
            supported = ", ".join(sorted(MEDIA_TYPES))
            raise UnsupportedFormatError(
                f"Unsupported media format '{path.suffix or '(none)'}' for {path}. "
                f"Supported: {supported}",
                path,
                path.suffix,
            )

        duration = self._read_duration(path)

        published = datetime.fromtimestamp(int(stat_result.st_mtime), tz=timezone.utc)

        return EpisodeFact(
            path=path,
            title=title if title is not None else path.stem,
            duration_seconds=round(duration) if duration is not None else None,
            size_bytes=stat_result.st_size,
            media_type=media_type,
            published=published,
        )

    def _read_duration(self, path: Path) -> float | None:
        """Run the duration reader; failures only cost the duration."""
        try:
            return self.duration_reader(path)
        except Exception as e:
            logger.debug(
                "Could not determine duration of %s: %s: %s", path, type(e).__name__, e
            )
            return None
