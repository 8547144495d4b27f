"""Shared fixtures for castfeed tests."""

from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path

import pytest

from castfeed.config.schema import ShowConfig
from castfeed.feeds.models import EpisodeFact
from castfeed.media.extractor import MetadataExtractor

FIXED_NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)
ITUNES_NS = "http://www.itunes.com/dtds/podcast-1.0.dtd"


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    """Clock pinned to FIXED_NOW."""
    return lambda: FIXED_NOW


@pytest.fixture
def show() -> ShowConfig:
    """Minimal show config."""
    return ShowConfig(title="X", bucket="bkt")


@pytest.fixture
def make_audio(tmp_path: Path) -> Callable[..., Path]:
    """Factory creating small fake audio files under tmp_path."""

    def _make(name: str, size: int = 64, directory: Path | None = None) -> Path:
        target_dir = directory or tmp_path
        target_dir.mkdir(parents=True, exist_ok=True)
        path = target_dir / name
        path.write_bytes(b"\x00" * size)
        return path

    return _make


@pytest.fixture
def episode_files(make_audio: Callable[..., Path]) -> list[Path]:
    """Two fake episodes, a.mp3 then b.mp3."""
    return [make_audio("a.mp3", size=100), make_audio("b.mp3", size=250)]


@pytest.fixture
def extractor() -> MetadataExtractor:
    """Extractor with a fixed duration reader (no real audio needed)."""
    return MetadataExtractor(duration_reader=lambda path: 61.4)


@pytest.fixture
def make_fact() -> Callable[..., EpisodeFact]:
    """Factory for EpisodeFact instances."""

    def _make(
        name: str = "episode.mp3",
        size_bytes: int = 1000,
        duration_seconds: int | None = 90,
        published: datetime = datetime(2024, 5, 1, tzinfo=timezone.utc),
        title: str | None = None,
    ) -> EpisodeFact:
        path = Path("/media") / name
        return EpisodeFact(
            path=path,
            title=title if title is not None else path.stem,
            duration_seconds=duration_seconds,
            size_bytes=size_bytes,
            media_type="audio/mpeg",
            published=published,
        )

    return _make
