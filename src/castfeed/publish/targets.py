"""Deterministic remote keys and URLs for publication targets.

Keys derive only from configuration and the input filename, so re-running
with the same inputs overwrites the same remote objects.
"""

from collections.abc import Sequence
from pathlib import Path

from castfeed.config.schema import ShowConfig
from castfeed.feeds.models import EpisodeFact, PublicationTarget, TargetKind
from castfeed.media.types import FEED_CONTENT_TYPE
from castfeed.utils.urls import public_url


def normalize_prefix(prefix: str) -> str:
    """Turn ``/shows//weekly/`` into ``shows/weekly/`` and ``""`` into ``""``."""
    parts = [part for part in prefix.split("/") if part]
    return "/".join(parts) + "/" if parts else ""


def object_key(show: ShowConfig, filename: str) -> str:
    """Remote object key for a file of this show."""
    return f"{normalize_prefix(show.key_prefix)}{filename}"


def media_target(show: ShowConfig, fact: EpisodeFact) -> PublicationTarget:
    key = object_key(show, fact.filename)
    return PublicationTarget(
        kind=TargetKind.MEDIA,
        source=fact.path,
        key=key,
        url=public_url(show.resolved_base_url(), key),
        content_type=fact.media_type,
    )


def feed_target(show: ShowConfig, source: Path | None = None) -> PublicationTarget:
    key = object_key(show, show.feed_filename)
    return PublicationTarget(
        kind=TargetKind.FEED,
        source=source,
        key=key,
        url=public_url(show.resolved_base_url(), key),
        content_type=FEED_CONTENT_TYPE,
    )


def plan_targets(show: ShowConfig, facts: Sequence[EpisodeFact]) -> list[PublicationTarget]:
    """Media targets in episode order."""
    return [media_target(show, fact) for fact in facts]
