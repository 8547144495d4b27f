"""Feed models and RSS assembly for castfeed."""

from castfeed.feeds.assembler import FeedAssembler
from castfeed.feeds.models import (
    EpisodeFact,
    FeedDocument,
    FeedEntry,
    PublicationTarget,
    TargetKind,
)

__all__ = [
    "FeedAssembler",
    "EpisodeFact",
    "FeedDocument",
    "FeedEntry",
    "PublicationTarget",
    "TargetKind",
]
