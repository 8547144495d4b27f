"""Audio file inspection for castfeed."""

from castfeed.media.extractor import MetadataExtractor, read_duration
from castfeed.media.types import FEED_CONTENT_TYPE, MEDIA_TYPES, media_type_for

__all__ = [
    "MetadataExtractor",
    "read_duration",
    "MEDIA_TYPES",
    "FEED_CONTENT_TYPE",
    "media_type_for",
]
