"""Supported audio formats.

Adding a format is an edit to MEDIA_TYPES; nothing else dispatches on type.
"""

MEDIA_TYPES: dict[str, str] = {
    ".aac": "audio/aac",
    ".flac": "audio/flac",
    ".m4a": "audio/mp4",
    ".m4b": "audio/mp4",
    ".mp3": "audio/mpeg",
    ".mp4": "audio/mp4",
    ".ogg": "audio/ogg",
    ".opus": "audio/opus",
    ".wav": "audio/wav",
}

FEED_CONTENT_TYPE = "application/rss+xml; charset=utf-8"


def media_type_for(extension: str) -> str | None:
    """Content type for a file extension, or None if unsupported.

    Args:
        extension: Extension including the dot; case is ignored
    """
    return MEDIA_TYPES.get(extension.lower())
