"""Custom exceptions for castfeed."""

from pathlib import Path


class CastfeedError(Exception):
    """Base exception for all castfeed errors."""

    pass


class ConfigError(CastfeedError):
    """Configuration-related errors."""

    pass


class InvalidConfigError(ConfigError):
    """Invalid show or global configuration.

    Attributes:
        field: Name of the offending field, when known
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class ConfigNotFoundError(ConfigError):
    """Configuration file not found."""

    pass


class MediaError(CastfeedError):
    """Errors reading an input media file."""

    def __init__(self, message: str, path: Path) -> None:
        super().__init__(message)
        self.path = path


class MediaIOError(MediaError):
    """Media file is missing or unreadable."""

    pass


class UnsupportedFormatError(MediaError):
    """Media file extension is not a supported audio format."""

    def __init__(self, message: str, path: Path, extension: str) -> None:
        super().__init__(message, path)
        self.extension = extension


class UploadError(CastfeedError):
    """Object store failure for a single key."""

    def __init__(self, message: str, key: str) -> None:
        super().__init__(message)
        self.key = key


class StoreAuthenticationError(UploadError):
    """Credentials rejected by the object store."""

    pass


class StoreNotFoundError(UploadError):
    """Bucket or container does not exist."""

    pass


class StoreConnectionError(UploadError):
    """Could not reach the object store."""

    pass


class StoreTimeoutError(UploadError):
    """Upload did not complete in time."""

    pass


class ContractViolationError(CastfeedError):
    """Internal invariant broken by a caller. Never retried."""

    pass
