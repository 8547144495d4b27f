"""Utility functions and helpers for castfeed."""

from castfeed.utils.errors import (
    CastfeedError,
    ConfigError,
    ConfigNotFoundError,
    ContractViolationError,
    InvalidConfigError,
    MediaError,
    MediaIOError,
    StoreAuthenticationError,
    StoreConnectionError,
    StoreNotFoundError,
    StoreTimeoutError,
    UnsupportedFormatError,
    UploadError,
)
from castfeed.utils.paths import (
    get_config_dir,
    get_config_file,
)

__all__ = [
    # Errors
    "CastfeedError",
    "ConfigError",
    "InvalidConfigError",
    "ConfigNotFoundError",
    "MediaError",
    "MediaIOError",
    "UnsupportedFormatError",
    "UploadError",
    "StoreAuthenticationError",
    "StoreNotFoundError",
    "StoreConnectionError",
    "StoreTimeoutError",
    "ContractViolationError",
    # Paths
    "get_config_dir",
    "get_config_file",
]
