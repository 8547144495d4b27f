"""Configuration loading for castfeed."""

from castfeed.config.manager import ConfigManager
from castfeed.config.schema import GlobalConfig, PublishSettings, ShowConfig

__all__ = ["ConfigManager", "GlobalConfig", "PublishSettings", "ShowConfig"]
