"""XDG-compliant locations for castfeed files."""

from pathlib import Path

from platformdirs import user_config_dir

APP_NAME = "castfeed"


def get_config_dir() -> Path:
    """Get the castfeed configuration directory.

    Honors XDG_CONFIG_HOME on Linux (e.g. ~/.config/castfeed).
    """
    return Path(user_config_dir(APP_NAME))


def get_config_file() -> Path:
    """Get the path to the global config.yaml file."""
    return get_config_dir() / "config.yaml"
