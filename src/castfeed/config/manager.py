"""Configuration manager for loading and saving castfeed config."""

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from castfeed.config.defaults import DEFAULT_GLOBAL_CONFIG, get_default_config_content
from castfeed.config.schema import GlobalConfig, ShowConfig
from castfeed.utils.errors import ConfigNotFoundError, InvalidConfigError
from castfeed.utils.paths import get_config_dir, get_config_file

logger = logging.getLogger(__name__)


def _first_error_field(error: ValidationError) -> str | None:
    """Dotted location of the first pydantic error, if any."""
    errors = error.errors()
    if not errors:
        return None
    return ".".join(str(part) for part in errors[0]["loc"]) or None


class ConfigManager:
    """Manages castfeed configuration files."""

    def __init__(self, config_dir: Path | None = None) -> None:
        """Initialize the config manager.

        Args:
            config_dir: Optional custom config directory. Defaults to XDG config dir.
        """
        if config_dir is None:
            self.config_dir = get_config_dir()
            self.config_file = get_config_file()
        else:
            self.config_dir = config_dir
            self.config_file = config_dir / "config.yaml"

    def load_config(self) -> GlobalConfig:
        """Load and validate global configuration.

        Returns:
            Validated GlobalConfig instance

        Raises:
            InvalidConfigError: If config is invalid
        """
        if not self.config_file.exists():
            self._create_default_config()
            return DEFAULT_GLOBAL_CONFIG

        try:
            with open(self.config_file) as f:
                data = yaml.safe_load(f) or {}
            return GlobalConfig(**data)
        except ValidationError as e:
            raise InvalidConfigError(
                f"Invalid configuration in {self.config_file}: {e}",
                field=_first_error_field(e),
            ) from e
        except (yaml.YAMLError, TypeError) as e:
            raise InvalidConfigError(
                f"Invalid configuration in {self.config_file}: {e}"
            ) from e

    def save_config(self, config: GlobalConfig) -> None:
        """Save global configuration.

        Args:
            config: GlobalConfig instance to save
        """
        data = config.model_dump(mode="json")

        self.config_dir.mkdir(parents=True, exist_ok=True)

        with open(self.config_file, "w") as f:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)

    def set_value(self, key: str, value: str) -> GlobalConfig:
        """Set a single config value by dotted key and save.

        Args:
            key: Dotted key such as ``log_level`` or ``publish.upload_concurrency``
            value: Raw string value; pydantic coerces it to the field type

        Returns:
            The updated configuration

        Raises:
            InvalidConfigError: If the key is unknown or the value invalid
        """
        data = self.load_config().model_dump(mode="json")

        parts = key.split(".")
        section: dict[str, Any] = data
        for part in parts[:-1]:
            if not isinstance(section.get(part), dict):
                raise InvalidConfigError(f"Unknown config key: {key}", field=key)
            section = section[part]

        leaf = parts[-1]
        if leaf not in section and parts[0] != "show_defaults":
            raise InvalidConfigError(f"Unknown config key: {key}", field=key)
        section[leaf] = value

        try:
            config = GlobalConfig(**data)
        except ValidationError as e:
            raise InvalidConfigError(f"Invalid value for {key}: {value}", field=key) from e

        self.save_config(config)
        return config

    def load_show(
        self,
        show_file: Path | None = None,
        overrides: dict[str, Any] | None = None,
        config: GlobalConfig | None = None,
    ) -> ShowConfig:
        """Build a ShowConfig from config defaults, a show file and overrides.

        Precedence (lowest to highest): ``show_defaults`` from config.yaml,
        the show file, then explicit overrides. ``None`` overrides are ignored.

        Args:
            show_file: Optional YAML file with show fields
            overrides: Values supplied on the command line
            config: Global config to take defaults from (loaded if None)

        Returns:
            ShowConfig instance

        Raises:
            ConfigNotFoundError: If show_file doesn't exist
            InvalidConfigError: If the merged data is not a valid show config
        """
        config = config or self.load_config()
        data: dict[str, Any] = dict(config.show_defaults)

        if show_file is not None:
            if not show_file.exists():
                raise ConfigNotFoundError(f"Show file not found: {show_file}")
            try:
                with open(show_file) as f:
                    file_data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise InvalidConfigError(f"Invalid show file {show_file}: {e}") from e
            if not isinstance(file_data, dict):
                raise InvalidConfigError(f"Show file {show_file} must contain a mapping")
            data.update(file_data)

        for name, value in (overrides or {}).items():
            if value is not None:
                data[name] = value

        logger.debug("Show config fields: %s", sorted(data))

        try:
            return ShowConfig(**data)
        except ValidationError as e:
            field = _first_error_field(e)
            raise InvalidConfigError(
                f"Invalid show configuration ({field}): {e.errors()[0]['msg']}",
                field=field,
            ) from e

    def _create_default_config(self) -> None:
        """Create default config.yaml file."""
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.config_file.write_text(get_default_config_content())
