"""Tests for ConfigManager."""

from pathlib import Path

import pytest
import yaml

from castfeed.config.manager import ConfigManager
from castfeed.config.schema import GlobalConfig
from castfeed.utils.errors import ConfigNotFoundError, InvalidConfigError


@pytest.fixture
def manager(tmp_path: Path) -> ConfigManager:
    return ConfigManager(config_dir=tmp_path / "config")


def _write_yaml(path: Path, data: object) -> Path:
    with open(path, "w") as f:
        yaml.safe_dump(data, f)
    return path


class TestConfigManager:
    """Tests for global config handling."""

    def test_init_with_custom_dir(self, tmp_path: Path) -> None:
        """Test ConfigManager initialization with custom directory."""
        manager = ConfigManager(config_dir=tmp_path)
        assert manager.config_dir == tmp_path
        assert manager.config_file == tmp_path / "config.yaml"

    def test_load_config_creates_default_if_missing(self, manager: ConfigManager) -> None:
        """Test that load_config creates default config if file doesn't exist."""
        config = manager.load_config()

        assert isinstance(config, GlobalConfig)
        assert manager.config_file.exists()
        assert config.log_level == "WARNING"

    def test_default_file_parses_to_defaults(self, manager: ConfigManager) -> None:
        """Test the written template loads back as the default config."""
        manager.load_config()

        assert manager.load_config() == GlobalConfig()

    def test_load_config_from_existing_file(self, tmp_path: Path) -> None:
        """Test loading config from existing file."""
        _write_yaml(
            tmp_path / "config.yaml",
            {"log_level": "INFO", "publish": {"upload_concurrency": 8}},
        )

        config = ConfigManager(config_dir=tmp_path).load_config()

        assert config.log_level == "INFO"
        assert config.publish.upload_concurrency == 8
        assert config.publish.extract_concurrency == 4

    def test_load_invalid_config_names_field(self, tmp_path: Path) -> None:
        """Test validation errors report the failing field."""
        _write_yaml(tmp_path / "config.yaml", {"publish": {"upload_concurrency": 0}})

        with pytest.raises(InvalidConfigError) as exc_info:
            ConfigManager(config_dir=tmp_path).load_config()

        assert exc_info.value.field == "publish.upload_concurrency"

    def test_load_malformed_yaml(self, tmp_path: Path) -> None:
        """Test unparseable YAML raises InvalidConfigError."""
        (tmp_path / "config.yaml").write_text("log_level: [unclosed\n")

        with pytest.raises(InvalidConfigError):
            ConfigManager(config_dir=tmp_path).load_config()

    def test_save_config(self, manager: ConfigManager) -> None:
        """Test saving configuration."""
        manager.save_config(GlobalConfig(log_level="DEBUG"))

        with open(manager.config_file) as f:
            data = yaml.safe_load(f)
        assert data["log_level"] == "DEBUG"
        assert data["publish"]["upload_concurrency"] == 4

    def test_set_value(self, manager: ConfigManager) -> None:
        """Test dotted keys update nested settings."""
        manager.set_value("publish.upload_concurrency", "8")
        manager.set_value("publish.public_read", "true")

        config = manager.load_config()
        assert config.publish.upload_concurrency == 8
        assert config.publish.public_read is True

    def test_set_show_default(self, manager: ConfigManager) -> None:
        """Test arbitrary keys are allowed under show_defaults."""
        manager.set_value("show_defaults.bucket", "shared-bucket")

        assert manager.load_config().show_defaults == {"bucket": "shared-bucket"}

    def test_set_unknown_key(self, manager: ConfigManager) -> None:
        """Test unknown keys are rejected."""
        with pytest.raises(InvalidConfigError, match="Unknown config key"):
            manager.set_value("publish.workers", "3")

        with pytest.raises(InvalidConfigError, match="Unknown config key"):
            manager.set_value("log_level.deep", "3")

    def test_set_invalid_value(self, manager: ConfigManager) -> None:
        """Test values are validated before saving."""
        with pytest.raises(InvalidConfigError) as exc_info:
            manager.set_value("log_level", "LOUD")

        assert exc_info.value.field == "log_level"
        assert manager.load_config().log_level == "WARNING"


class TestLoadShow:
    """Tests for building a ShowConfig."""

    def test_overrides_only(self, manager: ConfigManager) -> None:
        """Test a show from flags alone."""
        show = manager.load_show(overrides={"title": "My Show", "bucket": "bkt"})

        assert show.title == "My Show"
        assert show.bucket == "bkt"
        assert show.region == "us-east-1"

    def test_from_file(self, manager: ConfigManager, tmp_path: Path) -> None:
        """Test fields are read from the show file."""
        show_file = _write_yaml(
            tmp_path / "show.yaml",
            {"title": "File Show", "author": "Jane", "bucket": "bkt", "block": False},
        )

        show = manager.load_show(show_file)

        assert show.title == "File Show"
        assert show.author == "Jane"
        assert show.block is False

    def test_precedence(self, manager: ConfigManager, tmp_path: Path) -> None:
        """Test defaults < file < overrides, with None overrides ignored."""
        manager.set_value("show_defaults.bucket", "default-bucket")
        manager.set_value("show_defaults.region", "eu-west-1")
        show_file = _write_yaml(
            tmp_path / "show.yaml", {"title": "File Show", "region": "eu-central-1"}
        )

        show = manager.load_show(
            show_file, overrides={"title": "Flag Show", "region": None, "author": None}
        )

        assert show.title == "Flag Show"
        assert show.region == "eu-central-1"
        assert show.bucket == "default-bucket"
        assert show.author is None

    def test_missing_show_file(self, manager: ConfigManager, tmp_path: Path) -> None:
        """Test a missing show file raises ConfigNotFoundError."""
        with pytest.raises(ConfigNotFoundError, match="not found"):
            manager.load_show(tmp_path / "nope.yaml")

    def test_show_file_not_a_mapping(self, manager: ConfigManager, tmp_path: Path) -> None:
        """Test a list at the top level is rejected."""
        show_file = _write_yaml(tmp_path / "show.yaml", ["title", "bucket"])

        with pytest.raises(InvalidConfigError, match="mapping"):
            manager.load_show(show_file)

    def test_missing_title(self, manager: ConfigManager) -> None:
        """Test a show without a title names the field."""
        with pytest.raises(InvalidConfigError) as exc_info:
            manager.load_show(overrides={"bucket": "bkt"})

        assert exc_info.value.field == "title"

    def test_invalid_explicit_flag(self, manager: ConfigManager, tmp_path: Path) -> None:
        """Test enum-like fields are validated."""
        show_file = _write_yaml(tmp_path / "show.yaml", {"title": "X", "explicit": "maybe"})

        with pytest.raises(InvalidConfigError) as exc_info:
            manager.load_show(show_file)

        assert exc_info.value.field == "explicit"

    @pytest.mark.parametrize(("text", "expected"), [("yes", "yes"), ("no", "no")])
    def test_unquoted_explicit_flag(
        self, manager: ConfigManager, tmp_path: Path, text: str, expected: str
    ) -> None:
        """Test unquoted yes/no in a show file, which YAML reads as booleans."""
        show_file = tmp_path / "show.yaml"
        show_file.write_text(f"title: X\nbucket: bkt\nexplicit: {text}\n")

        show = manager.load_show(show_file)

        assert show.explicit == expected

    def test_uses_given_config(self, manager: ConfigManager) -> None:
        """Test show defaults come from the config passed in."""
        config = GlobalConfig(show_defaults={"bucket": "passed-in"})

        show = manager.load_show(overrides={"title": "X"}, config=config)

        assert show.bucket == "passed-in"
        assert not manager.config_file.exists()
