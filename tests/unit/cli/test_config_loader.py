"""Unit tests for cli.config module."""

import pytest

from src.cli.config import ConfigLoader
from src.cli.errors import ConfigError, ConfigNotFoundError
from src.cli.models import AppConfig, NotionSettings
from src.notion_api.errors import InvalidCredentialsError


VALID_CONFIG = """
database:
  path: /data/files.db
notion:
  token_v2: tok
  file_token: ft
  page_id: 2131b10cebf64938a1277089ff02dbe4
"""


class TestConfigLoaderLoad:
    """Test cases for ConfigLoader.load."""

    def test_load_valid_config(self, tmp_path):
        """All sections are parsed into AppConfig."""
        path = tmp_path / "config.yaml"
        path.write_text(VALID_CONFIG)

        config = ConfigLoader.load(str(path))

        assert config.database_path == "/data/files.db"
        assert config.notion.token_v2 == "tok"
        assert config.notion.file_token == "ft"
        assert config.notion.page_id == "2131b10cebf64938a1277089ff02dbe4"
        assert config.notion.user_agent is None

    def test_missing_explicit_file_raises(self, tmp_path):
        """An explicitly named file that does not exist is an error."""
        with pytest.raises(ConfigNotFoundError):
            ConfigLoader.load(str(tmp_path / "nope.yaml"))

    def test_missing_default_file_yields_empty_config(self, tmp_path, monkeypatch):
        """Without a file at the default location, defaults are used."""
        monkeypatch.setattr(ConfigLoader, "DEFAULT_CONFIG_PATH", str(tmp_path / "absent.yaml"))

        config = ConfigLoader.load()

        assert config.database_path == ConfigLoader.DEFAULT_DATABASE_PATH
        assert config.notion == NotionSettings()

    def test_database_path_defaults(self, tmp_path):
        """The database section is optional."""
        path = tmp_path / "config.yaml"
        path.write_text("notion:\n  token_v2: tok\n")

        assert ConfigLoader.load(str(path)).database_path == ConfigLoader.DEFAULT_DATABASE_PATH

    def test_invalid_yaml_raises(self, tmp_path):
        """Broken YAML is a ConfigError."""
        path = tmp_path / "config.yaml"
        path.write_text("notion: [unclosed")

        with pytest.raises(ConfigError):
            ConfigLoader.load(str(path))

    def test_non_mapping_raises(self, tmp_path):
        """A top-level list is rejected."""
        path = tmp_path / "config.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ConfigError):
            ConfigLoader.load(str(path))

    def test_non_string_token_names_field(self, tmp_path):
        """A wrongly typed value names its field."""
        path = tmp_path / "config.yaml"
        path.write_text("notion:\n  token_v2: 12345\n")

        with pytest.raises(ConfigError) as exc_info:
            ConfigLoader.load(str(path))

        assert exc_info.value.config_field == "notion.token_v2"


class TestResolveCredentials:
    """Test cases for ConfigLoader.resolve_credentials."""

    def test_environment_overrides_file(self, monkeypatch):
        """Environment values replace file values."""
        monkeypatch.setenv("NOTION_FILE_TOKEN", "env-ft")
        config = AppConfig(
            database_path="db",
            notion=NotionSettings(token_v2="tok", file_token="ft", page_id="p"),
        )

        creds = ConfigLoader.resolve_credentials(config)

        assert creds.file_token == "env-ft"
        assert creds.token_v2 == "tok"

    def test_missing_credentials_raise(self):
        """Missing secrets raise InvalidCredentialsError."""
        with pytest.raises(InvalidCredentialsError):
            ConfigLoader.resolve_credentials(AppConfig(database_path="db"))
