"""YAML configuration loading and validation.

Configuration file structure:

    database:
      path: ~/.notion-attach/files.db
    notion:
      token_v2: "..."
      file_token: "..."
      page_id: "2131b10cebf64938a1277089ff02dbe4"
      user_agent: "Mozilla/5.0 ..."

Secrets may be left out of the file and supplied through the environment
instead (see src.notion_api.auth).
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from src.notion_api.auth import Authenticator, Credentials
from src.notion_api.errors import FileSystemError

from .errors import ConfigError, ConfigNotFoundError
from .models import AppConfig, NotionSettings


class ConfigLoader:
    """Handles configuration file loading, validation, and saving."""

    DEFAULT_CONFIG_PATH = '~/.notion-attach/config.yaml'
    DEFAULT_DATABASE_PATH = '~/.notion-attach/files.db'

    NOTION_FIELDS = ('token_v2', 'file_token', 'page_id', 'user_agent')

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> AppConfig:
        """Load and parse configuration from a YAML file.

        A missing file at the default location yields an empty configuration
        so that an environment-only setup works. A missing file that was
        asked for explicitly is an error.

        Args:
            config_path: Path to the YAML file (defaults to DEFAULT_CONFIG_PATH)

        Returns:
            AppConfig with parsed configuration

        Raises:
            ConfigNotFoundError: If an explicit config_path does not exist
            FileSystemError: If the file cannot be read
            ConfigError: If the configuration is invalid or malformed
        """
        explicit = config_path is not None
        path = os.path.expanduser(config_path or cls.DEFAULT_CONFIG_PATH)

        try:
            with open(path, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            if explicit:
                raise ConfigNotFoundError(path)
            return AppConfig(database_path=cls.DEFAULT_DATABASE_PATH)
        except PermissionError:
            raise FileSystemError(path, 'read', 'Permission denied')
        except OSError as e:
            raise FileSystemError(path, 'read', str(e))

        try:
            config_dict = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML syntax: {str(e)}")

        if config_dict is None:
            return AppConfig(database_path=cls.DEFAULT_DATABASE_PATH)

        if not isinstance(config_dict, dict):
            raise ConfigError(
                f"Configuration must be a YAML dictionary, got {type(config_dict).__name__}"
            )

        return cls._parse_config(config_dict)

    @classmethod
    def resolve_credentials(cls, config: AppConfig) -> Credentials:
        """Merge file values with environment overrides.

        Raises:
            InvalidCredentialsError: If a required credential is missing
        """
        auth = Authenticator(
            token_v2=config.notion.token_v2,
            file_token=config.notion.file_token,
            page_id=config.notion.page_id,
            user_agent=config.notion.user_agent,
        )
        return auth.get_credentials()

    @classmethod
    def database_file(cls, config: AppConfig) -> Path:
        """Absolute path of the record database."""
        return Path(config.database_path).expanduser()

    @classmethod
    def _parse_config(cls, config_dict: Dict[str, Any]) -> AppConfig:
        """Parse and validate a configuration dictionary.

        Raises:
            ConfigError: If configuration is invalid
        """
        database_raw = config_dict.get('database') or {}
        if not isinstance(database_raw, dict):
            raise ConfigError(
                f"must be a dictionary, got {type(database_raw).__name__}",
                'database'
            )

        database_path = database_raw.get('path', cls.DEFAULT_DATABASE_PATH)
        if not isinstance(database_path, str) or not database_path.strip():
            raise ConfigError("must be a non-empty string", 'database.path')

        notion_raw = config_dict.get('notion') or {}
        if not isinstance(notion_raw, dict):
            raise ConfigError(
                f"must be a dictionary, got {type(notion_raw).__name__}",
                'notion'
            )

        values: Dict[str, Optional[str]] = {}
        for name in cls.NOTION_FIELDS:
            value = notion_raw.get(name)
            if value is None:
                values[name] = None
                continue
            if not isinstance(value, str):
                raise ConfigError(
                    f"must be a string, got {type(value).__name__}",
                    f'notion.{name}'
                )
            values[name] = value.strip() or None

        return AppConfig(
            database_path=database_path.strip(),
            notion=NotionSettings(**values),
        )
