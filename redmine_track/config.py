"""
Configuration for the Redmine time tracking client.

The configuration holds everything needed to talk to a Redmine server on
behalf of the user. It is stored as JSON in ``~/.track`` after a
successful login.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional
from urllib.parse import urlparse

from .models import CustomField, User


CONFIG_FILE_NAME = '.track'


class ConfigError(Exception):
    """Raised when the configuration cannot be created, read or written."""
    pass


def default_config_path() -> Path:
    """Return ``~/.track``."""
    try:
        return Path.home() / CONFIG_FILE_NAME
    except RuntimeError:
        raise ConfigError("Your home directory could not be found.")


def normalize_base_url(base_url: str) -> str:
    """Ensure the base URL ends with a slash so relative paths join below it."""
    base_url = base_url.strip()
    return base_url if base_url.endswith('/') else base_url + '/'


@dataclass
class Config:
    """
    Connection settings for a Redmine server.

    Attributes:
        key: API key of the user
        base_url: Base URL of the Redmine installation
        login: Login name of the user
        user_id: Id of the user (time entries are filtered by it)
        custom_fields: Custom field definitions overriding the server list
    """
    key: str
    base_url: str
    login: str
    user_id: int
    custom_fields: List[CustomField] = field(default_factory=list)

    def __post_init__(self):
        self.base_url = normalize_base_url(self.base_url)

    @classmethod
    def from_user(cls, base_url: str, user: User) -> 'Config':
        """
        Create a configuration for a freshly authenticated user.

        Raises:
            ConfigError: If the user has no API key
        """
        if not user.api_key:
            raise ConfigError(
                "The API key is missing, please create one in your user settings."
            )
        return cls(key=user.api_key, base_url=base_url, login=user.login, user_id=user.id)

    def validate(self):
        """
        Validate configuration.

        Raises:
            ValueError: If configuration is invalid
        """
        if not self.key:
            raise ValueError("API key cannot be empty")

        parsed = urlparse(self.base_url)
        if parsed.scheme not in ('http', 'https') or not parsed.netloc:
            raise ValueError(f"Base URL must be an http(s) URL, got: {self.base_url}")

        if self.user_id <= 0:
            raise ValueError(f"User id must be positive, got: {self.user_id}")

    def to_dict(self) -> dict:
        return {
            'key': self.key,
            'baseUrl': self.base_url,
            'login': self.login,
            'userId': self.user_id,
            'customFields': [f.to_dict() for f in self.custom_fields],
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Config':
        try:
            return cls(
                key=data['key'],
                base_url=data['baseUrl'],
                login=data['login'],
                user_id=int(data['userId']),
                custom_fields=[CustomField.from_dict(f) for f in data.get('customFields', [])],
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigError(f"The configuration could not be (de)serialized: {e}")


def load_config(path: Optional[Path] = None) -> Optional[Config]:
    """
    Load the configuration from disk.

    Args:
        path: Config file (defaults to ``~/.track``)

    Returns:
        The configuration, or None if the file does not exist yet

    Raises:
        ConfigError: If the file cannot be read or parsed
    """
    path = Path(path) if path else default_config_path()
    if not path.exists():
        return None

    try:
        data = json.loads(path.read_text(encoding='utf-8'))
    except OSError as e:
        raise ConfigError(f"The configuration could not be read: {e}")
    except json.JSONDecodeError as e:
        raise ConfigError(f"The configuration could not be (de)serialized: {e}")

    if not isinstance(data, dict):
        raise ConfigError("The configuration could not be (de)serialized: expected an object")
    return Config.from_dict(data)


def store_config(config: Config, path: Optional[Path] = None) -> Path:
    """
    Store the configuration on disk.

    Returns:
        The path the configuration was written to

    Raises:
        ConfigError: If the file cannot be written
    """
    path = Path(path) if path else default_config_path()
    try:
        path.write_text(json.dumps(config.to_dict(), indent=2), encoding='utf-8')
    except OSError as e:
        raise ConfigError(f"The configuration could not be written: {e}")
    return path
