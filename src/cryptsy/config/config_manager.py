"""
Configuration for the Cryptsy exchange client.

Settings come from a YAML or JSON file, then ``CRYPTSY_*`` environment
variables (optionally seeded from a .env file) override individual fields.
The merged result is validated by pydantic models; every field except the
credentials has a default.
"""

import os
import json
from datetime import tzinfo
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from dateutil import tz
from dotenv import load_dotenv
from pydantic import BaseModel, Field, SecretStr, ValidationError, field_validator


class LogLevel(str, Enum):
    """Root log levels accepted in the logging section."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ExchangeSettings(BaseModel):
    """Exchange endpoint and credential settings."""
    public_key: Optional[str] = Field(default=None, description="Account public key")
    private_key: Optional[SecretStr] = Field(
        default=None,
        description="Account private key used to sign requests"
    )
    private_url: str = Field(
        default="https://www.cryptsy.com/api",
        description="Authenticated API endpoint"
    )
    public_url: str = Field(
        default="http://pubapi.cryptsy.com/api.php",
        description="Unauthenticated market data endpoint"
    )
    timeout: float = Field(default=30.0, gt=0, description="Request timeout in seconds")
    server_timezone: Optional[str] = Field(
        default=None,
        description="Zone attached to exchange timestamps; naive when unset"
    )

    @field_validator('private_url', 'public_url')
    @classmethod
    def validate_url(cls, v):
        if not v.startswith(('http://', 'https://')):
            raise ValueError("URL must start with http:// or https://")
        return v

    @field_validator('server_timezone')
    @classmethod
    def validate_server_timezone(cls, v):
        if v is not None and tz.gettz(v) is None:
            raise ValueError(f"Unknown timezone: {v}")
        return v

    def get_timezone(self) -> Optional[tzinfo]:
        """Resolve ``server_timezone`` to a tzinfo, or None when unset."""
        if self.server_timezone is None:
            return None
        return tz.gettz(self.server_timezone)

    @property
    def has_credentials(self) -> bool:
        return bool(self.public_key) and self.private_key is not None


class LoggingSettings(BaseModel):
    """Logging output settings."""
    level: LogLevel = Field(default=LogLevel.INFO, description="Root log level")
    console: bool = Field(default=True, description="Log to stdout")
    colors: bool = Field(default=True, description="Colorize console output")
    json_format: bool = Field(default=False, description="Emit console logs as JSON")
    file: bool = Field(default=False, description="Also log to a file")
    file_path: str = Field(default="logs/cryptsy.log", description="Path to log file")


class ClientConfig(BaseModel):
    """Complete client configuration."""
    exchange: ExchangeSettings = Field(default_factory=ExchangeSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    def to_logging_dict(self) -> Dict[str, Any]:
        """Render the logging section in the shape ``setup_logging`` expects."""
        settings = self.logging
        return {
            'logging': {
                'level': settings.level.value,
                'console': settings.console,
                'console_config': {
                    'colors': settings.colors,
                    'json': settings.json_format,
                },
                'file': settings.file,
                'file_config': {'path': settings.file_path},
            }
        }


class ConfigManager:
    """
    Loads, validates and holds the client configuration.

    Environment Variables:
        CRYPTSY_PUBLIC_KEY: Override public key
        CRYPTSY_PRIVATE_KEY: Override private key
        CRYPTSY_PRIVATE_URL: Override private endpoint
        CRYPTSY_TIMEOUT: Override request timeout
        CRYPTSY_SERVER_TIMEZONE: Override timestamp zone
        CRYPTSY_LOG_LEVEL: Override log level
    """

    # Variable name -> (section, field)
    ENV_MAPPINGS = {
        'CRYPTSY_PUBLIC_KEY': ('exchange', 'public_key'),
        'CRYPTSY_PRIVATE_KEY': ('exchange', 'private_key'),
        'CRYPTSY_PRIVATE_URL': ('exchange', 'private_url'),
        'CRYPTSY_TIMEOUT': ('exchange', 'timeout'),
        'CRYPTSY_SERVER_TIMEZONE': ('exchange', 'server_timezone'),
        'CRYPTSY_LOG_LEVEL': ('logging', 'level'),
    }

    FLOAT_FIELDS = [
        ('exchange', 'timeout'),
    ]

    def __init__(
        self,
        config_path: Optional[Union[str, Path]] = None,
        env_file: Optional[Union[str, Path]] = None
    ):
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to configuration file (YAML or JSON)
            env_file: Optional .env file loaded before overrides are applied.
                Variables already set in the environment win.
        """
        self._config_path: Optional[Path] = Path(config_path) if config_path else None
        self._env_file: Optional[Path] = Path(env_file) if env_file else None
        self._config: Optional[ClientConfig] = None
        self._raw_config: Dict[str, Any] = {}

    def load_config(self, config_path: Optional[Union[str, Path]] = None) -> ClientConfig:
        """
        Load configuration from file.

        Args:
            config_path: Path to configuration file. If not provided, uses the path
                        specified during initialization.

        Returns:
            ClientConfig: Validated configuration object

        Raises:
            FileNotFoundError: If configuration file does not exist
            ValueError: If the file format is invalid or validation fails
        """
        if config_path:
            self._config_path = Path(config_path)

        if not self._config_path:
            raise ValueError("No configuration path specified")

        if not self._config_path.exists():
            raise FileNotFoundError(
                f"Configuration file not found: {self._config_path}"
            )

        self._raw_config = self._load_file(self._config_path)
        return self._build()

    def load_from_env(self) -> ClientConfig:
        """Build configuration from defaults and environment variables only."""
        self._raw_config = {}
        return self._build()

    def _build(self) -> ClientConfig:
        if self._env_file:
            load_dotenv(self._env_file, override=False)

        self._apply_env_overrides()

        try:
            self._config = ClientConfig(**self._raw_config)
        except ValidationError as e:
            raise ValueError(f"Configuration validation failed: {e}") from e

        return self._config

    def _load_file(self, path: Path) -> Dict[str, Any]:
        """
        Load configuration from file based on extension.

        Raises:
            ValueError: If file format is not supported or cannot be parsed
        """
        suffix = path.suffix.lower()

        try:
            with open(path, 'r', encoding='utf-8') as f:
                if suffix in ['.yaml', '.yml']:
                    data = yaml.safe_load(f) or {}
                elif suffix == '.json':
                    data = json.load(f)
                else:
                    raise ValueError(
                        f"Unsupported configuration format: {suffix}. "
                        "Use .yaml, .yml, or .json"
                    )
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML format: {e}") from e
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON format: {e}") from e

        if not isinstance(data, dict):
            raise ValueError("Configuration root must be a mapping")
        return data

    def _apply_env_overrides(self) -> None:
        """
        Apply environment variable overrides to configuration.

        Environment variables take precedence over file configuration.
        """
        for env_var, (section, key) in self.ENV_MAPPINGS.items():
            value = os.getenv(env_var)
            if value is not None:
                converted_value = self._convert_env_value(env_var, value, section, key)

                if section not in self._raw_config or self._raw_config[section] is None:
                    self._raw_config[section] = {}

                self._raw_config[section][key] = converted_value

    def _convert_env_value(
        self, env_var: str, value: str, section: str, key: str
    ) -> Union[str, float]:
        """Convert environment variable string to appropriate type."""
        if (section, key) in self.FLOAT_FIELDS:
            try:
                return float(value)
            except ValueError:
                raise ValueError(
                    f"Environment variable {env_var} must be a number, got: {value}"
                )

        return value

    def get_config(self) -> ClientConfig:
        """
        Get the current configuration.

        Raises:
            ValueError: If no configuration is loaded
        """
        if not self._config:
            raise ValueError("No configuration loaded. Call load_config() first.")
        return self._config

    def get_exchange_params(self) -> ExchangeSettings:
        """Return the exchange section of the loaded configuration."""
        return self.get_config().exchange

    def get_logging_params(self) -> LoggingSettings:
        """Get logging parameters."""
        return self.get_config().logging

    def reload(self) -> ClientConfig:
        """Reload configuration from file."""
        return self.load_config(self._config_path)

    @property
    def is_loaded(self) -> bool:
        """True once a configuration has been built."""
        return self._config is not None


# Module-level shortcut
def load_config(
    config_path: Union[str, Path],
    env_file: Optional[Union[str, Path]] = None
) -> ClientConfig:
    """
    Load configuration from file.

    Args:
        config_path: Path to configuration file
        env_file: Optional .env file with credential overrides

    Returns:
        ClientConfig: Validated configuration object
    """
    manager = ConfigManager(config_path, env_file=env_file)
    return manager.load_config()
