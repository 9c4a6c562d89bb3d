"""
Configuration package for the Cryptsy exchange client.

This package provides configuration management with support for YAML/JSON files,
environment variable overrides, and Pydantic-based validation.
"""

from .config_manager import (
    ConfigManager,
    ClientConfig,
    ExchangeSettings,
    LoggingSettings,
    LogLevel,
    load_config,
)

__all__ = [
    'ConfigManager',
    'ClientConfig',
    'ExchangeSettings',
    'LoggingSettings',
    'LogLevel',
    'load_config',
]
