"""
Utilities package for the Cryptsy exchange client.

This package provides the logging system: setup, a category-aware logger
adapter, formatters and filters.

Example Usage:
    from cryptsy.utils import get_logger, setup_logging

    setup_logging({'logging': {'level': 'DEBUG'}}, secrets=[private_key])

    logger = get_logger('cryptsy.exchange')
    logger.log_request('getmarkets')
"""

from .logger import (
    setup_logging,
    get_logger,
    shutdown_logging,
    register_secret,
    LoggerAdapter,
    LoggerManager,
    LogCategory,
)

from .log_formatter import (
    JsonFormatter,
    ColoredFormatter,
    CategoryFilter,
    SensitiveDataFilter,
)

__all__ = [
    'setup_logging',
    'get_logger',
    'shutdown_logging',
    'register_secret',
    'LoggerAdapter',
    'LoggerManager',
    'LogCategory',
    'JsonFormatter',
    'ColoredFormatter',
    'CategoryFilter',
    'SensitiveDataFilter',
]
