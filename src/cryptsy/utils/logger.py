"""
Logging system for the Cryptsy exchange client.

This module provides logging setup, a category-aware logger adapter and
correlation-id scoping. Correlation ids live in a context variable, so
concurrent calls on one event loop each keep their own id.

Example Usage:
    from cryptsy.utils import get_logger, setup_logging
    from cryptsy.config import load_config

    config = load_config('config/cryptsy.yaml')
    setup_logging(config.to_logging_dict(), secrets=[key])

    logger = get_logger('cryptsy.exchange')

    with logger.correlation_context():
        logger.log_request('getinfo')
"""

import logging
import sys
import threading
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from enum import Enum
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Union

from .log_formatter import (
    CategoryFilter,
    ColoredFormatter,
    JsonFormatter,
    SensitiveDataFilter,
)

_correlation_id: ContextVar[Optional[str]] = ContextVar('cryptsy_correlation_id', default=None)

DEFAULT_LOG_PATH = 'logs/cryptsy.log'


class LogCategory(Enum):
    """Which part of the client a record comes from."""
    REQUESTS = "REQUESTS"
    ORDERS = "ORDERS"
    SYSTEM = "SYSTEM"
    GENERAL = "GENERAL"


class LoggerAdapter(logging.LoggerAdapter):
    """
    Adapter that stamps records with the active correlation id and carries
    category-specific helpers for the client's events.
    """

    def __init__(self, logger: logging.Logger, extra: Optional[Dict[str, Any]] = None):
        super().__init__(logger, extra or {})

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        extra = kwargs.setdefault('extra', {})

        correlation_id = _correlation_id.get()
        if correlation_id is not None:
            extra.setdefault('correlation_id', correlation_id)

        for key, value in self.extra.items():
            extra.setdefault(key, value)

        return msg, kwargs

    @property
    def correlation_id(self) -> Optional[str]:
        return _correlation_id.get()

    @contextmanager
    def correlation_context(self, correlation_id: Optional[str] = None) -> Iterator[str]:
        """
        Scope a correlation id to the current task or thread.

        Args:
            correlation_id: Id to use. A random UUID when omitted.
        """
        token = _correlation_id.set(correlation_id or str(uuid.uuid4()))
        try:
            yield _correlation_id.get()
        finally:
            _correlation_id.reset(token)

    def _log_event(
        self,
        category: LogCategory,
        level: int,
        msg: str,
        data_key: str,
        data: Any
    ) -> None:
        self.log(level, msg, extra={'category': category.value, data_key: data})

    def log_request(self, method: str, msg: str = "", level: int = logging.DEBUG) -> None:
        """
        Log an outgoing API call.

        Only the wire method name is recorded; parameters, signatures and keys
        are never passed here.
        """
        self._log_event(LogCategory.REQUESTS, level, msg or f"Request: {method}", 'method', method)

    def log_order_event(
        self,
        event_data: Dict[str, Any],
        msg: str = "",
        level: int = logging.INFO
    ) -> None:
        """Log an order placement or cancellation."""
        if not msg:
            action = event_data.get('action', 'unknown')
            msg = f"Order {action}: market {event_data.get('market_id', 'all')}"
        self._log_event(LogCategory.ORDERS, level, msg, 'order_data', event_data)

    def log_system_event(
        self,
        event_data: Dict[str, Any],
        msg: str = "",
        level: int = logging.INFO
    ) -> None:
        msg = msg or f"System: {event_data.get('event_type', 'unknown')}"
        self._log_event(LogCategory.SYSTEM, level, msg, 'system_data', event_data)


def _to_level(level: Union[str, int], default: int = logging.INFO) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).upper())
    return resolved if isinstance(resolved, int) else default


class LoggerManager:
    """
    Process-wide owner of the client's handlers and adapters.

    Handlers are attached to the root logger once; every one of them carries
    the shared secret filter so masking applies regardless of formatter.
    """

    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    instance = super().__new__(cls)
                    instance._loggers = {}
                    instance._handlers = []
                    instance._secret_filter = SensitiveDataFilter()
                    instance._setup_done = False
                    cls._instance = instance
        return cls._instance

    _loggers: Dict[str, LoggerAdapter]
    _handlers: List[logging.Handler]
    _secret_filter: SensitiveDataFilter
    _setup_done: bool

    def setup_logging(
        self,
        config: Optional[Dict[str, Any]] = None,
        secrets: Optional[Iterable[str]] = None
    ) -> None:
        """
        Install handlers according to ``config``.

        Secrets are registered on every call; handlers only on the first call
        after startup or ``shutdown``.

        Args:
            config: Dictionary with a ``logging`` section, as produced by
                ``ClientConfig.to_logging_dict``.
            secrets: Strings to mask in every emitted record.
        """
        for secret in secrets or []:
            self.register_secret(secret)

        if self._setup_done:
            return

        settings = (config or {}).get('logging', {})
        level = settings.get('level', 'INFO')
        logging.getLogger().setLevel(_to_level(level))

        if settings.get('console', True):
            self._install(self._console_handler(settings.get('console_config', {})))
        if settings.get('file', False):
            self._install(self._file_handler(settings.get('file_config', {})))

        self._setup_done = True

        self.get_logger('cryptsy.system').log_system_event({
            'event_type': 'logging_initialized',
            'level': level,
            'handlers': [type(handler).__name__ for handler in self._handlers]
        }, msg="Logging system initialized")

    def _install(self, handler: logging.Handler) -> None:
        handler.addFilter(self._secret_filter)
        logging.getLogger().addHandler(handler)
        self._handlers.append(handler)

    @staticmethod
    def _console_handler(config: Dict[str, Any]) -> logging.Handler:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(_to_level(config.get('level', 'DEBUG')))

        if config.get('json', False):
            handler.setFormatter(JsonFormatter())
        else:
            handler.setFormatter(ColoredFormatter(use_colors=config.get('colors', True)))

        if config.get('categories'):
            handler.addFilter(CategoryFilter(include_categories=config['categories']))
        return handler

    @staticmethod
    def _file_handler(config: Dict[str, Any]) -> logging.Handler:
        path = Path(config.get('path', DEFAULT_LOG_PATH))
        path.parent.mkdir(parents=True, exist_ok=True)

        # Files are always JSON lines
        handler = RotatingFileHandler(
            filename=str(path),
            maxBytes=config.get('max_bytes', 10 * 1024 * 1024),
            backupCount=config.get('backup_count', 10),
            encoding='utf-8'
        )
        handler.setLevel(_to_level(config.get('level', 'INFO')))
        handler.setFormatter(JsonFormatter())
        return handler

    def register_secret(self, secret: str) -> None:
        """Mask ``secret`` on every handler, present and future."""
        self._secret_filter.add_secret(secret)

    @property
    def secret_filter(self) -> SensitiveDataFilter:
        return self._secret_filter

    def get_logger(self, name: str) -> LoggerAdapter:
        adapter = self._loggers.get(name)
        if adapter is None:
            adapter = self._loggers[name] = LoggerAdapter(logging.getLogger(name))
        return adapter

    def shutdown(self) -> None:
        """Detach and close every handler installed by ``setup_logging``."""
        root = logging.getLogger()
        while self._handlers:
            handler = self._handlers.pop()
            root.removeHandler(handler)
            handler.close()
        self._setup_done = False


_logger_manager = LoggerManager()


def setup_logging(
    config: Optional[Dict[str, Any]] = None,
    secrets: Optional[Iterable[str]] = None
) -> None:
    """
    Setup the logging system.

    Example:
        setup_logging({
            'logging': {
                'level': 'INFO',
                'console': True,
                'file': True,
                'file_config': {'path': 'logs/cryptsy.log'}
            }
        }, secrets=[private_key])
    """
    _logger_manager.setup_logging(config, secrets)


def register_secret(secret: str) -> None:
    """Register a credential to be masked in all log output."""
    _logger_manager.register_secret(secret)


def get_logger(name: str) -> LoggerAdapter:
    """Get the category-aware adapter for ``name``."""
    return _logger_manager.get_logger(name)


def shutdown_logging() -> None:
    _logger_manager.shutdown()
