"""
Log formatters and filters for the exchange client.

Console records are rendered as colored text, file records as one JSON object
per line. Filters select records by category and mask credentials before a
record reaches any handler.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional

_STANDARD_ATTRS = {
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname',
    'filename', 'module', 'exc_info', 'exc_text', 'stack_info',
    'lineno', 'funcName', 'created', 'msecs', 'relativeCreated',
    'thread', 'threadName', 'processName', 'process', 'getMessage',
    'correlation_id', 'category', 'asctime', 'taskName'
}


def _extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _STANDARD_ATTRS and not key.startswith('_')
    }


class JsonFormatter(logging.Formatter):
    """
    One JSON object per record, with any extra fields collected under ``data``.

    Example output:
    {
        "timestamp": "2014-01-27T10:30:00.123456+00:00",
        "level": "INFO",
        "logger": "cryptsy.exchange.exchange_client",
        "correlation_id": "5f0c9a2e-4c1b-4d4e-9a55-0d3b2f1e7c44",
        "message": "Creating Buy order",
        "category": "ORDERS",
        "data": {...}
    }
    """

    def __init__(self, include_extra: bool = True, indent: Optional[int] = None):
        super().__init__()
        self.include_extra = include_extra
        self.indent = indent

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }

        if getattr(record, 'correlation_id', None):
            log_data['correlation_id'] = record.correlation_id

        if getattr(record, 'category', None):
            log_data['category'] = record.category

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        if self.include_extra:
            extra_data = _extra_fields(record)
            if extra_data:
                log_data['data'] = extra_data

        return json.dumps(log_data, indent=self.indent, default=str)


class ColoredFormatter(logging.Formatter):
    """
    Human-readable console lines with the level name highlighted by ANSI color.

    Records without a category are shown as ``GENERAL``.
    """

    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
    }

    RESET = '\033[0m'

    DEFAULT_FORMAT = '%(asctime)s | %(levelname)-8s | %(category)s | %(name)s | %(message)s'

    def __init__(
        self,
        fmt: Optional[str] = None,
        datefmt: Optional[str] = None,
        use_colors: bool = True
    ):
        super().__init__(fmt or self.DEFAULT_FORMAT, datefmt)
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        if not hasattr(record, 'category'):
            record.category = 'GENERAL'

        formatted = super().format(record)
        if not self.use_colors:
            return formatted

        level_color = self.COLORS.get(record.levelname, self.RESET)
        return formatted.replace(
            record.levelname, f"{level_color}{record.levelname}{self.RESET}", 1
        )


class CategoryFilter(logging.Filter):
    """
    Pass or drop records by their ``category`` attribute.

    Exclusion wins over inclusion; records without a category count as
    ``GENERAL``.
    """

    def __init__(
        self,
        include_categories: Optional[Iterable[str]] = None,
        exclude_categories: Optional[Iterable[str]] = None
    ):
        super().__init__()
        self.include_categories = set(include_categories) if include_categories else None
        self.exclude_categories = set(exclude_categories) if exclude_categories else set()

    def filter(self, record: logging.LogRecord) -> bool:
        category = getattr(record, 'category', 'GENERAL')

        if category in self.exclude_categories:
            return False

        if self.include_categories is not None:
            return category in self.include_categories

        return True


class SensitiveDataFilter(logging.Filter):
    """
    Mask registered secrets wherever they appear in a record.

    The message is rendered once, masked, and frozen into ``record.msg`` so
    formatters never see the original arguments.
    """

    MASK = '***'

    def __init__(self, secrets: Optional[Iterable[str]] = None):
        super().__init__()
        self._secrets = set()
        for secret in secrets or []:
            self.add_secret(secret)

    def add_secret(self, secret: str) -> None:
        if secret:
            self._secrets.add(secret)

    def _mask(self, text: str) -> str:
        for secret in self._secrets:
            text = text.replace(secret, self.MASK)
        return text

    def filter(self, record: logging.LogRecord) -> bool:
        if not self._secrets:
            return True

        record.msg = self._mask(record.getMessage())
        record.args = None

        for key, value in _extra_fields(record).items():
            if isinstance(value, str):
                setattr(record, key, self._mask(value))

        return True
