"""Async client for the Cryptsy exchange's authenticated API."""

from .exchange import ExchangeClient, ExchangeClientConfig

__version__ = "0.1.0"

__all__ = ['ExchangeClient', 'ExchangeClientConfig', '__version__']
