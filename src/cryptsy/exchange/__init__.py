"""
Exchange package for the Cryptsy exchange client.

This package provides:
- Nonce generation, request building and HMAC-SHA512 signing
- An injectable HTTP transport with an aiohttp default
- Response envelope parsing and error classification
- Mapping of payloads onto typed domain models
- The async ExchangeClient tying them together
"""

from .exceptions import (
    ExchangeError,
    TransportError,
    ProtocolError,
    MalformedResponseError,
    MissingSuccessFieldError,
    ApplicationFailureError,
    DomainParseError,
    NotSupportedError,
)

from .models import (
    AccountInfo,
    Address,
    Fees,
    InvalidQuantityError,
    Market,
    MarketId,
    MarketOrder,
    MarketTrade,
    MyOrder,
    MyTrade,
    OrderId,
    OrderType,
    Quantity,
    TradeId,
    Transaction,
    TransactionType,
    Wallet,
    format_quantity,
    parse_quantity,
)

from .nonce import NonceGenerator
from .request_builder import CryptsyMethod, RequestBuilder
from .signer import Signer, sign
from .transport import AiohttpTransport, HttpRequest, HttpResponse, Transport
from .envelope import parse_envelope
from .mapper import ResponseMapper
from .exchange_client import ExchangeClient, ExchangeClientConfig

__all__ = [
    # Exceptions
    'ExchangeError',
    'TransportError',
    'ProtocolError',
    'MalformedResponseError',
    'MissingSuccessFieldError',
    'ApplicationFailureError',
    'DomainParseError',
    'NotSupportedError',
    # Models
    'AccountInfo',
    'Address',
    'Fees',
    'InvalidQuantityError',
    'Market',
    'MarketId',
    'MarketOrder',
    'MarketTrade',
    'MyOrder',
    'MyTrade',
    'OrderId',
    'OrderType',
    'Quantity',
    'TradeId',
    'Transaction',
    'TransactionType',
    'Wallet',
    'format_quantity',
    'parse_quantity',
    # Protocol
    'NonceGenerator',
    'CryptsyMethod',
    'RequestBuilder',
    'Signer',
    'sign',
    'AiohttpTransport',
    'HttpRequest',
    'HttpResponse',
    'Transport',
    'parse_envelope',
    'ResponseMapper',
    # Exchange Client
    'ExchangeClient',
    'ExchangeClientConfig',
]
