"""
Exchange client module for the Cryptsy private API.

This module provides an async client that:
- Builds ordered request parameters with a strictly increasing nonce
- Signs each request body with the account's private key
- Sends it through an injectable transport
- Parses the response envelope and maps the payload onto domain models

There is no retry logic here. Every failure is raised to the caller exactly
once as one of the exception types in ``exceptions``.
"""

from dataclasses import dataclass
from datetime import tzinfo
from typing import Any, List, Optional

from ..utils.logger import get_logger, register_secret
from .envelope import parse_envelope
from .exceptions import ExchangeError, NotSupportedError
from .mapper import ResponseMapper
from .models import (
    AccountInfo,
    Fees,
    Market,
    MarketId,
    MarketOrder,
    MarketTrade,
    MyOrder,
    MyTrade,
    OrderId,
    OrderType,
    Quantity,
    Transaction,
)
from .nonce import NonceGenerator
from .request_builder import CryptsyMethod, Params, RequestBuilder
from .signer import Signer
from .transport import AiohttpTransport, HttpRequest, Transport

logger = get_logger(__name__)

CONTENT_TYPE_FORM = "application/x-www-form-urlencoded"


@dataclass
class ExchangeClientConfig:
    """Configuration for the exchange client."""

    # Credentials
    public_key: str = ""
    private_key: str = ""

    # Endpoints
    private_url: str = "https://www.cryptsy.com/api"
    public_url: str = "http://pubapi.cryptsy.com/api.php"

    # Timeout in seconds, enforced by the transport
    timeout: float = 30.0

    # Zone attached to exchange timestamps; None leaves them naive
    server_timezone: Optional[tzinfo] = None

    def __repr__(self) -> str:
        return (
            f"ExchangeClientConfig(public_key={self.public_key!r}, "
            f"private_url={self.private_url!r}, timeout={self.timeout!r})"
        )


class ExchangeClient:
    """
    Async client for the Cryptsy authenticated API.

    Each public method is one round trip: build params, sign, send, parse the
    envelope, map the payload. Calls are independent and may run concurrently;
    the nonce generator is the only state they share.

    Example:
        ```python
        from cryptsy.config import load_config
        from cryptsy.exchange import ExchangeClient

        config = load_config('config/cryptsy.yaml')

        async with ExchangeClient.from_config(config) as client:
            markets = await client.get_markets()
            order_id = await client.create_order(
                markets[0].market_id,
                OrderType.BUY,
                Decimal('1.5'),
                Decimal('0.00012')
            )
        ```
    """

    def __init__(
        self,
        config: Optional[ExchangeClientConfig] = None,
        transport: Optional[Transport] = None,
        nonce_generator: Optional[NonceGenerator] = None
    ):
        """
        Initialize the exchange client.

        Args:
            config: Client configuration. Uses defaults if not provided.
            transport: Transport to send requests through. When omitted, an
                aiohttp transport is created by ``connect()``.
            nonce_generator: Nonce source. Defaults to the process-wide
                generator for the configured public key.

        The private key is registered with the logging secret filter, so it is
        masked by every handler ``setup_logging`` installs, before or after
        this client is created.
        """
        self.config = config or ExchangeClientConfig()
        self._transport = transport
        self._owns_transport = transport is None
        self._nonces = nonce_generator or NonceGenerator.for_key(self.config.public_key)
        self._builder = RequestBuilder(self._nonces)
        if self.config.private_key:
            register_secret(self.config.private_key)
        self._signer = Signer(self.config.public_key, self.config.private_key)
        self._mapper = ResponseMapper(timezone=self.config.server_timezone)

    @classmethod
    def from_config(cls, config: Any, transport: Optional[Transport] = None) -> 'ExchangeClient':
        """
        Create an ExchangeClient from a loaded configuration.

        Args:
            config: ``ClientConfig`` with an ``exchange`` section.
            transport: Optional transport to inject.

        Returns:
            Configured ExchangeClient instance.
        """
        exchange_settings = config.exchange

        if not exchange_settings.has_credentials:
            raise ValueError("Both public_key and private_key must be configured")

        client_config = ExchangeClientConfig(
            public_key=exchange_settings.public_key,
            private_key=exchange_settings.private_key.get_secret_value(),
            private_url=exchange_settings.private_url,
            public_url=exchange_settings.public_url,
            timeout=exchange_settings.timeout,
            server_timezone=exchange_settings.get_timezone(),
        )

        return cls(client_config, transport=transport)

    async def connect(self) -> None:
        """Create the default transport if none was injected."""
        if self._transport is None:
            self._transport = AiohttpTransport(timeout=self.config.timeout)
            self._owns_transport = True
            logger.log_system_event({
                'event_type': 'connect',
                'private_url': self.config.private_url
            }, msg="Exchange client connected")

    async def close(self) -> None:
        """Close the transport if this client created it."""
        if self._transport is not None and self._owns_transport:
            await self._transport.close()
            self._transport = None
            logger.log_system_event({'event_type': 'close'}, msg="Exchange client closed")

    async def __aenter__(self) -> 'ExchangeClient':
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _ensure_connected(self) -> None:
        """Ensure a transport is available."""
        if self._transport is None:
            raise ExchangeError("Client not connected. Call connect() first.")

    async def _call(self, params: Params) -> Any:
        """
        Sign and send a private request and return the envelope payload.

        The body is encoded once; the same bytes are signed and transmitted.
        """
        self._ensure_connected()

        body = RequestBuilder.encode(params)
        headers = self._signer.headers(body)
        headers['Content-Type'] = CONTENT_TYPE_FORM

        logger.log_request(params[0][1])

        response = await self._transport.send(HttpRequest(
            method='POST',
            url=self.config.private_url,
            headers=headers,
            body=body
        ))
        return parse_envelope(response.body)

    @property
    def is_connected(self) -> bool:
        return self._transport is not None

    @property
    def public_key(self) -> str:
        return self._signer.public_key

    # ==================== Order Methods ====================

    async def cancel_order(self, order_id: OrderId) -> None:
        """Cancel a single resting order."""
        logger.log_order_event({'action': 'cancel', 'order_id': str(order_id)})
        await self._call(self._builder.build(CryptsyMethod.CANCEL_ORDER, order_id=order_id))

    async def cancel_all_orders(self) -> None:
        """Cancel every resting order on the account."""
        logger.log_order_event({'action': 'cancel_all'})
        await self._call(self._builder.build(CryptsyMethod.CANCEL_ALL_ORDERS))

    async def cancel_market_orders(self, market_id: MarketId) -> None:
        """Cancel every resting order in one market."""
        logger.log_order_event({'action': 'cancel_market', 'market_id': str(market_id)})
        await self._call(
            self._builder.build(CryptsyMethod.CANCEL_MARKET_ORDERS, market_id=market_id)
        )

    async def calculate_fees(
        self,
        order_type: OrderType,
        quantity: Quantity,
        price: Quantity
    ) -> Fees:
        """Ask the exchange for the fee and net amount of a prospective order."""
        payload = await self._call(self._builder.build_order(
            CryptsyMethod.CALCULATE_FEES, order_type, quantity, price
        ))
        return self._mapper.parse_fees(payload)

    async def create_order(
        self,
        market_id: MarketId,
        order_type: OrderType,
        quantity: Quantity,
        price: Quantity
    ) -> OrderId:
        """
        Place a limit order.

        Args:
            market_id: Market to place the order in.
            order_type: Buy or Sell.
            quantity: Amount of the primary currency.
            price: Price in the secondary currency.

        Returns:
            Id of the new order.
        """
        logger.log_order_event({
            'action': 'create',
            'market_id': str(market_id),
            'order_type': order_type.value,
            'quantity': str(quantity),
            'price': str(price)
        }, msg=f"Creating {order_type.value} order in market {market_id}")

        payload = await self._call(self._builder.build_order(
            CryptsyMethod.CREATE_ORDER, order_type, quantity, price, market_id=market_id
        ))
        return self._mapper.parse_order_id(payload)

    async def get_my_orders(
        self,
        market_id: MarketId,
        limit: Optional[int] = None
    ) -> List[MyOrder]:
        """Fetch the account's open orders in one market."""
        payload = await self._call(
            self._builder.build(CryptsyMethod.MY_ORDERS, market_id=market_id, limit=limit)
        )
        return self._mapper.parse_my_orders(payload, market_id)

    async def get_all_my_orders(self, limit: Optional[int] = None) -> List[MyOrder]:
        """Fetch the account's open orders across all markets."""
        payload = await self._call(self._builder.build(CryptsyMethod.ALL_MY_ORDERS, limit=limit))
        return self._mapper.parse_my_orders(payload, None)

    # ==================== Market Data Methods ====================

    async def get_markets(self) -> List[Market]:
        """Fetch all markets."""
        payload = await self._call(self._builder.build(CryptsyMethod.GET_MARKETS))
        return self._mapper.parse_markets(payload)

    async def get_market_orders(self, market_id: MarketId) -> List[MarketOrder]:
        """Fetch the order book of a market, buy rows first."""
        payload = await self._call(
            self._builder.build(CryptsyMethod.MARKET_ORDERS, market_id=market_id)
        )
        return self._mapper.parse_market_orders(payload)

    async def get_market_trades(self, market_id: MarketId) -> List[MarketTrade]:
        """Fetch recent trades in a market."""
        payload = await self._call(
            self._builder.build(CryptsyMethod.MARKET_TRADES, market_id=market_id)
        )
        return self._mapper.parse_market_trades(payload, market_id)

    async def get_market_depth(self, market_id: MarketId) -> Any:
        """Not supported by this client."""
        raise NotSupportedError("get_market_depth")

    # ==================== Account Methods ====================

    async def get_account_info(self) -> AccountInfo:
        """Fetch balances and server metadata."""
        payload = await self._call(self._builder.build(CryptsyMethod.GET_INFO))
        return self._mapper.parse_account_info(payload)

    async def get_my_transactions(self) -> List[Transaction]:
        """Fetch deposits and withdrawals."""
        payload = await self._call(self._builder.build(CryptsyMethod.MY_TRANSACTIONS))
        return self._mapper.parse_transactions(payload)

    async def get_my_trades(
        self,
        market_id: MarketId,
        limit: Optional[int] = None
    ) -> List[MyTrade]:
        """Fetch the account's trades in one market."""
        payload = await self._call(
            self._builder.build(CryptsyMethod.MY_TRADES, market_id=market_id, limit=limit)
        )
        return self._mapper.parse_my_trades(payload, market_id)

    async def get_all_my_trades(self, limit: Optional[int] = None) -> List[MyTrade]:
        """Fetch the account's trades across all markets."""
        payload = await self._call(self._builder.build(CryptsyMethod.ALL_MY_TRADES, limit=limit))
        return self._mapper.parse_my_trades(payload, None)

    async def generate_new_address(self, currency_code: str) -> Any:
        """Not supported by this client."""
        raise NotSupportedError("generate_new_address")
