"""
Request parameter assembly for the Cryptsy private API.

Parameters are kept as an ordered list of ``(name, value)`` pairs so that the
encoded body, and therefore its signature, is reproducible.
"""

from enum import Enum
from typing import List, Optional, Tuple
from urllib.parse import urlencode

from .models import MarketId, OrderId, OrderType, Quantity, format_quantity
from .nonce import NonceGenerator

PARAM_METHOD = "method"
PARAM_NONCE = "nonce"
PARAM_MARKET_ID = "marketid"
PARAM_ORDER_ID = "orderid"
PARAM_LIMIT = "limit"
PARAM_ORDER_TYPE = "ordertype"
PARAM_QUANTITY = "quantity"
PARAM_PRICE = "price"

Params = List[Tuple[str, str]]


class CryptsyMethod(str, Enum):
    """Wire names of the private API methods."""
    CANCEL_ORDER = "cancelorder"
    CANCEL_ALL_ORDERS = "cancelallorders"
    CANCEL_MARKET_ORDERS = "cancelmarketorder"
    CALCULATE_FEES = "calculatefees"
    CREATE_ORDER = "createorder"
    GET_INFO = "getinfo"
    MARKET_ORDERS = "marketorders"
    GET_MARKETS = "getmarkets"
    MY_TRANSACTIONS = "mytransactions"
    MARKET_TRADES = "markettrades"
    MY_TRADES = "mytrades"
    ALL_MY_TRADES = "allmytrades"
    MY_ORDERS = "myorders"
    ALL_MY_ORDERS = "allmyorders"


class RequestBuilder:
    """
    Builds ordered parameter lists for private API calls.

    Every list starts with ``method`` and ``nonce``. Optional fields are only
    present when a value was supplied.
    """

    def __init__(self, nonce_generator: NonceGenerator):
        self._nonces = nonce_generator

    def build(
        self,
        method: CryptsyMethod,
        market_id: Optional[MarketId] = None,
        order_id: Optional[OrderId] = None,
        limit: Optional[int] = None
    ) -> Params:
        """
        Build parameters for a simple call.

        Args:
            method: Wire method.
            market_id: Market to scope the call to.
            order_id: Order the call acts on.
            limit: Maximum number of records to return.

        Returns:
            Ordered list of (name, value) pairs.
        """
        params = self._base(method)

        if market_id is not None:
            params.append((PARAM_MARKET_ID, str(market_id)))

        if order_id is not None:
            params.append((PARAM_ORDER_ID, str(order_id)))

        if limit is not None:
            params.append((PARAM_LIMIT, str(int(limit))))

        return params

    def build_order(
        self,
        method: CryptsyMethod,
        order_type: OrderType,
        quantity: Quantity,
        price: Quantity,
        market_id: Optional[MarketId] = None
    ) -> Params:
        """
        Build parameters for order placement and fee calculation.

        ``ordertype``, ``quantity`` and ``price`` always follow the method,
        nonce and (when given) market id, in that order.
        """
        params = self._base(method)

        if market_id is not None:
            params.append((PARAM_MARKET_ID, str(market_id)))

        params.extend([
            (PARAM_ORDER_TYPE, order_type.value),
            (PARAM_QUANTITY, format_quantity(quantity)),
            (PARAM_PRICE, format_quantity(price)),
        ])
        return params

    def _base(self, method: CryptsyMethod) -> Params:
        return [
            (PARAM_METHOD, CryptsyMethod(method).value),
            (PARAM_NONCE, str(self._nonces.next())),
        ]

    @staticmethod
    def encode(params: Params) -> bytes:
        """Encode parameters as the exact form body that will be sent and signed."""
        return urlencode(params).encode('ascii')
