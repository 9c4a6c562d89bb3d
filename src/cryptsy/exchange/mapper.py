"""
Mapping of response payloads onto domain models.

Each ``parse_*`` method takes the value found under the envelope's ``return``
field and builds typed entities from it. Mapping is all-or-nothing: the first
missing or malformed field raises ``DomainParseError`` and no partial result is
returned.

Timestamps arrive in the exchange's local time as ``YYYY-MM-DD HH:MM:SS`` with
no offset. They are not converted; if a timezone is configured it is attached
to the parsed value as-is, otherwise timestamps stay naive.
"""

import re
from datetime import datetime, tzinfo
from typing import Any, Callable, Dict, List, Optional, TypeVar

from dateutil import parser as date_parser

from .exceptions import DomainParseError
from .models import (
    AccountInfo,
    Address,
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
    TradeId,
    Transaction,
    TransactionType,
    Wallet,
    parse_quantity,
)


T = TypeVar('T')

FIELD_RETURN = "return"

# Exchange-local wall time; the date and time parts are both mandatory
TIMESTAMP_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}[ T]\d{2}:\d{2}:\d{2}")


class ResponseMapper:
    """
    Converts generic JSON payloads into domain entities.

    Example:
        ```python
        mapper = ResponseMapper()
        trades = mapper.parse_market_trades(payload, MarketId.parse("3"))
        ```
    """

    def __init__(self, timezone: Optional[tzinfo] = None):
        """
        Initialize the mapper.

        Args:
            timezone: Zone attached to every parsed timestamp. No conversion is
                performed; ``None`` leaves timestamps naive.
        """
        self.timezone = timezone

    # ==================== Field Helpers ====================

    @staticmethod
    def _require(record: Any, name: str, index: Optional[int]) -> Any:
        if not isinstance(record, dict):
            raise DomainParseError(
                f"Expected an object, got {type(record).__name__}",
                record_index=index,
                value=record
            )
        if name not in record or record[name] is None:
            raise DomainParseError("Missing field", field=name, record_index=index)
        return record[name]

    def _convert(
        self,
        record: Any,
        name: str,
        index: Optional[int],
        converter: Callable[[Any], T],
        what: str
    ) -> T:
        value = self._require(record, name, index)
        try:
            return converter(value)
        except (ValueError, TypeError) as e:
            raise DomainParseError(
                f"Invalid {what}: {str(e)}",
                field=name,
                record_index=index,
                value=value
            ) from e

    def _quantity(self, record: Any, name: str, index: Optional[int]) -> Quantity:
        return self._convert(record, name, index, parse_quantity, "quantity")

    def _string(self, record: Any, name: str, index: Optional[int]) -> str:
        return self._convert(record, name, index, _as_string, "string")

    def _integer(self, record: Any, name: str, index: Optional[int]) -> int:
        return self._convert(record, name, index, _as_integer, "integer")

    def _timestamp(self, record: Any, name: str, index: Optional[int]) -> datetime:
        return self._convert(record, name, index, self.parse_timestamp, "timestamp")

    def _market_id(
        self,
        record: Any,
        index: int,
        default: Optional[MarketId]
    ) -> Optional[MarketId]:
        if isinstance(record, dict) and record.get('marketid') is None:
            return default
        return self._convert(record, 'marketid', index, MarketId.parse, "market id")

    def parse_timestamp(self, text: Any) -> datetime:
        """
        Parse an exchange timestamp, attaching the configured zone if any.

        Only the full ``YYYY-MM-DD HH:MM:SS`` form is accepted; partial dates
        are rejected rather than completed from the current date.
        """
        if not isinstance(text, str) or not TIMESTAMP_PATTERN.fullmatch(text.strip()):
            raise ValueError(f"Not a timestamp: {text!r}")
        value = date_parser.isoparse(text.strip())
        if self.timezone is not None and value.tzinfo is None:
            value = value.replace(tzinfo=self.timezone)
        return value

    @staticmethod
    def _as_list(payload: Any, name: str = FIELD_RETURN) -> List[Any]:
        if not isinstance(payload, list):
            raise DomainParseError(
                f"Expected a list, got {type(payload).__name__}",
                field=name,
                value=payload
            )
        return payload

    @staticmethod
    def _as_object(payload: Any) -> Dict[str, Any]:
        if not isinstance(payload, dict):
            raise DomainParseError(
                f"Expected an object payload, got {type(payload).__name__}",
                field=FIELD_RETURN,
                value=payload
            )
        return payload

    # ==================== Markets ====================

    def parse_markets(self, payload: Any) -> List[Market]:
        """Map a ``getmarkets`` payload."""
        return [self._parse_market(item, i) for i, item in enumerate(self._as_list(payload))]

    def _parse_market(self, item: Any, i: int) -> Market:
        return Market(
            market_id=self._convert(item, 'marketid', i, MarketId.parse, "market id"),
            label=self._string(item, 'label', i),
            primary_currency_code=self._string(item, 'primary_currency_code', i),
            primary_currency_name=self._string(item, 'primary_currency_name', i),
            secondary_currency_code=self._string(item, 'secondary_currency_code', i),
            secondary_currency_name=self._string(item, 'secondary_currency_name', i),
            current_volume=self._quantity(item, 'current_volume', i),
            last_trade=self._quantity(item, 'last_trade', i),
            high_trade=self._quantity(item, 'high_trade', i),
            low_trade=self._quantity(item, 'low_trade', i),
            created=self._timestamp(item, 'created', i),
        )

    def parse_market_orders(self, payload: Any) -> List[MarketOrder]:
        """
        Map a ``marketorders`` payload into one list, buy rows first.

        Buy rows carry their price in ``buyprice``, sell rows in ``sellprice``.
        """
        book = self._as_object(payload)
        buy_rows = self._as_list(self._require(book, 'buyorders', None), 'buyorders')
        sell_rows = self._as_list(self._require(book, 'sellorders', None), 'sellorders')

        orders = [self._parse_market_order(OrderType.BUY, row, i) for i, row in enumerate(buy_rows)]
        orders.extend(
            self._parse_market_order(OrderType.SELL, row, i) for i, row in enumerate(sell_rows)
        )
        return orders

    def _parse_market_order(self, order_type: OrderType, row: Any, i: int) -> MarketOrder:
        if order_type is OrderType.BUY:
            price_field = 'buyprice'
        elif order_type is OrderType.SELL:
            price_field = 'sellprice'
        else:
            raise ValueError(f"Unknown order type {order_type!r}")

        return MarketOrder(
            order_type=order_type,
            price=self._quantity(row, price_field, i),
            quantity=self._quantity(row, 'quantity', i),
        )

    # ==================== Trades ====================

    def parse_market_trades(
        self,
        payload: Any,
        default_market_id: Optional[MarketId] = None
    ) -> List[MarketTrade]:
        """
        Map a ``markettrades`` payload.

        Records without ``marketid`` are assigned ``default_market_id``.
        """
        return [
            MarketTrade(**self._trade_fields(item, i, default_market_id))
            for i, item in enumerate(self._as_list(payload))
        ]

    def parse_my_trades(
        self,
        payload: Any,
        default_market_id: Optional[MarketId] = None
    ) -> List[MyTrade]:
        """Map a ``mytrades`` or ``allmytrades`` payload."""
        trades = []
        for i, item in enumerate(self._as_list(payload)):
            fields = self._trade_fields(item, i, default_market_id)
            fields['order_id'] = self._convert(item, 'order_id', i, OrderId.parse, "order id")
            trades.append(MyTrade(**fields))
        return trades

    def _trade_fields(
        self,
        item: Any,
        i: int,
        default_market_id: Optional[MarketId]
    ) -> Dict[str, Any]:
        return {
            'trade_id': self._convert(item, 'tradeid', i, TradeId.parse, "trade id"),
            'trade_type': self._convert(item, 'tradetype', i, OrderType.from_wire, "order type"),
            'traded_at': self._timestamp(item, 'datetime', i),
            'price': self._quantity(item, 'tradeprice', i),
            'quantity': self._quantity(item, 'quantity', i),
            'fee': self._quantity(item, 'fee', i),
            'market_id': self._market_id(item, i, default_market_id),
        }

    # ==================== Orders ====================

    def parse_my_orders(
        self,
        payload: Any,
        default_market_id: Optional[MarketId] = None
    ) -> List[MyOrder]:
        """Map a ``myorders`` or ``allmyorders`` payload."""
        return [
            self._parse_my_order(item, i, default_market_id)
            for i, item in enumerate(self._as_list(payload))
        ]

    def _parse_my_order(
        self,
        item: Any,
        i: int,
        default_market_id: Optional[MarketId]
    ) -> MyOrder:
        return MyOrder(
            order_id=self._convert(item, 'orderid', i, OrderId.parse, "order id"),
            order_type=self._convert(item, 'ordertype', i, OrderType.from_wire, "order type"),
            created=self._timestamp(item, 'created', i),
            price=self._quantity(item, 'price', i),
            quantity=self._quantity(item, 'quantity', i),
            original_quantity=self._quantity(item, 'orig_quantity', i),
            market_id=self._market_id(item, i, default_market_id),
        )

    def parse_order_id(self, payload: Any) -> OrderId:
        """Map a ``createorder`` payload to the new order's id."""
        return self._convert(self._as_object(payload), 'orderid', None, OrderId.parse, "order id")

    def parse_fees(self, payload: Any) -> Fees:
        """Map a ``calculatefees`` payload."""
        result = self._as_object(payload)
        return Fees(
            fee=self._quantity(result, 'fee', None),
            net=self._quantity(result, 'net', None),
        )

    # ==================== Account ====================

    def parse_transactions(self, payload: Any) -> List[Transaction]:
        """Map a ``mytransactions`` payload."""
        return [
            self._parse_transaction(item, i)
            for i, item in enumerate(self._as_list(payload))
        ]

    def _parse_transaction(self, item: Any, i: int) -> Transaction:
        return Transaction(
            currency_code=self._string(item, 'currency', i),
            posted_at=self._timestamp(item, 'datetime', i),
            transaction_type=self._convert(
                item, 'type', i, TransactionType.from_wire, "transaction type"
            ),
            address=self._convert(item, 'address', i, Address.parse, "address"),
            amount=self._quantity(item, 'amount', i),
            fee=self._quantity(item, 'fee', i),
        )

    def parse_account_info(self, payload: Any) -> AccountInfo:
        """
        Map a ``getinfo`` payload.

        A currency listed in ``balances_available`` but absent from
        ``balances_hold`` has nothing on hold.
        """
        info = self._as_object(payload)
        available = self._convert(info, 'balances_available', None, _as_mapping, "balances")
        held = self._convert(info, 'balances_hold', None, _as_mapping, "balances")

        wallets = []
        for currency_code in sorted(set(available) | set(held)):
            wallets.append(Wallet(
                currency_code=currency_code,
                balance=self._balance(available, currency_code, 'balances_available'),
                hold=self._balance(held, currency_code, 'balances_hold'),
            ))

        return AccountInfo(
            wallets=tuple(wallets),
            server_time=self._timestamp(info, 'serverdatetime', None),
            server_timezone=self._string(info, 'servertimezone', None),
            server_timestamp=self._integer(info, 'servertimestamp', None),
            open_order_count=self._integer(info, 'openordercount', None),
        )

    @staticmethod
    def _balance(balances: Dict[str, Any], currency_code: str, section: str) -> Quantity:
        if currency_code not in balances:
            return Quantity(0)
        token = balances[currency_code]
        try:
            return parse_quantity(token)
        except ValueError as e:
            raise DomainParseError(
                f"Invalid quantity: {str(e)}",
                field=f"{section}.{currency_code}",
                value=token
            ) from e


def _as_string(value: Any) -> str:
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise ValueError(f"Not a string: {value!r}")
    return str(value)


def _as_integer(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError(f"Not an integer: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        return int(value.strip())
    raise ValueError(f"Not an integer: {value!r}")


def _as_mapping(value: Any) -> Dict[str, Any]:
    # The exchange sends an empty array instead of an empty object
    if value == []:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"Not an object: {value!r}")
    return value
