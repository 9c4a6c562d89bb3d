"""
Domain models for the Cryptsy exchange client.

Identifiers are small immutable value types built only through their
``parse`` constructors. Entities are frozen dataclasses created by the
response mapper from a single payload; nothing here is refreshed in place.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from functools import total_ordering
from typing import Any, Dict, Optional, Tuple


Quantity = Decimal

# Plain decimal notation as sent on the wire, optionally with an exponent
QUANTITY_PATTERN = re.compile(r"[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?", re.ASCII)


class InvalidQuantityError(ValueError):
    """Raised when a token cannot be read as an exact decimal quantity."""


def parse_quantity(token: Any) -> Quantity:
    """
    Parse a price/amount/fee token into an exact decimal.

    Accepts strings, integers and ``Decimal`` (the envelope parser decodes JSON
    floats as ``Decimal``). Booleans, binary floats, ``None`` and non-finite
    values are rejected.
    """
    if isinstance(token, bool) or token is None or isinstance(token, float):
        raise InvalidQuantityError(f"Not a quantity token: {token!r}")

    if isinstance(token, Decimal):
        value = token
    elif isinstance(token, int):
        value = Decimal(token)
    elif isinstance(token, str):
        text = token.strip()
        if not QUANTITY_PATTERN.fullmatch(text):
            raise InvalidQuantityError(f"Malformed quantity: {token!r}")
        try:
            value = Decimal(text)
        except InvalidOperation:
            raise InvalidQuantityError(f"Malformed quantity: {token!r}") from None
    else:
        raise InvalidQuantityError(f"Not a quantity token: {token!r}")

    if not value.is_finite():
        raise InvalidQuantityError(f"Quantity must be finite: {token!r}")
    return value


def format_quantity(quantity: Quantity) -> str:
    """Render a quantity in plain notation, e.g. ``0.00000001`` not ``1E-8``."""
    return format(quantity, 'f')


def _parse_identifier(token: Any, kind: str) -> str:
    if isinstance(token, bool):
        raise ValueError(f"Invalid {kind}: {token!r}")
    if isinstance(token, int):
        return str(token)
    if isinstance(token, str) and token.strip():
        return token.strip()
    raise ValueError(f"Invalid {kind}: {token!r}")


def _identifier_sort_key(value: str) -> Tuple[int, int, str]:
    # Numeric ids order by magnitude and sort ahead of any non-numeric id
    if value.isascii() and value.isdigit():
        return (0, int(value), value)
    return (1, 0, value)


@total_ordering
class _Identifier:
    """Ordering and rendering shared by the identifier value types."""

    def __lt__(self, other: Any) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return _identifier_sort_key(self.value) < _identifier_sort_key(other.value)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class MarketId(_Identifier):
    """Exchange-assigned market identifier."""
    value: str

    @classmethod
    def parse(cls, token: Any) -> 'MarketId':
        return cls(_parse_identifier(token, "market id"))


@dataclass(frozen=True)
class OrderId(_Identifier):
    """Exchange-assigned order identifier."""
    value: str

    @classmethod
    def parse(cls, token: Any) -> 'OrderId':
        return cls(_parse_identifier(token, "order id"))


@dataclass(frozen=True)
class TradeId(_Identifier):
    """Exchange-assigned trade identifier."""
    value: str

    @classmethod
    def parse(cls, token: Any) -> 'TradeId':
        return cls(_parse_identifier(token, "trade id"))


@dataclass(frozen=True)
class Address:
    """Deposit or withdrawal address as reported by the exchange."""
    value: str

    @classmethod
    def parse(cls, token: Any) -> 'Address':
        if not isinstance(token, str) or not token.strip():
            raise ValueError(f"Invalid address: {token!r}")
        return cls(token.strip())

    def __str__(self) -> str:
        return self.value


class OrderType(Enum):
    """Order side enumeration, valued by its wire token."""
    BUY = "Buy"
    SELL = "Sell"

    @classmethod
    def from_wire(cls, token: Any) -> 'OrderType':
        try:
            return _ORDER_TYPES[token]
        except (KeyError, TypeError):
            raise ValueError(f"Unknown order type: {token!r}") from None


class TransactionType(Enum):
    """Funding movement kinds, valued by their wire token."""
    DEPOSIT = "Deposit"
    WITHDRAWAL = "Withdrawal"

    @classmethod
    def from_wire(cls, token: Any) -> 'TransactionType':
        try:
            return _TRANSACTION_TYPES[token]
        except (KeyError, TypeError):
            raise ValueError(f"Unknown transaction type: {token!r}") from None


# Wire token lookup tables, one entry per enum member
_ORDER_TYPES: Dict[str, OrderType] = {member.value: member for member in OrderType}
_TRANSACTION_TYPES: Dict[str, TransactionType] = {
    member.value: member for member in TransactionType
}


@dataclass(frozen=True)
class Market:
    """Trading pair metadata snapshot."""
    market_id: MarketId
    label: str
    primary_currency_code: str
    primary_currency_name: str
    secondary_currency_code: str
    secondary_currency_name: str
    current_volume: Quantity
    last_trade: Quantity
    high_trade: Quantity
    low_trade: Quantity
    created: datetime


@dataclass(frozen=True)
class MarketOrder:
    """One row of a public order book snapshot."""
    order_type: OrderType
    price: Quantity
    quantity: Quantity


@dataclass(frozen=True)
class MyOrder:
    """One of the account's own resting orders."""
    order_id: OrderId
    order_type: OrderType
    created: datetime
    price: Quantity
    quantity: Quantity
    original_quantity: Quantity
    market_id: Optional[MarketId]


@dataclass(frozen=True)
class MarketTrade:
    """A historical trade in a market."""
    trade_id: TradeId
    trade_type: OrderType
    traded_at: datetime
    price: Quantity
    quantity: Quantity
    fee: Quantity
    market_id: Optional[MarketId]


@dataclass(frozen=True)
class MyTrade(MarketTrade):
    """A historical trade executed by the account, linked to its order."""
    order_id: OrderId


@dataclass(frozen=True)
class Transaction:
    """A deposit or withdrawal on the account ledger."""
    currency_code: str
    posted_at: datetime
    transaction_type: TransactionType
    address: Address
    amount: Quantity
    fee: Quantity


@dataclass(frozen=True)
class Wallet:
    """Balance of a single currency."""
    currency_code: str
    balance: Quantity
    hold: Quantity

    @property
    def total(self) -> Quantity:
        return self.balance + self.hold


@dataclass(frozen=True)
class AccountInfo:
    """Balances and server metadata at the moment of the call."""
    wallets: Tuple[Wallet, ...]
    server_time: datetime
    server_timezone: str
    server_timestamp: int
    open_order_count: int

    def get_wallet(self, currency_code: str) -> Optional[Wallet]:
        for wallet in self.wallets:
            if wallet.currency_code == currency_code:
                return wallet
        return None


@dataclass(frozen=True)
class Fees:
    """Fee and net amount the exchange computed for a prospective order."""
    fee: Quantity
    net: Quantity
