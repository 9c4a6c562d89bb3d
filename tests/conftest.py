"""
Shared fixtures for the exchange client tests.
"""

import itertools
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qsl

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from cryptsy.exchange.exceptions import TransportError  # noqa: E402
from cryptsy.exchange.exchange_client import ExchangeClient, ExchangeClientConfig  # noqa: E402
from cryptsy.exchange.nonce import NonceGenerator  # noqa: E402
from cryptsy.exchange.transport import HttpRequest, HttpResponse, Transport  # noqa: E402

PUBLIC_KEY = "test-public-key"
PRIVATE_KEY = "test-private-key"


class FakeTransport(Transport):
    """In-memory transport that records requests and replays canned bodies."""

    def __init__(self):
        self.requests: List[HttpRequest] = []
        self._responses: List[Any] = []
        self.closed = False

    def queue(self, body: Any, status: int = 200) -> None:
        """Queue a response. Dicts are JSON encoded; bytes are sent as-is."""
        if isinstance(body, (dict, list)):
            body = json.dumps(body).encode('utf-8')
        self._responses.append(HttpResponse(status=status, body=body))

    def queue_success(self, payload: Any = None) -> None:
        envelope: Dict[str, Any] = {'success': '1'}
        if payload is not None:
            envelope['return'] = payload
        self.queue(envelope)

    def queue_error(self, error: Exception) -> None:
        self._responses.append(error)

    async def send(self, request: HttpRequest) -> HttpResponse:
        self.requests.append(request)
        if not self._responses:
            raise TransportError("No response queued")
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    async def close(self) -> None:
        self.closed = True

    @property
    def last_request(self) -> HttpRequest:
        return self.requests[-1]

    def last_params(self) -> List[tuple]:
        return parse_qsl(self.last_request.body.decode('ascii'))


def counting_nonces(start: int = 1000) -> NonceGenerator:
    """Deterministic nonce generator driven by a counter clock."""
    counter = itertools.count(start)
    return NonceGenerator(clock=lambda: next(counter))


@pytest.fixture
def fake_transport():
    return FakeTransport()


@pytest.fixture
def client_config():
    return ExchangeClientConfig(
        public_key=PUBLIC_KEY,
        private_key=PRIVATE_KEY,
        private_url="https://api.example.test/api",
    )


@pytest.fixture
def client(client_config, fake_transport):
    return ExchangeClient(
        client_config,
        transport=fake_transport,
        nonce_generator=counting_nonces()
    )


@pytest.fixture
def trade_record():
    """A single markettrades/mytrades record."""
    return {
        'tradeid': '10958207',
        'tradetype': 'Buy',
        'datetime': '2014-01-27 17:24:35',
        'tradeprice': '0.00002490',
        'quantity': '1200.00000000',
        'fee': '0.00007470',
    }


@pytest.fixture
def order_record():
    """A single myorders record."""
    return {
        'orderid': '38210411',
        'created': '2014-01-27 12:02:11',
        'ordertype': 'Sell',
        'price': '0.00031000',
        'quantity': '25.00000000',
        'orig_quantity': '40.00000000',
    }


@pytest.fixture
def market_record():
    """A single getmarkets record."""
    return {
        'marketid': '3',
        'label': 'LTC/BTC',
        'primary_currency_code': 'LTC',
        'primary_currency_name': 'LiteCoin',
        'secondary_currency_code': 'BTC',
        'secondary_currency_name': 'BitCoin',
        'current_volume': '2154.92820138',
        'last_trade': '0.02648100',
        'high_trade': '0.02700000',
        'low_trade': '0.02600001',
        'created': '2013-05-18 23:58:24',
    }


@pytest.fixture
def transaction_record():
    """A single mytransactions record."""
    return {
        'currency': 'BTC',
        'timestamp': '1390843475',
        'datetime': '2014-01-27 12:24:35',
        'timezone': 'EST',
        'type': 'Deposit',
        'address': '1BoatSLRHtKNngkdXEeobR76b53LETtpyT',
        'amount': '0.50000000',
        'fee': '0.00000000',
        'trxid': 'abc123',
    }


@pytest.fixture
def account_info_payload():
    """A getinfo payload."""
    return {
        'balances_available': {'BTC': '0.52000000', 'LTC': '12.10000000'},
        'balances_hold': {'BTC': '0.01000000'},
        'servertimestamp': 1390843475,
        'servertimezone': 'EST',
        'serverdatetime': '2014-01-27 12:24:35',
        'openordercount': 2,
    }


def envelope(payload: Optional[Any] = None, success: str = '1', error: Optional[str] = None) -> bytes:
    document: Dict[str, Any] = {'success': success}
    if payload is not None:
        document['return'] = payload
    if error is not None:
        document['error'] = error
    return json.dumps(document).encode('utf-8')
