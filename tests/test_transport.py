"""
Tests for the aiohttp transport, driven through a stub session.
"""

import asyncio
import logging
from contextlib import asynccontextmanager

import aiohttp
import pytest

from cryptsy.exchange.exceptions import TransportError
from cryptsy.exchange.transport import AiohttpTransport, HttpRequest

TRANSPORT_LOGGER = "cryptsy.exchange.transport"


class StubResponse:
    def __init__(self, status: int, body: bytes):
        self.status = status
        self.headers = {'Content-Type': 'application/json'}
        self._body = body

    async def read(self) -> bytes:
        return self._body


class StubSession:
    """Stands in for aiohttp.ClientSession; replays one status/body or raises."""

    def __init__(self, status: int = 200, body: bytes = b'{"success": "1"}', error=None):
        self.status = status
        self.body = body
        self.error = error
        self.calls = []
        self.closed = False

    @asynccontextmanager
    async def _respond(self):
        if self.error is not None:
            raise self.error
        yield StubResponse(self.status, self.body)

    def request(self, method, url, headers=None, data=None):
        self.calls.append((method, url, headers, data))
        return self._respond()

    async def close(self):
        self.closed = True


def make_request() -> HttpRequest:
    return HttpRequest(
        method='POST',
        url="https://api.example.test/api",
        headers={'Key': 'public'},
        body=b'method=getinfo&nonce=1'
    )


class TestSend:
    """AiohttpTransport.send tests"""

    @pytest.mark.asyncio
    async def test_returns_status_and_body(self):
        session = StubSession(body=b'{"success": "1", "return": []}')

        response = await AiohttpTransport(session=session).send(make_request())

        assert response.status == 200
        assert response.body == b'{"success": "1", "return": []}'
        assert session.calls == [
            ('POST', "https://api.example.test/api", {'Key': 'public'}, b'method=getinfo&nonce=1')
        ]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [204, 302, 404, 503])
    async def test_non_2xx_status_is_logged(self, status, caplog):
        transport = AiohttpTransport(session=StubSession(status=status))

        with caplog.at_level(logging.WARNING, logger=TRANSPORT_LOGGER):
            response = await transport.send(make_request())

        assert response.status == status
        assert [r.levelno for r in caplog.records if r.name == TRANSPORT_LOGGER] == [logging.WARNING]
        assert f"HTTP {status}" in caplog.text

    @pytest.mark.asyncio
    async def test_2xx_status_is_not_logged(self, caplog):
        transport = AiohttpTransport(session=StubSession(status=200))

        with caplog.at_level(logging.WARNING, logger=TRANSPORT_LOGGER):
            await transport.send(make_request())

        assert not [r for r in caplog.records if r.name == TRANSPORT_LOGGER]

    @pytest.mark.asyncio
    async def test_timeout_becomes_transport_error(self):
        transport = AiohttpTransport(session=StubSession(error=asyncio.TimeoutError()))

        with pytest.raises(TransportError) as exc_info:
            await transport.send(make_request())

        assert "timed out" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, asyncio.TimeoutError)

    @pytest.mark.asyncio
    async def test_client_error_becomes_transport_error(self):
        error = aiohttp.ClientConnectionError("Connection refused")
        transport = AiohttpTransport(session=StubSession(error=error))

        with pytest.raises(TransportError) as exc_info:
            await transport.send(make_request())

        assert exc_info.value.__cause__ is error
        assert exc_info.value.details['url'] == "https://api.example.test/api"


class TestClose:
    """AiohttpTransport.close tests"""

    @pytest.mark.asyncio
    async def test_injected_session_is_left_open(self):
        session = StubSession()
        transport = AiohttpTransport(session=session)

        await transport.close()

        assert not session.closed

    @pytest.mark.asyncio
    async def test_close_without_session_is_a_no_op(self):
        await AiohttpTransport().close()
