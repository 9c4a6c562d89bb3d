"""
HTTP transport for the exchange client.

The client only needs a single capability from the network layer: send one
request and hand back the status and raw body. ``Transport`` describes that
capability so tests can substitute a fake; ``AiohttpTransport`` is the default
implementation backed by a shared ``aiohttp.ClientSession``.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Optional

import aiohttp

from .exceptions import TransportError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HttpRequest:
    """A fully prepared request; the body is final and already signed."""
    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None


@dataclass(frozen=True)
class HttpResponse:
    """Status and raw body bytes of a completed round trip."""
    status: int
    body: bytes
    headers: Dict[str, str] = field(default_factory=dict)


class Transport(ABC):
    """Sends prepared requests. Implementations raise TransportError on I/O failure."""

    @abstractmethod
    async def send(self, request: HttpRequest) -> HttpResponse:
        """Perform one round trip."""

    async def close(self) -> None:
        """Release any held resources."""


class AiohttpTransport(Transport):
    """
    Transport backed by an ``aiohttp.ClientSession``.

    The session is created lazily on first use and reused for every request.
    Timeouts are enforced here; the client never waits anywhere else.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        session: Optional[aiohttp.ClientSession] = None
    ):
        """
        Initialize the transport.

        Args:
            timeout: Total timeout per request in seconds.
            session: Existing session to reuse. The transport will not close a
                session it did not create.
        """
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session
        self._owns_session = session is None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True
        return self._session

    async def send(self, request: HttpRequest) -> HttpResponse:
        session = self._get_session()
        try:
            async with session.request(
                request.method,
                request.url,
                headers=request.headers,
                data=request.body
            ) as response:
                body = await response.read()
                # Failures are reported in the body; the status is informational
                if not 200 <= response.status < 300:
                    logger.warning(
                        f"HTTP {response.status} from {request.url}"
                    )
                return HttpResponse(
                    status=response.status,
                    body=body,
                    headers=dict(response.headers)
                )
        except asyncio.TimeoutError as e:
            raise TransportError(
                message=f"Request to {request.url} timed out",
                details={'url': request.url}
            ) from e
        except aiohttp.ClientError as e:
            raise TransportError(
                message=f"Request to {request.url} failed: {str(e)}",
                details={'url': request.url, 'original_error': str(e)}
            ) from e

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None
