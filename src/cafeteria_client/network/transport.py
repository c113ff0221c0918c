"""HTTP transport.

The request pipeline talks to the network through ``Transport`` so tests and
alternative stacks can replace it. ``AiohttpTransport`` is the default.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Optional

import aiohttp

from .endpoint import PreparedRequest

logger = logging.getLogger(__name__)


@dataclass
class TransportResponse:
    """Status code, headers and raw body of a completed HTTP exchange."""
    status: int
    body: bytes = b""
    headers: Dict[str, str] = field(default_factory=dict)
    url: str = ""


class Transport(ABC):
    """Performs one HTTP request; raises on transport-level failure."""

    @abstractmethod
    async def send(self, request: PreparedRequest) -> TransportResponse:
        ...

    async def close(self) -> None:
        pass


class AiohttpTransport(Transport):
    """Transport backed by a shared ``aiohttp.ClientSession``."""

    def __init__(self, session: Optional[aiohttp.ClientSession] = None, user_agent: Optional[str] = None):
        self._session = session
        self._owns_session = session is None
        self.user_agent = user_agent

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            headers = {"User-Agent": self.user_agent} if self.user_agent else None
            self._session = aiohttp.ClientSession(headers=headers)
            self._owns_session = True
        return self._session

    async def send(self, request: PreparedRequest) -> TransportResponse:
        session = await self._get_session()
        timeout = aiohttp.ClientTimeout(total=request.timeout)
        async with session.request(
            request.method,
            request.url,
            headers=request.headers,
            data=request.body,
            timeout=timeout
        ) as response:
            body = await response.read()
            return TransportResponse(
                status=response.status,
                body=body,
                headers=dict(response.headers),
                url=str(response.url)
            )

    async def close(self) -> None:
        """Close the session if this transport created it."""
        if self._session and self._owns_session and not self._session.closed:
            await self._session.close()
            logger.debug("aiohttp session closed")
        self._session = None
