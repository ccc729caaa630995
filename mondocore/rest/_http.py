"""Internal HTTP client sources for the MondoCore REST client.

A :class:`~mondocore.rest.client.RestApi` gets its ``httpx.AsyncClient``
from exactly one client source:

- :class:`FactoryClientSource` builds a fresh client from a named
  :class:`HTTPClientFactory` for every request and closes it afterwards.
- :class:`InstanceClientSource` reuses one long-lived client and closes it
  only when the wrapper is closed, and only if the wrapper owns it.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Dict, Optional, Protocol

import httpx

from .config import ApiConfig, get_api_config

logger = logging.getLogger(__name__)


@dataclass
class TimeoutConfig:
    """Configuration for HTTP request timeouts."""

    read: float = 30.0
    connect: float = 10.0
    write: float = 30.0
    pool: float = 30.0

    @classmethod
    def from_api_config(cls, config: ApiConfig) -> "TimeoutConfig":
        return cls(
            read=config.read_timeout,
            connect=config.connect_timeout,
            write=config.write_timeout,
            pool=config.pool_timeout,
        )

    def to_httpx(self) -> httpx.Timeout:
        return httpx.Timeout(
            read=self.read,
            connect=self.connect,
            write=self.write,
            pool=self.pool,
        )


class HTTPClientFactory:
    """Registry of named HTTP client configurations.

    Every call to :meth:`create_client` returns a new ``httpx.AsyncClient``
    which the caller is responsible for closing.

    Parameters
    ----------
    configs : iterable of ApiConfig, optional
        Configurations to register up front
    transport : httpx.AsyncBaseTransport, optional
        Transport handed to every client the factory builds, e.g. an
        ``httpx.MockTransport`` in tests. It is closed with each client.
    """

    def __init__(self, configs=None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._configs: Dict[str, ApiConfig] = {}
        self._transport = transport
        for config in configs or ():
            self.register(config)

    def register(self, config: ApiConfig) -> None:
        """Register (or replace) the configuration for ``config.name``."""
        self._configs[config.name] = config

    def get_config(self, name: str) -> ApiConfig:
        """Return the configuration for ``name``.

        Names that were never registered fall back to the environment.
        """
        config = self._configs.get(name)
        if config is None:
            config = get_api_config(name)
        return config

    def create_client(self, name: str) -> httpx.AsyncClient:
        """Build a new client for the API called ``name``."""
        config = self.get_config(name)
        kwargs = {}
        if self._transport is not None:
            kwargs["transport"] = self._transport

        return httpx.AsyncClient(
            base_url=config.base_url,
            headers=config.default_headers,
            timeout=TimeoutConfig.from_api_config(config).to_httpx(),
            verify=config.verify_ssl,
            follow_redirects=config.follow_redirects,
            **kwargs,
        )


class ClientSource(Protocol):
    """Supplies a client for each request and owns any long-lived client."""

    def lease(self):
        """Async context manager yielding a client for one request."""
        ...

    async def aclose(self) -> None:
        """Release resources owned by the wrapper itself."""
        ...


class FactoryClientSource:
    """Client source that creates and disposes a client per request."""

    def __init__(self, factory: HTTPClientFactory, name: str):
        self.factory = factory
        self.name = name

    @asynccontextmanager
    async def lease(self) -> AsyncIterator[httpx.AsyncClient]:
        client = self.factory.create_client(self.name)
        try:
            yield client
        finally:
            await client.aclose()

    async def aclose(self) -> None:
        """Nothing to release; per-request clients are already closed."""
        return None


class InstanceClientSource:
    """Client source that reuses one client across all requests.

    Parameters
    ----------
    client : httpx.AsyncClient
        The shared client; it must be safe for concurrent requests
    owns_client : bool
        Whether :meth:`aclose` should close ``client``
    """

    def __init__(self, client: httpx.AsyncClient, owns_client: bool = False):
        self.client = client
        self.owns_client = owns_client
        self._closed = False

    @asynccontextmanager
    async def lease(self) -> AsyncIterator[httpx.AsyncClient]:
        yield self.client

    async def aclose(self) -> None:
        """Close the shared client if this source owns it. Safe to call twice."""
        if self._closed:
            return
        self._closed = True
        if self.owns_client:
            logger.debug("Closing owned HTTP client")
            await self.client.aclose()
