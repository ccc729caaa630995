"""Typed async wrapper for calling REST APIs."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import httpx

from ._http import ClientSource, FactoryClientSource, HTTPClientFactory, InstanceClientSource
from .config import ApiConfig
from .content import build_content, classify_failure, read_result
from .exceptions import ConfigurationError, RestException
from .headers import HeaderFactory, compose_headers, to_string_dict

logger = logging.getLogger(__name__)


class RestApi:
    """Async client for one logical REST API.

    The wrapper sends a request, checks the status code, and hands back
    nothing, the raw body text, or the body parsed from JSON into a
    requested type. Non-success responses raise :class:`RestException`.

    A wrapper gets its ``httpx.AsyncClient`` in one of two ways, fixed at
    construction:

    - :meth:`from_factory` asks a named :class:`HTTPClientFactory` for a
      new client on every request and closes it when the request is done
    - :meth:`from_client` reuses a single client for every request and
      closes it in :meth:`aclose` only if ``owns_client`` is true

    Parameters
    ----------
    source : ClientSource
        Where clients come from
    name : str
        Logical API name, passed to the header factory and reported on
        failures
    header_factory : HeaderFactory, optional
        Called once per request for extra headers
    timeout_ms : int, optional
        Cancel requests that take longer than this many milliseconds.
        0 (the default) leaves timing to the transport.

    Raises
    ------
    ConfigurationError
        If ``source`` is missing, ``name`` is blank or ``timeout_ms`` is
        negative
    """

    def __init__(
        self,
        source: ClientSource,
        name: str,
        header_factory: Optional[HeaderFactory] = None,
        timeout_ms: int = 0,
    ):
        if source is None:
            raise ConfigurationError("A client source is required")
        if not isinstance(name, str) or not name.strip():
            raise ConfigurationError("name must be a non-blank string")
        if timeout_ms is None:
            timeout_ms = 0
        if timeout_ms < 0:
            raise ConfigurationError(f"timeout_ms must not be negative, got {timeout_ms}")

        self._source = source
        self._name = name
        self._header_factory = header_factory
        self._timeout_ms = timeout_ms

    @classmethod
    def from_factory(
        cls,
        factory: HTTPClientFactory,
        name: str,
        header_factory: Optional[HeaderFactory] = None,
        timeout_ms: int = 0,
    ) -> "RestApi":
        """Create a wrapper that builds a new client from ``factory`` per request."""
        if factory is None:
            raise ConfigurationError("An HTTP client factory is required")
        return cls(FactoryClientSource(factory, name), name, header_factory, timeout_ms)

    @classmethod
    def from_client(
        cls,
        client: httpx.AsyncClient,
        name: str,
        owns_client: bool = False,
        header_factory: Optional[HeaderFactory] = None,
        timeout_ms: int = 0,
    ) -> "RestApi":
        """Create a wrapper around one pre-built client.

        The client is closed by :meth:`aclose` only when ``owns_client``
        is true; otherwise it stays usable after the wrapper is closed.
        """
        if client is None:
            raise ConfigurationError("An HTTP client is required")
        return cls(InstanceClientSource(client, owns_client), name, header_factory, timeout_ms)

    @classmethod
    def from_config(
        cls,
        config: ApiConfig,
        factory: Optional[HTTPClientFactory] = None,
        header_factory: Optional[HeaderFactory] = None,
    ) -> "RestApi":
        """Register ``config`` with a factory and wrap it.

        The wrapper timeout comes from ``config.timeout_ms``.
        """
        factory = factory or HTTPClientFactory()
        factory.register(config)
        return cls.from_factory(factory, config.name, header_factory, config.timeout_ms)

    @property
    def name(self) -> str:
        return self._name

    @property
    def timeout_ms(self) -> int:
        return self._timeout_ms

    # ---------------- Primitives -----------------

    async def send_no_response(
        self,
        method: str,
        url: str,
        content: Any = None,
        headers: Any = None,
        *,
        cancel: Optional[asyncio.Event] = None,
    ) -> None:
        """Send a request and discard the response body.

        Raises
        ------
        RestException
            If the response status is not 2xx
        TimeoutError
            If the wrapper timeout expires first
        asyncio.CancelledError
            If ``cancel`` is set before the response arrives
        """
        await self._send_request(method, url, content, headers, cancel)

    async def send(
        self,
        method: str,
        url: str,
        content: Any = None,
        headers: Any = None,
        *,
        response_type: Any = Any,
        cancel: Optional[asyncio.Event] = None,
    ) -> Any:
        """Send a request and return the response as ``response_type``.

        ``str`` returns the body text verbatim. Any other type (a pydantic
        model, ``list[Model]``, ``dict``, ``Any``) is parsed from JSON.

        Raises
        ------
        RestException
            If the response status is not 2xx
        pydantic.ValidationError
            If the body cannot be parsed as ``response_type``
        TimeoutError
            If the wrapper timeout expires first
        asyncio.CancelledError
            If ``cancel`` is set before the response arrives
        """
        response = await self._send_request(method, url, content, headers, cancel)
        return read_result(response.text, response_type)

    # ---------------- Convenience -----------------

    async def get(
        self,
        url: str,
        response_type: Any = Any,
        headers: Any = None,
        *,
        cancel: Optional[asyncio.Event] = None,
    ) -> Any:
        return await self.send(
            "GET", url, headers=headers, response_type=response_type, cancel=cancel
        )

    async def post(
        self,
        url: str,
        content: Any,
        response_type: Any = None,
        headers: Any = None,
        *,
        cancel: Optional[asyncio.Event] = None,
    ) -> Any:
        """POST ``content``; without a ``response_type`` nothing is returned."""
        return await self._send_with_body("POST", url, content, response_type, headers, cancel)

    async def put(
        self,
        url: str,
        content: Any,
        response_type: Any = None,
        headers: Any = None,
        *,
        cancel: Optional[asyncio.Event] = None,
    ) -> Any:
        """PUT ``content``; without a ``response_type`` nothing is returned."""
        return await self._send_with_body("PUT", url, content, response_type, headers, cancel)

    async def patch(
        self,
        url: str,
        content: Any = None,
        response_type: Any = None,
        headers: Any = None,
        *,
        cancel: Optional[asyncio.Event] = None,
    ) -> Any:
        """PATCH ``content``; without a ``response_type`` nothing is returned."""
        return await self._send_with_body("PATCH", url, content, response_type, headers, cancel)

    async def delete(
        self,
        url: str,
        headers: Any = None,
        *,
        cancel: Optional[asyncio.Event] = None,
    ) -> None:
        await self.send_no_response("DELETE", url, headers=headers, cancel=cancel)

    # ---------------- Lifetime -----------------

    async def aclose(self) -> None:
        """Release the client this wrapper owns, if any. Safe to call twice."""
        await self._source.aclose()

    async def __aenter__(self) -> "RestApi":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self._name!r}, source={type(self._source).__name__})"

    # ---------------- internal -----------------

    async def _send_with_body(self, method, url, content, response_type, headers, cancel):
        if response_type is None:
            await self.send_no_response(method, url, content, headers, cancel=cancel)
            return None
        return await self.send(
            method, url, content, headers, response_type=response_type, cancel=cancel
        )

    async def _send_request(
        self,
        method: str,
        url: str,
        content: Any,
        headers: Any,
        cancel: Optional[asyncio.Event],
    ) -> httpx.Response:
        async with self._source.lease() as client:
            request = await self._build_request(client, method.upper(), url, content, headers)

            logger.debug("%s %s (api=%s)", request.method, request.url, self._name)
            response = await self._dispatch(client, request, cancel)

            self._check_status(response, url, headers)
            return response

    async def _build_request(
        self,
        client: httpx.AsyncClient,
        method: str,
        url: str,
        content: Any,
        headers: Any,
    ) -> httpx.Request:
        explicit = to_string_dict(headers) if headers is not None else None

        provided = None
        if self._header_factory is not None:
            provided = await self._header_factory.get_headers(self._name)

        body, content_type = build_content(content)
        request = client.build_request(
            method,
            url,
            content=body,
            headers=compose_headers(explicit, provided),
        )
        if content_type is not None:
            request.headers["Content-Type"] = content_type
        return request

    async def _dispatch(
        self,
        client: httpx.AsyncClient,
        request: httpx.Request,
        cancel: Optional[asyncio.Event],
    ) -> httpx.Response:
        """Send ``request``, racing it against the timeout and ``cancel``."""
        if cancel is None and self._timeout_ms <= 0:
            return await client.send(request)

        send = asyncio.ensure_future(client.send(request))
        cancelled = asyncio.ensure_future(cancel.wait()) if cancel is not None else None
        waiters = {send} if cancelled is None else {send, cancelled}
        timeout = self._timeout_ms / 1000 if self._timeout_ms > 0 else None

        try:
            done, _ = await asyncio.wait(
                waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            if cancelled is not None:
                cancelled.cancel()
            if not send.done():
                send.cancel()

        if send not in done:
            await asyncio.wait({send})
        if not send.cancelled():
            return send.result()

        if cancelled is not None and cancelled in done:
            raise asyncio.CancelledError(f"Request to {request.url} was cancelled by the caller")

        try:
            send.result()
        except asyncio.CancelledError as exc:
            raise TimeoutError(
                f"Request to {request.url} timed out after {self._timeout_ms} ms"
            ) from exc

    def _check_status(self, response: httpx.Response, url: str, headers: Any) -> None:
        if response.is_success:
            return

        message, detail, problem = classify_failure(response)
        logger.warning(
            "REST call failed: status=%s url=%s api=%s", response.status_code, url, self._name
        )
        raise RestException(
            message,
            status_code=response.status_code,
            url=url,
            headers=headers,
            api_name=self._name,
            response=detail,
            problem=problem,
        )
