"""Pytest configuration and fixtures."""

from typing import Callable, List, Optional

import httpx
import pytest
from pydantic import BaseModel

from mondocore.rest import ApiConfig, HTTPClientFactory, RestApi

BASE_URL = "http://localhost:9876"


class Automobile(BaseModel):
    """Sample payload used across the request tests."""

    Make: Optional[str] = None
    Model: Optional[str] = None
    Color: Optional[str] = None
    Year: Optional[int] = None


class MockServer:
    """Routes requests to canned responses and records what was sent."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self._routes = {}

    def given(self, method: str, path: str, responder: Callable) -> None:
        self._routes[(method.upper(), path)] = responder

    def respond_with(
        self,
        method: str,
        path: str,
        body: str = "",
        status_code: int = 200,
        content_type: Optional[str] = "text/plain",
    ) -> None:
        headers = {"Content-Type": content_type} if content_type else {}
        self.given(
            method,
            path,
            lambda request: httpx.Response(status_code, headers=headers, text=body),
        )

    def handler(self, request: httpx.Request):
        self.requests.append(request)
        responder = self._routes.get((request.method, request.url.path))
        if responder is None:
            return httpx.Response(404)
        return responder(request)

    @property
    def last_request(self) -> httpx.Request:
        return self.requests[-1]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


class RecordingFactory(HTTPClientFactory):
    """HTTP client factory that remembers every client it built."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.created: List[httpx.AsyncClient] = []
        self.requested_names: List[str] = []

    def create_client(self, name: str) -> httpx.AsyncClient:
        client = super().create_client(name)
        self.requested_names.append(name)
        self.created.append(client)
        return client


@pytest.fixture
def server():
    """In-process HTTP server backed by httpx.MockTransport."""
    return MockServer()


@pytest.fixture
def recording_factory(server):
    """Factory with a 'test' API pointed at the mock server."""
    return RecordingFactory(
        [ApiConfig(name="test", base_url=BASE_URL)],
        transport=server.transport(),
    )


@pytest.fixture
def make_api(server, recording_factory):
    """Build a factory-backed or instance-backed wrapper for the mock server."""

    def _make(typed: bool, header_factory=None, timeout_ms: int = 0) -> RestApi:
        if typed:
            client = httpx.AsyncClient(base_url=BASE_URL, transport=server.transport())
            return RestApi.from_client(
                client, "test", owns_client=True, header_factory=header_factory, timeout_ms=timeout_ms
            )
        return RestApi.from_factory(
            recording_factory, "test", header_factory=header_factory, timeout_ms=timeout_ms
        )

    return _make
