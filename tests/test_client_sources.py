"""Tests for client acquisition, disposal and construction."""

from unittest.mock import AsyncMock

import httpx
import pytest

from conftest import BASE_URL, RecordingFactory
from mondocore.rest import (
    ApiConfig,
    ConfigurationError,
    FactoryClientSource,
    HTTPClientFactory,
    InstanceClientSource,
    RestApi,
    RestException,
)


class TestFactoryBacked:
    """A factory-backed wrapper builds and closes a client per call."""

    @pytest.mark.asyncio
    async def test_new_client_per_call(self, server, recording_factory):
        server.respond_with("GET", "/test/1", "ok")
        api = RestApi.from_factory(recording_factory, "test")

        await api.get("/test/1", str)
        await api.get("/test/1", str)

        assert recording_factory.requested_names == ["test", "test"]
        assert len(recording_factory.created) == 2
        assert recording_factory.created[0] is not recording_factory.created[1]
        assert all(client.is_closed for client in recording_factory.created)

    @pytest.mark.asyncio
    async def test_client_closed_after_failure(self, server, recording_factory):
        server.respond_with("GET", "/test/1", "boom", status_code=500)
        api = RestApi.from_factory(recording_factory, "test")

        with pytest.raises(RestException):
            await api.get("/test/1", str)

        assert recording_factory.created[0].is_closed

    @pytest.mark.asyncio
    async def test_client_closed_after_transport_error(self, server, recording_factory):
        def refuse(request):
            raise httpx.ConnectError("refused", request=request)

        server.given("GET", "/test/1", refuse)
        api = RestApi.from_factory(recording_factory, "test")

        with pytest.raises(httpx.ConnectError):
            await api.get("/test/1", str)

        assert recording_factory.created[0].is_closed

    @pytest.mark.asyncio
    async def test_redirects_are_followed(self, server, recording_factory):
        server.given(
            "GET", "/old", lambda request: httpx.Response(302, headers={"Location": "/test/1"})
        )
        server.respond_with("GET", "/test/1", "moved here")
        api = RestApi.from_factory(recording_factory, "test")

        assert await api.get("/old", str) == "moved here"
        assert [r.url.path for r in server.requests] == ["/old", "/test/1"]

    @pytest.mark.asyncio
    async def test_aclose_is_a_no_op(self, recording_factory):
        api = RestApi.from_factory(recording_factory, "test")

        await api.aclose()
        await api.aclose()

        assert recording_factory.created == []

    def test_factory_uses_registered_config(self):
        factory = HTTPClientFactory(
            [ApiConfig(name="cars", base_url="https://cars.example.com", default_headers={"X-Api": "1"})]
        )

        client = factory.create_client("cars")

        assert client.base_url.host == "cars.example.com"
        assert client.headers["X-Api"] == "1"

    def test_factory_falls_back_to_environment(self, monkeypatch):
        monkeypatch.setenv("MONDOCORE_REST_INVENTORY_BASE_URL", "https://inventory.example.com")
        factory = HTTPClientFactory()

        config = factory.get_config("inventory")

        assert config.base_url == "https://inventory.example.com"

    @pytest.mark.asyncio
    async def test_from_config_uses_config_timeout(self, server):
        factory = HTTPClientFactory(transport=server.transport())
        config = ApiConfig(name="slowapi", base_url=BASE_URL, timeout_ms=1500)

        api = RestApi.from_config(config, factory)

        assert api.timeout_ms == 1500
        assert api.name == "slowapi"
        assert factory.get_config("slowapi") is config


class TestInstanceBacked:
    """An instance-backed wrapper reuses one client."""

    @pytest.mark.asyncio
    async def test_same_client_reused(self, server):
        server.respond_with("GET", "/test/1", "ok")
        client = httpx.AsyncClient(base_url=BASE_URL, transport=server.transport())
        api = RestApi.from_client(client, "test")

        await api.get("/test/1", str)
        await api.get("/test/1", str)

        assert len(server.requests) == 2
        assert not client.is_closed
        await client.aclose()

    @pytest.mark.asyncio
    async def test_not_owned_client_survives_wrapper(self, server):
        server.respond_with("GET", "/test/1", "still here")
        client = httpx.AsyncClient(base_url=BASE_URL, transport=server.transport())

        async with RestApi.from_client(client, "test", owns_client=False) as api:
            await api.get("/test/1", str)

        assert not client.is_closed
        response = await client.get("/test/1")
        assert response.text == "still here"
        await client.aclose()

    @pytest.mark.asyncio
    async def test_owned_client_closed_once(self):
        client = httpx.AsyncClient(base_url=BASE_URL)
        client.aclose = AsyncMock()
        api = RestApi.from_client(client, "test", owns_client=True)

        await api.aclose()
        await api.aclose()

        client.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_instance_source_lease_yields_client(self):
        client = httpx.AsyncClient(base_url=BASE_URL)
        source = InstanceClientSource(client)

        async with source.lease() as leased:
            assert leased is client

        await source.aclose()
        assert not client.is_closed
        await client.aclose()


class TestConstruction:
    """Invalid arguments fail before any request is made."""

    def test_missing_factory(self):
        with pytest.raises(ConfigurationError):
            RestApi.from_factory(None, "test")

    def test_missing_client(self):
        with pytest.raises(ConfigurationError):
            RestApi.from_client(None, "test")

    def test_missing_source(self):
        with pytest.raises(ConfigurationError):
            RestApi(None, "test")

    @pytest.mark.parametrize("name", ["", "   ", None])
    def test_blank_name(self, name):
        with pytest.raises(ValueError):
            RestApi.from_factory(HTTPClientFactory(), name)

    def test_negative_timeout(self):
        with pytest.raises(ConfigurationError, match="timeout_ms"):
            RestApi.from_factory(HTTPClientFactory(), "test", timeout_ms=-1)

    def test_source_type_in_repr(self):
        api = RestApi(FactoryClientSource(RecordingFactory(), "test"), "test")

        assert repr(api) == "RestApi(name='test', source=FactoryClientSource)"
