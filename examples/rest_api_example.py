"""Example demonstrating the MondoCore REST client against the test API.

Start the test API first:

    python -m testapi.app
"""

import asyncio
import os

import httpx

from mondocore.rest import ApiConfig, RestApi, RestException, StaticHeaderFactory


async def main() -> None:
    """Demonstrate text responses, header injection, errors and timeouts."""

    base_url = os.getenv("TESTAPI_URL", "http://127.0.0.1:7010/Test/")

    print("=== MondoCore REST Client Example ===\n")

    # 1. Factory-backed wrapper: a fresh client per request
    print("1. Calling /Test/name through a factory-backed wrapper...")
    config = ApiConfig(name="testapi", base_url=base_url)
    headers = StaticHeaderFactory({"X-Example": "mondocore"})

    async with RestApi.from_config(config, header_factory=headers) as api:
        name = await api.get("name", str)
        print(f"   ✓ Got name: {name}")

        # 2. Non-success responses raise RestException
        print("\n2. Calling a missing endpoint...")
        try:
            await api.get("missing", str)
        except RestException as e:
            print(f"   ✗ {e.message} (status {e.status_code}, api {e.api_name})")

    # 3. Instance-backed wrapper with a wrapper-level timeout
    print("\n3. Calling the slow endpoint with a 200 ms timeout...")
    client = httpx.AsyncClient(base_url=base_url)
    async with RestApi.from_client(client, "testapi", owns_client=True, timeout_ms=200) as api:
        try:
            await api.get("name_timesout", str)
        except TimeoutError as e:
            print(f"   ✗ {e}")

    print("\n=== Example completed ===")


if __name__ == "__main__":
    asyncio.run(main())
