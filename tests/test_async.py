"""
Async client tests for httpweave
"""

import asyncio

import pytest

import httpweave
from httpweave import AsyncClient, Client
from tests.test_server import MockHTTPServer


class TestAsyncClient:
    """Test the asyncio client"""

    def test_async_get(self):
        """Test a single async GET"""

        async def run(url):
            async with AsyncClient() as client:
                return await client.get(f"{url}/get", query={"a": "1"})

        with MockHTTPServer() as server:
            response = asyncio.run(run(server.url))
        assert response.status_code == 200
        assert response.json()["args"] == {"a": "1"}

    def test_concurrent_requests(self):
        """Test several requests run concurrently"""

        async def run(url):
            client = AsyncClient(handler="stream")
            return await asyncio.gather(*(client.get(f"{url}/status/{code}") for code in (200, 201, 404)))

        with MockHTTPServer() as server:
            responses = asyncio.run(run(server.url))
        assert [r.status_code for r in responses] == [200, 201, 404]

    def test_default_options_merge(self):
        """Test client defaults are merged with per-request options"""

        async def run(url):
            client = AsyncClient(headers={"X-Default": "1"}, user_agent="async/1.0")
            return await client.post(f"{url}/post", data={"k": "v"}, type="application/json")

        with MockHTTPServer() as server:
            body = asyncio.run(run(server.url)).json()
        assert body["json"] == {"k": "v"}
        assert body["headers"]["X-Default"] == "1"
        assert body["headers"]["User-Agent"] == "async/1.0"

    @pytest.mark.parametrize("method", ["put", "patch", "delete"])
    def test_methods(self, method):
        """Test the method helpers"""

        async def run(url):
            return await getattr(AsyncClient(), method)(f"{url}/{method}")

        with MockHTTPServer() as server:
            assert asyncio.run(run(server.url)).json()["method"] == method.upper()

    def test_head(self):
        """Test async HEAD"""

        async def run(url):
            return await AsyncClient().head(f"{url}/get")

        with MockHTTPServer() as server:
            response = asyncio.run(run(server.url))
        assert response.status_code == 200
        assert response.body == b""

    def test_wait_on_promise(self):
        """Test awaiting a promise without blocking the loop"""

        async def run(url):
            with Client(f"{url}/get", async_=True) as client:
                return await AsyncClient().wait(client.send())

        with MockHTTPServer() as server:
            assert asyncio.run(run(server.url)).status_code == 200

    def test_transfer_errors_propagate(self):
        """Test transfer errors surface from the awaited call"""

        async def run():
            return await AsyncClient().get("http://127.0.0.1:9/")

        with pytest.raises(httpweave.ConnectionError):
            asyncio.run(run())


class TestAsyncFunctions:
    """Test the module-level async helpers"""

    def test_async_request(self):
        """Test async_request"""
        with MockHTTPServer() as server:
            response = asyncio.run(httpweave.async_request("GET", f"{server.url}/get"))
        assert response.status_code == 200

    def test_async_get_and_post(self):
        """Test async_get and async_post"""

        async def run(url):
            got = await httpweave.async_get(f"{url}/get", handler="stream")
            posted = await httpweave.async_post(f"{url}/post", data={"a": "1"}, auth=("u", "p"))
            return got, posted

        with MockHTTPServer() as server:
            got, posted = asyncio.run(run(server.url))
        assert got.status_code == 200
        assert posted.json()["form"] == {"a": "1"}
        assert posted.json()["headers"]["Authorization"].startswith("Basic ")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
