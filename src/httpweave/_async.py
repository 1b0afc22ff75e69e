"""
Async/await support for httpweave using Python's asyncio.

Blocking transfers run through ``loop.run_in_executor`` so they never block
the event loop. Each request gets its own Client (and so its own handler), so
concurrent requests never share a curl handle.
"""

import asyncio
from typing import Optional

from ._auth import Auth
from ._client import Client
from ._config import ClientConfig


class AsyncClient:
    """Async HTTP client with asyncio support.

    Options passed here are defaults for every request; options passed to
    :meth:`request` override them.
    """

    def __init__(self, handler: Optional[str] = None, auth=None, config: Optional[ClientConfig] = None, **options):
        """Create an async HTTP client.

        Args:
            handler: Registered handler name ("curl" or "stream")
            auth: Auth applied to every request
            config: ClientConfig with transport defaults
            **options: Default Client options
        """
        if isinstance(auth, tuple):
            auth = Auth.create_basic(*auth)
        self._handler = handler
        self._auth = auth
        self._config = config
        self._options = options

    def _perform(self, method, url, options):
        with Client(url, handler=self._handler, auth=self._auth, config=self._config, **options) as client:
            return client.perform(method=method)

    async def request(self, method: str, url: str, **options):
        """Make an async HTTP request.

        Returns:
            Response object

        Example:
            >>> async with AsyncClient() as client:
            ...     response = await client.request("GET", "https://example.com")
            ...     print(response.status_code)
        """
        loop = asyncio.get_running_loop()
        merged = {**self._options, **options}
        merged.pop("async_", None)
        return await loop.run_in_executor(None, self._perform, method, url, merged)

    async def get(self, url: str, **kwargs):
        """Async GET request."""
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs):
        """Async POST request."""
        return await self.request("POST", url, **kwargs)

    async def put(self, url: str, **kwargs):
        """Async PUT request."""
        return await self.request("PUT", url, **kwargs)

    async def patch(self, url: str, **kwargs):
        return await self.request("PATCH", url, **kwargs)

    async def delete(self, url: str, **kwargs):
        """Async DELETE request."""
        return await self.request("DELETE", url, **kwargs)

    async def head(self, url: str, **kwargs):
        return await self.request("HEAD", url, **kwargs)

    async def wait(self, promise, unwrap: bool = True):
        """Wait on a Promise without blocking the event loop"""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, promise.wait, unwrap)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False


async def request(method: str, url: str, **kwargs):
    """Make a one-off async HTTP request.

    For multiple requests, use AsyncClient.

    Example:
        >>> response = await httpweave.async_request("GET", "https://example.com")
        >>> print(response.status_code)
    """
    handler = kwargs.pop("handler", None)
    auth = kwargs.pop("auth", None)
    return await AsyncClient(handler=handler, auth=auth).request(method, url, **kwargs)


async def get(url: str, **kwargs):
    """Async GET request (convenience function)."""
    return await request("GET", url, **kwargs)


async def post(url: str, **kwargs):
    """Async POST request (convenience function)."""
    return await request("POST", url, **kwargs)
