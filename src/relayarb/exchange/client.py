"""
Shared async HTTP client.

Both the aggregator and the relay are plain JSON-over-HTTPS APIs; this
base class owns the aiohttp session and maps transport failures onto
the caller's error type.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import aiohttp
import orjson

from relayarb.core.errors import RelayArbError


class HttpClient:
    """
    Async JSON client base.

    Features:
    - Single session with connection pooling
    - Keep-alive for reduced latency
    - orjson for fast JSON encoding and parsing
    - Per-request timeouts
    """

    error_class: type[RelayArbError] = RelayArbError

    def __init__(self, base_url: str, headers: dict[str, str] | None = None) -> None:
        """
        Initialize the client.

        Args:
            base_url: API root, without trailing slash.
            headers: Default headers sent with every request.
        """
        self._base_url = base_url.rstrip("/")
        self._headers = headers or {}
        self._session: aiohttp.ClientSession | None = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the aiohttp session."""
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(
                limit=20,
                keepalive_timeout=30,
                enable_cleanup_closed=True,
            )

            self._session = aiohttp.ClientSession(
                connector=connector,
                headers={"Content-Type": "application/json", **self._headers},
                json_serialize=lambda x: orjson.dumps(x).decode(),
            )

        return self._session

    async def close(self) -> None:
        """Close the client session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "HttpClient":
        """Async context manager entry."""
        await self._get_session()
        return self

    async def __aexit__(self, *args: object) -> None:
        """Async context manager exit."""
        await self.close()

    @asynccontextmanager
    async def _request_context(self) -> AsyncIterator[aiohttp.ClientSession]:
        """Context manager for making requests."""
        session = await self._get_session()
        try:
            yield session
        except aiohttp.ClientError as e:
            raise self.error_class(f"Network error: {e}") from e
        except asyncio.TimeoutError as e:
            raise self.error_class("Request timed out") from e

    async def _request(
        self,
        method: str,
        endpoint: str,
        timeout_ms: int,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        Make an API request.

        Args:
            method: HTTP method (GET or POST).
            endpoint: Path appended to the base URL.
            timeout_ms: Total request timeout in milliseconds.
            params: Query parameters.
            json: JSON body.

        Returns:
            Parsed JSON response.

        Raises:
            RelayArbError: Subclass given by error_class, on any failure.
        """
        url = f"{self._base_url}{endpoint}"
        timeout = aiohttp.ClientTimeout(total=timeout_ms / 1000)

        async with self._request_context() as session:
            if method == "GET":
                async with session.get(url, params=params, timeout=timeout) as response:
                    return await self._handle_response(response)
            elif method == "POST":
                async with session.post(url, json=json, timeout=timeout) as response:
                    return await self._handle_response(response)
            else:
                raise self.error_class(f"Unsupported method: {method}")

    async def _handle_response(self, response: aiohttp.ClientResponse) -> dict[str, Any]:
        """Parse and validate response."""
        text = await response.text()

        try:
            data = orjson.loads(text)
        except orjson.JSONDecodeError as e:
            raise self.error_class(
                f"Invalid JSON response (HTTP {response.status}): {text[:200]}",
                code=response.status,
            ) from e

        if response.status >= 400:
            msg = data.get("error") or data.get("message") if isinstance(data, dict) else None
            raise self.error_class(
                f"HTTP {response.status}: {msg or text[:200]}",
                code=response.status,
            )

        if not isinstance(data, dict):
            raise self.error_class(f"Unexpected response shape: {type(data).__name__}")

        return data
