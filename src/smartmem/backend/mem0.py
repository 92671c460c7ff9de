"""Mem0 platform client with async httpx.

This module provides an async HTTP client for the Mem0 memories API with:
- Token authentication
- Exponential backoff retry logic for connection failures
- Scoped add/search/list/delete/delete-all calls

Responses are returned as decoded JSON without interpretation; their shape
varies between endpoints and API versions and is normalized by the caller.
"""

import asyncio
import logging
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_HOST = "https://api.mem0.ai"


class BackendError(Exception):
    """Custom exception for memory backend errors."""

    pass


class Mem0Client:
    """Async HTTP client for the Mem0 memories API.

    Args:
        api_key: Mem0 API key
        host: API base URL (default: "https://api.mem0.ai")
        timeout: Transport timeout in seconds (default: 30)
        max_retries: Attempts for connection-level failures (default: 2)
        retry_delay: Initial backoff delay in seconds (default: 0.5)

    Example:
        >>> async with Mem0Client(api_key="m0-...") as client:
        ...     await client.add("Prefers pytest", {"user_id": "alice"})
        ...     hits = await client.search("testing", {"user_id": "alice"}, limit=5)
    """

    def __init__(
        self,
        api_key: str,
        host: str = DEFAULT_HOST,
        timeout: float = 30.0,
        max_retries: int = 2,
        retry_delay: float = 0.5,
    ):
        self.api_key = api_key
        self.host = host.rstrip("/")
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.host,
                timeout=self.timeout,
                headers={
                    "Authorization": f"Token {self.api_key}",
                    "Content-Type": "application/json",
                },
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "Mem0Client":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit - close client."""
        await self.close()

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[dict[str, Any]] = None,
        params: Optional[dict[str, Any]] = None,
    ) -> Any:
        """Make an HTTP request with exponential backoff on connection errors.

        Args:
            method: HTTP method
            path: Path relative to the API host
            json: Optional JSON body
            params: Optional query parameters

        Returns:
            Decoded JSON body ({} for empty bodies)

        Raises:
            BackendError: If the request fails after all retries, the API
                answers with an error status, or the body is not JSON
        """
        client = await self._get_client()

        for attempt in range(self.max_retries):
            try:
                response = await client.request(method, path, json=json, params=params)
                response.raise_for_status()
                if not response.content:
                    return {}
                return response.json()

            except httpx.TimeoutException as e:
                raise BackendError(f"Request timeout after {self.timeout}s: {method} {path}") from e

            except httpx.HTTPStatusError as e:
                raise BackendError(
                    f"Mem0 API error: {e.response.status_code} - {e.response.text}"
                ) from e

            except httpx.RequestError as e:
                if attempt < self.max_retries - 1:
                    delay = self.retry_delay * (2**attempt)
                    logger.warning(
                        f"Request error (attempt {attempt + 1}/{self.max_retries}), "
                        f"retrying in {delay}s: {e}"
                    )
                    await asyncio.sleep(delay)
                else:
                    raise BackendError(
                        f"Mem0 API request failed after {self.max_retries} attempts: {e}"
                    ) from e

            except ValueError as e:
                raise BackendError(f"Invalid JSON from Mem0 API: {e}") from e

        raise BackendError(f"Mem0 API request failed: {method} {path}")

    async def add(self, content: str, scope_params: dict[str, str]) -> Any:
        """Store content as a new memory in the given scope."""
        payload: dict[str, Any] = {
            "messages": [{"role": "user", "content": content}],
            **scope_params,
        }
        return await self._request("POST", "/v1/memories/", json=payload)

    async def search(self, query: str, scope_params: dict[str, str], limit: int = 5) -> Any:
        """Semantic search within a scope."""
        payload: dict[str, Any] = {"query": query, "limit": limit, **scope_params}
        return await self._request("POST", "/v1/memories/search/", json=payload)

    async def get_all(self, scope_params: dict[str, str], limit: int = 10) -> Any:
        """List memories within a scope."""
        params: dict[str, Any] = {**scope_params, "limit": limit}
        return await self._request("GET", "/v1/memories/", params=params)

    async def delete(self, memory_id: str) -> Any:
        """Delete a single memory by id."""
        return await self._request("DELETE", f"/v1/memories/{memory_id}/")

    async def delete_all(self, scope_params: dict[str, str]) -> Any:
        """Delete every memory within a scope."""
        return await self._request("DELETE", "/v1/memories/", params=dict(scope_params))
