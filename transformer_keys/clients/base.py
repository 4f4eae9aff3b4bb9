"""Base HTTP client for the transformer_keys collaborators.

Provides:
- Timeout handling
- Optional retry with exponential backoff (off by default, used for JSON-RPC)
- Structured error handling (APIError)

The faucet and JSON-RPC clients wrap this.
"""

from __future__ import annotations

import asyncio
from typing import Any

import httpx


class APIError(Exception):
    """Structured API error."""

    def __init__(self, message: str, status_code: int = 0, provider: str = "", retryable: bool = False):
        super().__init__(message)
        self.status_code = status_code
        self.provider = provider
        self.retryable = retryable


class BaseClient:
    """Async HTTP client with timeout and optional retry.

    Usage:
        client = BaseClient(
            base_url="https://faucet.example.com",
            timeout=10.0,
            provider_name="faucet",
        )
        data = await client.get("/fund", params={"address": "0x..."})
    """

    def __init__(
        self,
        base_url: str = "",
        headers: dict[str, str] | None = None,
        timeout: float = 10.0,
        max_retries: int = 0,
        backoff_base: float = 1.0,
        backoff_max: float = 30.0,
        backoff_multiplier: float = 2.0,
        provider_name: str = "",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.provider_name = provider_name
        self.timeout = timeout
        self.max_retries = max_retries
        self.backoff_base = backoff_base
        self.backoff_max = backoff_max
        self.backoff_multiplier = backoff_multiplier
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers or {},
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def get(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        return await self._request("GET", path, params=params, headers=headers)

    async def post(
        self,
        path: str,
        json_data: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        return await self._request("POST", path, json_data=json_data, headers=headers)

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        """JSON when the server says so, plain text otherwise."""
        if "json" in response.headers.get("content-type", ""):
            return response.json()
        return response.text

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json_data: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Execute request with retry and backoff."""
        last_error: Exception | None = None
        delay = self.backoff_base

        for attempt in range(self.max_retries + 1):
            try:
                response = await self._client.request(
                    method,
                    path,
                    params=params,
                    json=json_data,
                    headers=headers,
                )

                if response.status_code == 429:
                    raise APIError(
                        f"Rate limited by {self.provider_name}",
                        status_code=429,
                        provider=self.provider_name,
                        retryable=True,
                    )

                if response.status_code >= 500:
                    raise APIError(
                        f"Server error from {self.provider_name}: {response.status_code}",
                        status_code=response.status_code,
                        provider=self.provider_name,
                        retryable=True,
                    )

                if response.status_code >= 400:
                    raise APIError(
                        f"Client error from {self.provider_name}: {response.status_code} - {response.text[:200]}",
                        status_code=response.status_code,
                        provider=self.provider_name,
                        retryable=False,
                    )

                try:
                    return self._decode(response)
                except ValueError as e:
                    raise APIError(
                        f"Invalid JSON from {self.provider_name}: {e}",
                        status_code=response.status_code,
                        provider=self.provider_name,
                    ) from e

            except httpx.TransportError as e:
                last_error = APIError(
                    f"Connection error to {self.provider_name}: {e}",
                    provider=self.provider_name,
                    retryable=True,
                )
            except APIError as e:
                last_error = e
                if not e.retryable:
                    raise

            if attempt < self.max_retries:
                await asyncio.sleep(min(delay, self.backoff_max))
                delay *= self.backoff_multiplier

        raise last_error or APIError(f"Request failed after {self.max_retries} retries")
