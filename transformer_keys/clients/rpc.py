"""JSON-RPC 2.0 client for the omniverse query service.

Only read-only queries go through here (preTransfer is a dry run), so 429,
5xx and transport failures may be retried with backoff.
"""

from __future__ import annotations

import time
from typing import Any

import httpx

from transformer_keys.clients.base import APIError, BaseClient


class JsonRpcClient:
    """POSTs JSON-RPC requests to a single endpoint URL."""

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        max_retries: int = 0,
        backoff_base: float = 1.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not url:
            raise ValueError("JSON-RPC endpoint URL is empty")
        self.url = url
        self._client = BaseClient(
            timeout=timeout,
            max_retries=max_retries,
            backoff_base=backoff_base,
            provider_name="rpc",
            transport=transport,
        )

    async def call(self, method: str, params: Any) -> Any:
        """Call `method` and return its `result`. A JSON-RPC error raises APIError."""
        response = await self._client.post(
            self.url,
            json_data={
                "jsonrpc": "2.0",
                "method": method,
                "params": params,
                "id": int(time.time() * 1000),
            },
        )
        if not isinstance(response, dict):
            raise APIError(f"Malformed JSON-RPC response to {method}", provider="rpc")
        if response.get("error"):
            raise APIError(f"JSON-RPC {method} error: {response['error']}", provider="rpc")
        return response.get("result")

    async def pre_transfer(self, request: dict[str, Any]) -> dict[str, Any]:
        """Ask the service which inputs a transfer would spend."""
        result = await self.call("preTransfer", [request])
        if not isinstance(result, dict):
            raise APIError("preTransfer returned no result object", provider="rpc")
        return result

    async def close(self) -> None:
        await self._client.close()
