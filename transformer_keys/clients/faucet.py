"""Faucet client: funds a freshly provisioned identity.

Two independent GET endpoints, each configured as a URL prefix:
  faucet.local      + <address>
  faucet.omniverse  + <compressed public key>

Best-effort: a failing endpoint is logged and the other is still tried.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from transformer_keys.clients.base import APIError, BaseClient
from transformer_keys.config import FaucetSettings

log = logging.getLogger("transformer_keys.clients.faucet")


class FaucetClient:
    """Funding collaborator. Never retries."""

    def __init__(self, settings: FaucetSettings, transport: httpx.AsyncBaseTransport | None = None):
        self._settings = settings
        self._client = BaseClient(
            timeout=settings.timeout_seconds,
            max_retries=0,
            provider_name="faucet",
            transport=transport,
        )

    async def _hit(self, label: str, url: str) -> Any:
        try:
            result = await self._client.get(url)
        except APIError as e:
            log.warning("Faucet %s request failed: %s", label, e)
            return None
        log.info("Faucet %s: %s", label, str(result)[:200])
        return result

    async def fund(self, address: str, compressed_public_key: str) -> dict[str, Any]:
        """Request funds for both forms of the identity. Returns per-endpoint results."""
        results: dict[str, Any] = {}
        if self._settings.local:
            results["local"] = await self._hit("local", f"{self._settings.local}{address}")
        if self._settings.omniverse:
            results["omniverse"] = await self._hit(
                "omniverse", f"{self._settings.omniverse}{compressed_public_key}"
            )
        return results

    async def close(self) -> None:
        await self._client.close()
