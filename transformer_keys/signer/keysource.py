"""Key sources: where a transformer's signing key comes from.

Two sources:
  CustodialKeySource  creates a secp256k1 key inside AWS KMS and fetches its
                      public half as a DER SubjectPublicKeyInfo envelope.
                      The private key never leaves KMS.
  LocalKeySource      generates a secp256k1 key in-process (os.urandom via
                      python-ecdsa) and returns the raw X||Y point.

Neither source persists anything. Neither logs key material.
"""

from __future__ import annotations

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from ecdsa import SECP256k1, SigningKey

from transformer_keys.config import KmsSettings
from transformer_keys.errors import ProviderError
from transformer_keys.models import CustodialSigner, LocalSigner

log = logging.getLogger("transformer_keys.signer.keysource")

KEY_DESCRIPTION = "KMS key for a specific role and IP"
KEY_SPEC = "ECC_SECG_P256K1"


@dataclass
class KeyMaterial:
    """Output of a key source.

    public_key is the DER envelope for custodial keys and raw X||Y for local ones.
    """

    descriptor: CustodialSigner | LocalSigner
    public_key: bytes


class KeySource(ABC):
    """Base class: obtain a fresh signing key for a transformer."""

    @abstractmethod
    async def obtain(self, name: str) -> KeyMaterial:
        ...


def make_kms_client(settings: KmsSettings) -> Any:
    """Build a boto3 KMS client with bounded connect/read timeouts."""
    config = Config(
        connect_timeout=settings.timeout_seconds,
        read_timeout=settings.timeout_seconds,
    )
    return boto3.client(
        "kms",
        endpoint_url=settings.endpoint or None,
        region_name=settings.region or None,
        config=config,
    )


class CustodialKeySource(KeySource):
    """AWS KMS backed key source."""

    def __init__(self, settings: KmsSettings, client: Any | None = None):
        self._settings = settings
        self._client = client

    def _kms(self) -> Any:
        if self._client is None:
            try:
                self._client = make_kms_client(self._settings)
            except BotoCoreError as e:
                raise ProviderError(f"Cannot create KMS client: {e}") from e
        return self._client

    def key_policy(self) -> str:
        """Key policy: only the configured principal, only from the configured IP range."""
        return json.dumps({
            "Version": "2012-10-17",
            "Statement": [
                {
                    "Effect": "Allow",
                    "Principal": {"AWS": self._settings.role},
                    "Action": "kms:*",
                    "Resource": "*",
                    "Condition": {
                        "IpAddress": {"aws:SourceIp": self._settings.ip},
                    },
                },
            ],
        })

    async def _call(self, operation: str, fn: Callable[..., Any], **kwargs: Any) -> Any:
        """Run a blocking boto3 call off the event loop with a hard timeout."""
        timeout = self._settings.timeout_seconds
        try:
            return await asyncio.wait_for(asyncio.to_thread(fn, **kwargs), timeout=timeout)
        except asyncio.TimeoutError as e:
            raise ProviderError(f"KMS {operation} timed out after {timeout}s") from e
        except (ClientError, BotoCoreError) as e:
            raise ProviderError(f"KMS {operation} failed: {e}") from e

    async def obtain(self, name: str) -> KeyMaterial:
        kms = self._kms()
        created = await self._call(
            "CreateKey",
            kms.create_key,
            Description=KEY_DESCRIPTION,
            KeyUsage="SIGN_VERIFY",
            KeySpec=KEY_SPEC,
            Origin="AWS_KMS",
            Policy=self.key_policy(),
        )
        key_id = (created.get("KeyMetadata") or {}).get("KeyId")
        if not key_id:
            raise ProviderError("KMS CreateKey returned no KeyId")
        log.info("Created custodial key %s for transformer %s", key_id, name)

        fetched = await self._call("GetPublicKey", kms.get_public_key, KeyId=key_id)
        envelope = fetched.get("PublicKey")
        if not envelope:
            raise ProviderError(f"KMS GetPublicKey returned no public key for {key_id}")

        return KeyMaterial(
            descriptor=CustodialSigner(key_reference=key_id),
            public_key=bytes(envelope),
        )


class LocalKeySource(KeySource):
    """In-process secp256k1 key generation."""

    async def obtain(self, name: str) -> KeyMaterial:
        sk = SigningKey.generate(curve=SECP256k1)
        point = sk.get_verifying_key().to_string("raw")
        log.info("Generated local key for transformer %s", name)
        return KeyMaterial(
            descriptor=LocalSigner(private_key=sk.to_string()),
            public_key=point,
        )
