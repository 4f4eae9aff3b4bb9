"""Provisioner: one signing identity per transformer.

Flow:
  1. Refuse unknown transformer names BEFORE any key is created
  2. Obtain a key (custodial KMS or local generation)
  3. Decode / canonicalize the public key
  4. Derive the chain address
  5. Commit secret + public data into both documents
  6. Ask the faucet to fund the new identity (best-effort, never fails provisioning)

Nothing is written if any of steps 2-4 fail.
"""

from __future__ import annotations

import logging

from transformer_keys.clients.faucet import FaucetClient
from transformer_keys.config import Settings
from transformer_keys.errors import ConfigurationError
from transformer_keys.models import CustodialSigner, Identity
from transformer_keys.signer.address import derive_address
from transformer_keys.signer.codec import decode_envelope, derive_forms
from transformer_keys.signer.keysource import (
    CustodialKeySource,
    KeyMaterial,
    KeySource,
    LocalKeySource,
)
from transformer_keys.store import IdentityStore

log = logging.getLogger("transformer_keys.provision")


def build_identity(name: str, material: KeyMaterial) -> Identity:
    """Turn raw key material into a complete Identity. Pure; raises DecodeError."""
    descriptor = material.descriptor
    if isinstance(descriptor, CustodialSigner):
        forms = decode_envelope(material.public_key)
        descriptor = descriptor.with_public_key(bytes.fromhex(forms.uncompressed_hex[2:]))
    else:
        forms = derive_forms(material.public_key)

    return Identity(
        name=name,
        descriptor=descriptor,
        address=derive_address(forms.uncompressed_hex),
        forms=forms,
    )


class Provisioner:
    """Ties key source -> codec -> address -> store (-> faucet) together."""

    def __init__(
        self,
        store: IdentityStore,
        local_source: KeySource | None = None,
        custodial_source: KeySource | None = None,
        faucet: FaucetClient | None = None,
    ):
        self.store = store
        self.local_source = local_source or LocalKeySource()
        self.custodial_source = custodial_source
        self.faucet = faucet

    @classmethod
    def from_settings(cls, settings: Settings) -> Provisioner:
        return cls(
            store=IdentityStore(settings.config_path, settings.secret_path),
            custodial_source=CustodialKeySource(settings.kms) if settings.kms else None,
            faucet=FaucetClient(settings.faucet) if settings.faucet else None,
        )

    def _source(self, use_custodial: bool) -> KeySource:
        if not use_custodial:
            return self.local_source
        if self.custodial_source is None:
            raise ConfigurationError("Custodial keys requested but no 'kms' settings are configured")
        return self.custodial_source

    async def provision(self, name: str, use_custodial: bool = False) -> Identity:
        if name not in self.store.transformer_names():
            raise ConfigurationError(f"No transformer named {name} is configured")
        source = self._source(use_custodial)

        material = await source.obtain(name)
        identity = build_identity(name, material)
        self.store.commit(identity)
        log.info("Provisioned %s for transformer %s", identity.address, name)

        await self._fund(identity)
        return identity

    async def _fund(self, identity: Identity) -> None:
        """Best-effort funding. Logs and swallows every failure."""
        if self.faucet is None:
            return
        try:
            await self.faucet.fund(identity.address, identity.forms.compressed_hex)
        except Exception as e:
            log.warning("Funding %s failed (%s): %s", identity.name, type(e).__name__, e)

    async def close(self) -> None:
        if self.faucet is not None:
            await self.faucet.close()
