"""Identity store: the secret document and the configuration document.

Both documents are JSON, keyed by transformer name:

  secret document:  {"<name>-transformer": <descriptor>,
                     "<name>-erc20": <descriptor>,
                     "<name>-transformer-AASigner": <descriptor>, ...}
  config document:  {"transformers": {"<name>": {...}, ...}, ...}

Every read-modify-write holds an exclusive lock on both documents and
replaces them through tmp+rename, so a crash mid-commit leaves the previous
versions intact. Entries for other transformers are carried through as-is.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Iterator

from pydantic import ValidationError

from transformer_keys.errors import ConfigurationError, PersistenceError
from transformer_keys.models import (
    CustodialSigner,
    FeeInput,
    Identity,
    LocalSigner,
    TransformerConfig,
    descriptor_from_document,
)
from transformer_keys.utils.file_lock import (
    atomic_write_json,
    exclusive_file_locks,
    read_json,
)

log = logging.getLogger("transformer_keys.store")

# All three roles share one key.
SECRET_ROLES = ("transformer", "erc20", "transformer-AASigner")


def secret_keys_for(name: str) -> list[str]:
    return [f"{name}-{role}" for role in SECRET_ROLES]


def _child(parent: dict[str, Any], key: str) -> dict[str, Any]:
    """Return parent[key] as a dict, creating it if absent or not an object."""
    value = parent.get(key)
    if not isinstance(value, dict):
        value = {}
        parent[key] = value
    return value


def _transformers(config_doc: dict[str, Any]) -> dict[str, Any]:
    transformers = config_doc.get("transformers")
    if not isinstance(transformers, dict):
        raise ConfigurationError("Configuration document has no 'transformers' map")
    return transformers


def _entry(config_doc: dict[str, Any], name: str) -> dict[str, Any]:
    transformers = _transformers(config_doc)
    if name not in transformers:
        raise ConfigurationError(f"No transformer named {name} is configured")
    return _child(transformers, name)


class IdentityStore:
    """Owns the read-modify-write cycle of both documents."""

    def __init__(self, config_path: Path | str, secret_path: Path | str):
        self.config_path = Path(config_path)
        self.secret_path = Path(secret_path)

    # ── Reads ────────────────────────────────────────────────────────

    def _read(self, path: Path, missing_ok: bool = False) -> dict[str, Any]:
        try:
            return read_json(path, missing_ok=missing_ok)
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Cannot read {path}: {e}") from e

    @contextmanager
    def _locked(self) -> Iterator[None]:
        try:
            with exclusive_file_locks([self.config_path, self.secret_path]):
                yield
        except OSError as e:
            raise PersistenceError(f"Cannot lock documents: {e}") from e

    def load(self) -> tuple[dict[str, CustodialSigner | LocalSigner], dict[str, Any]]:
        """Return (secret store, config document). A missing secret document is empty."""
        with self._locked():
            secrets_doc = self._read(self.secret_path, missing_ok=True)
            config_doc = self._read(self.config_path)
        try:
            secrets = {
                key: descriptor_from_document(value) for key, value in secrets_doc.items()
            }
        except (ValueError, ValidationError) as e:
            raise PersistenceError(f"Malformed secret document {self.secret_path}: {e}") from e
        return secrets, config_doc

    def read_config(self) -> dict[str, Any]:
        with self._locked():
            return self._read(self.config_path)

    def transformer_names(self) -> list[str]:
        return list(_transformers(self.read_config()))

    def transformer_entry(self, name: str) -> dict[str, Any]:
        return _entry(self.read_config(), name)

    def transformer_configs(self) -> dict[str, TransformerConfig]:
        """Deployment configs for the external deployer, keyed by name."""
        transformers = _transformers(self.read_config())
        return {
            name: TransformerConfig(
                name=name,
                erc20=(entry or {}).get("erc20"),
                transformer=(entry or {}).get("transformer"),
            )
            for name, entry in transformers.items()
        }

    # ── Writes ───────────────────────────────────────────────────────

    def _update(
        self,
        mutate: Callable[[dict[str, Any], dict[str, Any]], bool],
    ) -> None:
        """Locked read -> mutate -> atomic write of both documents.

        `mutate(secrets_doc, config_doc)` returns True if the secret document
        changed. Any exception from it aborts before anything is written.
        """
        with self._locked():
            secrets_doc = self._read(self.secret_path, missing_ok=True)
            config_doc = self._read(self.config_path)
            secrets_changed = mutate(secrets_doc, config_doc)

            documents = [(self.config_path, config_doc)]
            if secrets_changed:
                documents.insert(0, (self.secret_path, secrets_doc))
            try:
                atomic_write_json(documents)
            except (OSError, TypeError, ValueError) as e:
                raise PersistenceError(f"Cannot write documents: {e}") from e

    def commit(self, identity: Identity) -> None:
        """Write the identity's secret under all roles and its public data into its config entry."""

        def mutate(secrets_doc: dict[str, Any], config_doc: dict[str, Any]) -> bool:
            entry = _entry(config_doc, identity.name)
            address = identity.address
            entry["compressedPublicKey"] = identity.forms.compressed_hex
            entry["uncompressedPublicKey"] = identity.forms.uncompressed_hex
            entry["address"] = address
            entry["signerType"] = identity.signer_type
            _child(entry, "transformer")["SIGNER"] = identity.signer_type
            aa = _child(_child(_child(entry, "transformerSigner"), "contracts"), "omniverseAA")
            aa["signer"] = address

            descriptor = identity.descriptor.to_document()
            for key in secret_keys_for(identity.name):
                secrets_doc[key] = descriptor
            return True

        self._update(mutate)
        log.info(
            "Committed %s identity %s for transformer %s",
            identity.signer_type, identity.address, identity.name,
        )

    def record_fee_input(self, name: str, fee_input: FeeInput) -> None:
        """Store the fee input the transformer should spend first."""

        def mutate(secrets_doc: dict[str, Any], config_doc: dict[str, Any]) -> bool:
            entry = _entry(config_doc, name)
            _child(entry, "transformer")["utxos"] = [fee_input.to_document()]
            return False

        self._update(mutate)
        log.info("Recorded fee input %s:%s for transformer %s", fee_input.txid, fee_input.index, name)
