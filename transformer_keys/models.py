"""Data model for transformer signing identities.

Descriptors are serialized into the secret document in the same shape the
deployer reads:

    kms: {"signerType": "kms", "params": {"keyId": <ref>, "pk": "0x<X||Y>"}}
    sk:  {"signerType": "sk",  "params": {"sk": "0x<private key>"}}

Older tool versions wrote a bare "0x<private key>" string; those load as
LocalSigner.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, SecretBytes

KMS_SIGNER = "kms"
SK_SIGNER = "sk"


def strip_0x(value: str) -> str:
    return value[2:] if value[:2] in ("0x", "0X") else value


class CustodialSigner(BaseModel):
    """Key held by the custodial key service. We only ever see its public half."""

    signer_type: Literal["kms"] = KMS_SIGNER
    key_reference: str
    raw_public_key: bytes = b""

    def with_public_key(self, point: bytes) -> CustodialSigner:
        return self.model_copy(update={"raw_public_key": point})

    def to_document(self) -> dict[str, Any]:
        return {
            "signerType": KMS_SIGNER,
            "params": {
                "keyId": self.key_reference,
                "pk": "0x" + self.raw_public_key.hex(),
            },
        }


class LocalSigner(BaseModel):
    """Locally generated key. SecretBytes keeps it out of reprs and logs."""

    signer_type: Literal["sk"] = SK_SIGNER
    private_key: SecretBytes

    def to_document(self) -> dict[str, Any]:
        return {
            "signerType": SK_SIGNER,
            "params": {"sk": "0x" + self.private_key.get_secret_value().hex()},
        }


SignerDescriptor = Annotated[
    Union[CustodialSigner, LocalSigner], Field(discriminator="signer_type")
]


def descriptor_from_document(value: Any) -> CustodialSigner | LocalSigner:
    """Parse one secret-document value. Raises ValueError on unknown shapes."""
    if isinstance(value, str):
        return LocalSigner(private_key=bytes.fromhex(strip_0x(value)))
    if not isinstance(value, dict):
        raise ValueError(f"Unsupported signer entry of type {type(value).__name__}")

    params = value.get("params") or {}
    signer_type = value.get("signerType")
    if signer_type == KMS_SIGNER:
        if "keyId" not in params:
            raise ValueError("kms signer entry has no keyId")
        return CustodialSigner(
            key_reference=params["keyId"],
            raw_public_key=bytes.fromhex(strip_0x(params.get("pk", ""))),
        )
    if signer_type == SK_SIGNER:
        if "sk" not in params:
            raise ValueError("sk signer entry has no private key")
        return LocalSigner(private_key=bytes.fromhex(strip_0x(params["sk"])))
    raise ValueError(f"Unknown signerType: {signer_type!r}")


class PublicKeyForms(BaseModel):
    """Hex forms of one public key, both 0x-prefixed.

    uncompressed_hex is always X||Y (no 0x04 prefix). compressed_hex depends on
    the key source: parity byte + X for local keys, bare X for custodial keys.
    """

    compressed_hex: str
    uncompressed_hex: str


class Identity(BaseModel):
    name: str
    descriptor: SignerDescriptor
    address: str
    forms: PublicKeyForms

    @property
    def signer_type(self) -> str:
        return self.descriptor.signer_type

    def public_summary(self) -> dict[str, Any]:
        """Everything safe to print: no private key, no key reference params."""
        return {
            "name": self.name,
            "signerType": self.signer_type,
            "address": self.address,
            "compressedPublicKey": self.forms.compressed_hex,
            "uncompressedPublicKey": self.forms.uncompressed_hex,
        }


class FeeInput(BaseModel):
    """One pending fee input (UTXO) returned by preTransfer."""

    txid: str
    omni_address: str
    asset_id: str
    index: int
    amount: str | int

    def to_document(self) -> dict[str, Any]:
        return {
            "txid": self.txid,
            "omniAddress": self.omni_address,
            "assetId": self.asset_id,
            "index": self.index,
            "amount": self.amount,
        }


class TransformerConfig(BaseModel):
    """Pre-built deployment configuration handed to the external deployer."""

    name: str
    erc20: Any = None
    transformer: Any = None
