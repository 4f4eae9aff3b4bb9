"""Public-key codec: envelope decoding and canonical hex forms.

The custodial key service returns public keys as a DER SubjectPublicKeyInfo:

    SEQUENCE {
        SEQUENCE { OID id-ecPublicKey, OID secp256k1 }   -- AlgorithmIdentifier
        BIT STRING { 0x04 || X || Y }                     -- subjectPublicKey
    }

Two compressed-key conventions coexist:
  - custodial path: compressed_hex is the first 66 chars of the uncompressed
    hex, i.e. "0x" + X with no parity byte
  - local path: compressed_hex is the standard SEC1 form, "0x" + (02|03) + X

Downstream consumers branch on the signer type, so the two must not be
unified here.
"""

from __future__ import annotations

from ecdsa import SECP256k1, VerifyingKey
from ecdsa import der
from ecdsa.errors import MalformedPointError
from ecdsa.keys import oid_ecPublicKey

from transformer_keys.errors import DecodeError
from transformer_keys.models import PublicKeyForms

UNCOMPRESSED_POINT_TAG = 0x04
CUSTODIAL_COMPRESSED_LEN = 66  # "0x" + 32-byte X


def _read_algorithm(algorithm: bytes) -> None:
    """Check the AlgorithmIdentifier names an EC key on secp256k1."""
    key_oid, rest = der.remove_object(algorithm)
    if key_oid != oid_ecPublicKey:
        raise DecodeError(f"Not an EC public key (algorithm {key_oid})")
    if not rest:
        raise DecodeError("AlgorithmIdentifier has no curve parameter")
    curve_oid, rest = der.remove_object(rest)
    if curve_oid != SECP256k1.oid:
        raise DecodeError(f"Unsupported curve {curve_oid}, expected secp256k1")
    if rest:
        raise DecodeError("Trailing data after curve parameter")


def extract_point(envelope: bytes) -> bytes:
    """Return the raw X||Y bytes wrapped in a SubjectPublicKeyInfo envelope.

    All-or-nothing: any structural problem raises DecodeError.
    """
    if not envelope:
        raise DecodeError("Empty public-key envelope")
    try:
        body, trailing = der.remove_sequence(envelope)
        if trailing:
            raise DecodeError("Trailing data after SubjectPublicKeyInfo")
        algorithm, rest = der.remove_sequence(body)
        _read_algorithm(algorithm)
        bits, rest = der.remove_bitstring(rest, expect_unused=0)
    except der.UnexpectedDER as e:
        raise DecodeError(f"Malformed public-key envelope: {e}") from e
    if rest:
        raise DecodeError("Trailing data after subjectPublicKey")

    if not bits:
        raise DecodeError("Empty subjectPublicKey bit string")
    if bits[0] != UNCOMPRESSED_POINT_TAG:
        raise DecodeError(
            f"Expected uncompressed point (0x04), got format byte 0x{bits[0]:02x}"
        )
    point = bits[1:]
    if not point or len(point) % 2:
        raise DecodeError(
            f"Point payload of {len(point)} bytes does not split into two coordinates"
        )

    try:
        VerifyingKey.from_string(point, curve=SECP256k1)
    except MalformedPointError as e:
        raise DecodeError(f"Public key is not a secp256k1 point: {e}") from e
    return point


def decode_envelope(envelope: bytes) -> PublicKeyForms:
    """Decode a custodial envelope into the custodial-path hex forms."""
    point = extract_point(envelope)
    uncompressed = "0x" + point.hex()
    return PublicKeyForms(
        compressed_hex=uncompressed[:CUSTODIAL_COMPRESSED_LEN],
        uncompressed_hex=uncompressed,
    )


def derive_forms(uncompressed_xy: bytes) -> PublicKeyForms:
    """Build standard-convention hex forms from raw X||Y coordinates."""
    if not uncompressed_xy or len(uncompressed_xy) % 2:
        raise DecodeError(
            f"Point of {len(uncompressed_xy)} bytes does not split into two coordinates"
        )
    half = len(uncompressed_xy) // 2
    x, y = uncompressed_xy[:half], uncompressed_xy[half:]
    prefix = b"\x03" if y[-1] & 1 else b"\x02"
    return PublicKeyForms(
        compressed_hex="0x" + (prefix + x).hex(),
        uncompressed_hex="0x" + uncompressed_xy.hex(),
    )
