"""Tests for the public-key codec: envelope decoding and hex forms."""

from __future__ import annotations

import pytest
from ecdsa import NIST256p, SECP256k1, SigningKey
from ecdsa import der

from transformer_keys.errors import DecodeError
from transformer_keys.signer.codec import decode_envelope, derive_forms, extract_point
from tests.mocks.mock_kms import G_ENVELOPE, G_X, G_Y

OID_EC_PUBLIC_KEY = (1, 2, 840, 10045, 2, 1)
OID_SECP256K1 = (1, 3, 132, 0, 10)


def _spki(bit_payload: bytes, curve_oid: tuple[int, ...] = OID_SECP256K1) -> bytes:
    """Build a SubjectPublicKeyInfo around an arbitrary bit-string payload."""
    algorithm = der.encode_sequence(
        der.encode_oid(*OID_EC_PUBLIC_KEY),
        der.encode_oid(*curve_oid),
    )
    return der.encode_sequence(algorithm, der.encode_bitstring(bit_payload, 0))


class TestDecodeEnvelope:
    def test_generator_point(self):
        forms = decode_envelope(G_ENVELOPE)
        assert forms.uncompressed_hex == "0x" + G_X + G_Y
        # Custodial convention: bare X, no parity byte
        assert forms.compressed_hex == "0x" + G_X
        assert len(forms.compressed_hex) == 66
        assert len(forms.uncompressed_hex) == 130

    def test_compressed_is_prefix_of_uncompressed(self):
        forms = decode_envelope(G_ENVELOPE)
        assert forms.uncompressed_hex.startswith(forms.compressed_hex)

    def test_helper_envelope_matches_fixture(self):
        assert _spki(b"\x04" + bytes.fromhex(G_X + G_Y)) == G_ENVELOPE

    @pytest.mark.parametrize("seed", range(5))
    def test_round_trip_random_keys(self, seed):
        """Decoding a real DER key reproduces its coordinate bytes exactly."""
        vk = SigningKey.generate(curve=SECP256k1).get_verifying_key()
        envelope = vk.to_der()
        point = extract_point(envelope)
        assert point == vk.to_string("raw")
        assert bytes.fromhex(decode_envelope(envelope).uncompressed_hex[2:]) == point


class TestMalformedEnvelope:
    def test_empty(self):
        with pytest.raises(DecodeError):
            decode_envelope(b"")

    def test_wrong_outer_tag(self):
        with pytest.raises(DecodeError):
            decode_envelope(b"\x31" + G_ENVELOPE[1:])

    def test_truncated(self):
        with pytest.raises(DecodeError):
            decode_envelope(G_ENVELOPE[:-10])

    def test_trailing_garbage(self):
        with pytest.raises(DecodeError):
            decode_envelope(G_ENVELOPE + b"\x00")

    def test_empty_bit_string(self):
        with pytest.raises(DecodeError):
            decode_envelope(_spki(b""))

    def test_format_byte_only(self):
        with pytest.raises(DecodeError):
            decode_envelope(_spki(b"\x04"))

    def test_odd_coordinate_length(self):
        with pytest.raises(DecodeError, match="two coordinates"):
            decode_envelope(_spki(b"\x04" + bytes.fromhex(G_X + G_Y)[:-1]))

    def test_compressed_point_rejected(self):
        with pytest.raises(DecodeError, match="uncompressed"):
            decode_envelope(_spki(b"\x02" + bytes.fromhex(G_X)))

    def test_point_not_on_curve(self):
        bad_y = G_Y[:-2] + "b9"
        with pytest.raises(DecodeError, match="secp256k1"):
            decode_envelope(_spki(b"\x04" + bytes.fromhex(G_X + bad_y)))

    def test_wrong_curve(self):
        vk = SigningKey.generate(curve=NIST256p).get_verifying_key()
        with pytest.raises(DecodeError, match="curve"):
            decode_envelope(vk.to_der())


class TestDeriveForms:
    def test_generator_point_even_y(self):
        forms = derive_forms(bytes.fromhex(G_X + G_Y))
        assert forms.compressed_hex == "0x02" + G_X
        assert forms.uncompressed_hex == "0x" + G_X + G_Y

    def test_odd_y_uses_03(self):
        forms = derive_forms(bytes(31) + b"\x01" + bytes(31) + b"\x01")
        assert forms.compressed_hex == "0x03" + "00" * 31 + "01"

    def test_matches_ecdsa_compression(self):
        vk = SigningKey.generate(curve=SECP256k1).get_verifying_key()
        forms = derive_forms(vk.to_string("raw"))
        assert forms.compressed_hex == "0x" + vk.to_string("compressed").hex()

    @pytest.mark.parametrize("length", [4, 16, 32, 48])
    def test_compressed_length_is_2l_plus_2(self, length):
        x = bytes(range(length))
        y = bytes(reversed(range(length)))
        forms = derive_forms(x + y)
        assert len(forms.compressed_hex[2:]) == 2 * length + 2
        assert forms.compressed_hex[4:] == x.hex()

    def test_odd_length_rejected(self):
        with pytest.raises(DecodeError):
            derive_forms(bytes(63))

    def test_empty_rejected(self):
        with pytest.raises(DecodeError):
            derive_forms(b"")
