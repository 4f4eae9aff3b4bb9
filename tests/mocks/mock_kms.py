"""Mock AWS KMS responses for testing.

The key is the secp256k1 generator point G (private key 1), so every
coordinate below is a published constant.
"""

from __future__ import annotations

G_X = "79be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f81798"
G_Y = "483ada7726a3c4655da4fbfc0e1108a8fd17b448a68554199c47d08ffb10d4b8"

# DER SubjectPublicKeyInfo header for an uncompressed secp256k1 point
SPKI_SECP256K1_PREFIX = "3056301006072a8648ce3d020106052b8104000a034200"

G_ENVELOPE = bytes.fromhex(SPKI_SECP256K1_PREFIX + "04" + G_X + G_Y)

KEY_ID = "0f1e2d3c-4b5a-6978-8796-a5b4c3d2e1f0"

CREATE_KEY_RESPONSE = {
    "KeyMetadata": {
        "AWSAccountId": "123456789012",
        "KeyId": KEY_ID,
        "Arn": f"arn:aws:kms:us-east-1:123456789012:key/{KEY_ID}",
        "KeyUsage": "SIGN_VERIFY",
        "KeyState": "Enabled",
        "Origin": "AWS_KMS",
        "KeySpec": "ECC_SECG_P256K1",
        "SigningAlgorithms": ["ECDSA_SHA_256"],
    }
}

GET_PUBLIC_KEY_RESPONSE = {
    "KeyId": f"arn:aws:kms:us-east-1:123456789012:key/{KEY_ID}",
    "PublicKey": G_ENVELOPE,
    "KeySpec": "ECC_SECG_P256K1",
    "KeyUsage": "SIGN_VERIFY",
    "SigningAlgorithms": ["ECDSA_SHA_256"],
}
