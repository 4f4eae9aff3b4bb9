"""Chain address derivation.

The address is the last 20 bytes of keccak256 over the UTF-8 text of the
0x-prefixed uncompressed hex string. The hex TEXT is hashed, not the decoded
point bytes; existing deployments were provisioned this way.
"""

from __future__ import annotations

from eth_utils import keccak

ADDRESS_HEX_LEN = 40


def derive_address(uncompressed_hex: str) -> str:
    digest = keccak(text=uncompressed_hex)
    return "0x" + digest.hex()[-ADDRESS_HEX_LEN:]
