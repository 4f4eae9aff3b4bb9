"""Pending fee inputs: which UTXO a transformer will spend for fees.

Asks the omniverse node (JSON-RPC `preTransfer`) for a dry-run transfer of
one unit from the transformer's compressed public key, then records the
first returned fee input into the transformer's config entry.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from transformer_keys.clients.rpc import JsonRpcClient
from transformer_keys.errors import ConfigurationError, ProviderError
from transformer_keys.models import FeeInput
from transformer_keys.store import IdentityStore

log = logging.getLogger("transformer_keys.fee_inputs")

ZERO_ASSET_ID = "0x" + "00" * 32
ZERO_ADDRESS = "0x" + "00" * 32


def pre_transfer_request(address: str) -> dict:
    return {
        "assetId": ZERO_ASSET_ID,
        "address": address,
        "outputs": [{"address": ZERO_ADDRESS, "amount": "1"}],
    }


async def fetch_fee_input(store: IdentityStore, rpc: JsonRpcClient, name: str) -> FeeInput:
    """Query and record the first pending fee input for `name`."""
    entry = store.transformer_entry(name)
    address = entry.get("compressedPublicKey")
    if not address:
        raise ConfigurationError(f"Transformer {name} has no compressedPublicKey; generate a key first")

    result = await rpc.pre_transfer(pre_transfer_request(address))
    fee_inputs = result.get("feeInputs") or []
    if not fee_inputs:
        raise ProviderError(f"preTransfer returned no fee inputs for {name}")

    first = fee_inputs[0]
    try:
        fee_input = FeeInput(
            txid=first["txid"],
            omni_address=first["address"],
            asset_id=ZERO_ASSET_ID,
            index=first["index"],
            amount=first["amount"],
        )
    except (KeyError, TypeError, ValidationError) as e:
        raise ProviderError(f"Malformed fee input from preTransfer: {e}") from e

    log.info("Transformer %s has %d pending fee input(s)", name, len(fee_inputs))
    store.record_fee_input(name, fee_input)
    return fee_input
