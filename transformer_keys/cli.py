"""Transformer keys: command line.

Usage:
    python3 -m transformer_keys.cli generate <name>          # local key
    python3 -m transformer_keys.cli generate <name> --kms    # custodial KMS key
    python3 -m transformer_keys.cli show-utxo <name>         # record pending fee input
    python3 -m transformer_keys.cli transformer <name>       # deployer config

Output:
    JSON on stdout. Never contains private key material.

Exit codes:
    0 = success
    1 = error (JSON with status ERROR and a message)
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any

from dotenv import load_dotenv

from transformer_keys.clients.base import APIError
from transformer_keys.clients.rpc import JsonRpcClient
from transformer_keys.config import Settings, load_settings
from transformer_keys.errors import ConfigurationError, TransformerKeysError
from transformer_keys.fee_inputs import fetch_fee_input
from transformer_keys.provision import Provisioner
from transformer_keys.store import IdentityStore


async def generate(settings: Settings, name: str, use_kms: bool) -> dict[str, Any]:
    provisioner = Provisioner.from_settings(settings)
    try:
        identity = await provisioner.provision(name, use_custodial=use_kms)
    finally:
        await provisioner.close()
    return {"status": "OK", **identity.public_summary()}


async def show_utxo(settings: Settings, name: str) -> dict[str, Any]:
    if not settings.network.server:
        raise ConfigurationError("network.server is not configured")
    store = IdentityStore(settings.config_path, settings.secret_path)
    rpc = JsonRpcClient(
        settings.network.server,
        timeout=settings.network.timeout_seconds,
        max_retries=settings.network.retries,
    )
    try:
        fee_input = await fetch_fee_input(store, rpc, name)
    finally:
        await rpc.close()
    return {"status": "OK", "name": name, "utxo": fee_input.to_document()}


def show_transformer(settings: Settings, name: str) -> dict[str, Any]:
    store = IdentityStore(settings.config_path, settings.secret_path)
    configs = store.transformer_configs()
    if name not in configs:
        raise ConfigurationError(f"No transformer named {name} is configured")
    return {"status": "OK", "transformer": configs[name].model_dump()}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Provision signing identities for transformers")
    parser.add_argument("--settings", metavar="PATH", help="Settings YAML (default config/settings.yaml)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Generate a signing key for a transformer")
    gen.add_argument("name")
    gen.add_argument("--kms", action="store_true", help="Create the key in the custodial key service")

    utxo = sub.add_parser("show-utxo", help="Record the pending fee input via preTransfer")
    utxo.add_argument("name")

    tf = sub.add_parser("transformer", help="Print the deployment config for a transformer")
    tf.add_argument("name")
    return parser


def run(args: argparse.Namespace) -> dict[str, Any]:
    settings = load_settings(args.settings)
    if args.command == "generate":
        return asyncio.run(generate(settings, args.name, args.kms))
    if args.command == "show-utxo":
        return asyncio.run(show_utxo(settings, args.name))
    return show_transformer(settings, args.name)


def main(argv: list[str] | None = None) -> None:
    load_dotenv()
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        result = run(args)
    except (TransformerKeysError, APIError) as e:
        print(json.dumps({"status": "ERROR", "error": type(e).__name__, "message": str(e)}, indent=2))
        sys.exit(1)

    print(json.dumps(result, indent=2))
    sys.exit(0)


if __name__ == "__main__":
    main()
