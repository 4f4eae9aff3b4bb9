"""HTTP collaborators: funding faucet and JSON-RPC query service."""
