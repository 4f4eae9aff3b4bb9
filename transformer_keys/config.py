"""Settings loader for transformer_keys.

Loads a YAML settings file (default config/settings.yaml, overridable with
TRANSFORMER_KEYS_SETTINGS). A missing file means default settings.
Relative paths in the file are resolved against the working directory, the
same way the deployer resolves config/default.json.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from transformer_keys.errors import ConfigurationError

CONFIG_DIR = Path("config")
DEFAULT_SETTINGS_PATH = CONFIG_DIR / "settings.yaml"
SETTINGS_ENV_VAR = "TRANSFORMER_KEYS_SETTINGS"


class KmsSettings(BaseModel):
    endpoint: str | None = None
    region: str | None = None
    role: str = ""
    ip: str = ""
    timeout_seconds: float = 30.0


class FaucetSettings(BaseModel):
    local: str = ""
    omniverse: str = ""
    timeout_seconds: float = 10.0


class NetworkSettings(BaseModel):
    server: str = ""
    rpc: str = ""
    timeout_seconds: float = 10.0
    retries: int = Field(default=2, ge=0)


class Settings(BaseModel):
    config_path: Path = CONFIG_DIR / "default.json"
    secret_path: Path = CONFIG_DIR / "secrets.json"
    kms: KmsSettings | None = None
    faucet: FaucetSettings | None = None
    network: NetworkSettings = NetworkSettings()


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text())
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Cannot read settings file {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Settings file {path} must contain a mapping")
    return data


def load_settings(path: Path | str | None = None) -> Settings:
    """Load settings from `path`, $TRANSFORMER_KEYS_SETTINGS or config/settings.yaml."""
    if path is None:
        path = os.environ.get(SETTINGS_ENV_VAR) or DEFAULT_SETTINGS_PATH
    path = Path(path)
    if not path.exists():
        return Settings()
    try:
        return Settings(**_read_yaml(path))
    except ValidationError as e:
        raise ConfigurationError(f"Invalid settings in {path}: {e}") from e
