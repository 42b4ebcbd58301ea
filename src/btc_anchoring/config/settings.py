"""Anchoring settings loaded from environment variables and config files.

Configuration is loaded from (highest priority first):
1. Environment variables (prefix: ``BTC_ANCHORING_``, nested via ``__``)
2. YAML config file (``config_path`` or ``BTC_ANCHORING_CONFIG_PATH`` env var)
3. Defaults defined here
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Self

import yaml
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from btc_anchoring.btc.address import Network


class RpcConfig(BaseSettings):
    """Bitcoin node JSON-RPC settings."""

    model_config = SettingsConfigDict(
        env_prefix="BTC_ANCHORING_RPC__",
        case_sensitive=False,
    )

    url: str = "http://127.0.0.1:18332"
    username: str = ""
    password: str = ""
    timeout: float = Field(default=30.0, gt=0)


def _load_yaml(path: str | Path) -> dict[str, Any]:
    """Load a YAML configuration file and return its contents as a dict.

    Returns an empty dict if the file doesn't exist or is empty.
    """
    p = Path(path)
    if not p.exists():
        return {}
    data = yaml.safe_load(p.read_text(encoding="utf-8"))
    return data if isinstance(data, dict) else {}


class AnchoringConfig(BaseSettings):
    """Top-level anchoring configuration.

    Loads settings from environment variables (``BTC_ANCHORING_`` prefix),
    an optional YAML file, and built-in defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix="BTC_ANCHORING_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    network: Network = Network.TESTNET
    fee: int = Field(default=1000, ge=0, description="Anchoring transaction fee in satoshis")
    utxo_confirmations: int = Field(
        default=0, ge=0, description="Minimum confirmations for funding outputs"
    )
    config_path: str = ""

    rpc: RpcConfig = Field(default_factory=RpcConfig)

    @model_validator(mode="before")
    @classmethod
    def _merge_yaml(cls, values: dict[str, Any]) -> dict[str, Any]:
        """Merge YAML config file contents under the env var overrides."""
        config_path = values.get("config_path", "")
        if not config_path:
            return values
        yaml_data = _load_yaml(config_path)
        for key, val in yaml_data.items():
            if key not in values or values[key] is None:
                values[key] = val
            elif isinstance(val, dict) and isinstance(values.get(key), dict):
                values[key] = {**val, **values[key]}
        return values

    @classmethod
    def from_yaml(cls, path: str | Path) -> Self:
        """Construct ``AnchoringConfig`` loading defaults from a YAML file.

        Environment variables still override YAML values.
        """
        return cls(config_path=str(path))
