"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import dataclasses
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Default endpoints per environment: (horizon, soroban rpc)
ENVIRONMENTS: dict[str, tuple[str, str]] = {
    "testnet": (
        "https://horizon-testnet.stellar.org",
        "https://soroban-testnet.stellar.org",
    ),
    "mainnet": (
        "https://horizon.stellar.org",
        "https://soroban.stellar.org",
    ),
}

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NetworkConfig:
    horizon_url: str = ENVIRONMENTS["testnet"][0]
    rpc_endpoints: tuple[str, ...] = (ENVIRONMENTS["testnet"][1],)
    rpc_timeout: int = 30


@dataclass(frozen=True)
class CacheConfig:
    default_ttl: float = 300.0
    status_ttl: float = 30.0


@dataclass(frozen=True)
class BlendConfig:
    environment: str = "testnet"
    network: NetworkConfig = field(default_factory=NetworkConfig)
    contract_ids: dict[str, str] = field(default_factory=dict)
    token_decimals: dict[str, int] = field(default_factory=dict)
    cache: CacheConfig = field(default_factory=CacheConfig)

    def with_environment(self, environment: str) -> BlendConfig:
        """Copy of this config pointed at another environment's endpoints."""
        if environment not in ENVIRONMENTS:
            raise ValueError(f"Unknown environment '{environment}'")
        horizon, soroban = ENVIRONMENTS[environment]
        network = dataclasses.replace(
            self.network, horizon_url=horizon, rpc_endpoints=(soroban,)
        )
        return dataclasses.replace(self, environment=environment, network=network)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_network(raw: dict[str, Any], environment: str) -> NetworkConfig:
    horizon, soroban = ENVIRONMENTS.get(environment, ENVIRONMENTS["testnet"])
    # unset ${VAR} endpoints interpolate to "" and are dropped
    endpoints = [e for e in raw.get("rpc_endpoints", []) if e] or [soroban]
    return NetworkConfig(
        horizon_url=raw.get("horizon_url") or horizon,
        rpc_endpoints=tuple(endpoints),
        rpc_timeout=int(raw.get("rpc_timeout", 30)),
    )


def _build_cache(raw: dict[str, Any]) -> CacheConfig:
    return CacheConfig(
        default_ttl=float(raw.get("default_ttl", 300.0)),
        status_ttl=float(raw.get("status_ttl", 30.0)),
    )


def _build_contract_ids(raw: dict[str, Any]) -> dict[str, str]:
    return {str(pool_id): str(contract_id or "") for pool_id, contract_id in raw.items()}


def _build_token_decimals(raw: dict[str, Any]) -> dict[str, int]:
    return {str(asset): int(decimals) for asset, decimals in raw.items()}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> BlendConfig:
    """Load and validate client configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (one level up from this package).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    environment = raw.get("environment", "testnet")
    cfg = BlendConfig(
        environment=environment,
        network=_build_network(raw.get("network", {}), environment),
        contract_ids=_build_contract_ids(raw.get("contract_ids", {})),
        token_decimals=_build_token_decimals(raw.get("token_decimals", {})),
        cache=_build_cache(raw.get("cache", {})),
    )

    validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def validate(cfg: BlendConfig) -> None:
    """Raise on invalid configuration."""
    if cfg.environment not in ENVIRONMENTS:
        raise ValueError(f"Unknown environment '{cfg.environment}'")

    if not cfg.network.rpc_endpoints:
        raise ValueError("At least one RPC endpoint must be configured")

    if not cfg.contract_ids:
        raise ValueError("At least one pool must be configured in contract_ids")

    for pool_id, contract_id in cfg.contract_ids.items():
        if not contract_id:
            raise ValueError(f"Pool '{pool_id}' has no contract id")

    for asset, decimals in cfg.token_decimals.items():
        if decimals < 0:
            raise ValueError(f"Asset '{asset}' has negative decimals")

    if cfg.cache.default_ttl <= 0 or cfg.cache.status_ttl <= 0:
        raise ValueError("Cache TTLs must be positive")
