"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any

import pytest

from blend_client.config import BlendConfig, CacheConfig, NetworkConfig
from blend_client.models import (
    AssetPosition,
    AssetSnapshot,
    InterestRateModel,
    PoolSnapshot,
    PositionKind,
    PositionSnapshot,
)

POOL_ID = "fixed-xlm-usdc"
POOL_CONTRACT = "CPOOLCONTRACT"
ACCOUNT = "GACCOUNT"


class FakeClock:
    """Monotonic clock the tests can move forward."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_network_config() -> NetworkConfig:
    return NetworkConfig(
        horizon_url="https://horizon.example.com",
        rpc_endpoints=("https://rpc1.example.com", "https://rpc2.example.com"),
        rpc_timeout=10,
    )


@pytest.fixture()
def sample_config(sample_network_config: NetworkConfig) -> BlendConfig:
    return BlendConfig(
        environment="testnet",
        network=sample_network_config,
        contract_ids={POOL_ID: POOL_CONTRACT},
        token_decimals={"CUSDC": 7, "CXLM": 7},
        cache=CacheConfig(default_ttl=300.0, status_ttl=30.0),
    )


# ---------------------------------------------------------------------------
# Model fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_rate_model() -> InterestRateModel:
    return InterestRateModel(
        base_rate=Decimal("0.01"),
        utilization_multiplier=Decimal("0.1"),
        jump_point=Decimal("0.8"),
        jump_multiplier=Decimal("1.0"),
    )


@pytest.fixture()
def sample_usdc(sample_rate_model: InterestRateModel) -> AssetSnapshot:
    return AssetSnapshot(
        asset_id="CUSDC",
        code="USDC",
        issuer="GISSUER",
        price=Decimal("1"),
        supplied=Decimal("1000"),
        borrowed=Decimal("500"),
        collateral_factor=Decimal("0.95"),
        liability_factor=Decimal("1"),
        interest_rate_model=sample_rate_model,
    )


@pytest.fixture()
def sample_xlm(sample_rate_model: InterestRateModel) -> AssetSnapshot:
    return AssetSnapshot(
        asset_id="CXLM",
        code="XLM",
        issuer="",
        price=Decimal("0.1"),
        supplied=Decimal("10000"),
        borrowed=Decimal("2000"),
        collateral_factor=Decimal("0.75"),
        liability_factor=Decimal("0.8"),
        interest_rate_model=sample_rate_model,
    )


@pytest.fixture()
def sample_pool(sample_usdc: AssetSnapshot, sample_xlm: AssetSnapshot) -> PoolSnapshot:
    return PoolSnapshot(
        pool_id=POOL_ID,
        status=0,
        total_supplied=Decimal("2000"),
        total_borrowed=Decimal("700"),
        backstop_amount=Decimal("50000"),
        backstop_take_rate=Decimal("0.1"),
        max_positions=4,
        min_collateral=Decimal("1"),
        assets=(sample_usdc, sample_xlm),
        last_updated=datetime(2024, 1, 1, tzinfo=timezone.utc),
        name="Fixed XLM-USDC",
    )


@pytest.fixture()
def sample_position() -> PositionSnapshot:
    return PositionSnapshot(
        account_id=ACCOUNT,
        pool_id=POOL_ID,
        collateral=(
            AssetPosition(
                asset_id="CUSDC",
                code="USDC",
                amount=Decimal("100"),
                principal=Decimal("100"),
                price=Decimal("1"),
                kind=PositionKind.COLLATERAL,
                collateral_factor=Decimal("0.95"),
                liability_factor=Decimal("1"),
            ),
        ),
        borrows=(
            AssetPosition(
                asset_id="CXLM",
                code="XLM",
                amount=Decimal("500"),
                principal=Decimal("500"),
                price=Decimal("0.1"),
                kind=PositionKind.BORROW,
                collateral_factor=Decimal("0.75"),
                liability_factor=Decimal("0.8"),
            ),
        ),
        deposits=(
            AssetPosition(
                asset_id="CXLM",
                code="XLM",
                amount=Decimal("1000"),
                principal=Decimal("990"),
                price=Decimal("0.1"),
                kind=PositionKind.DEPOSIT,
                collateral_factor=Decimal("0.75"),
                liability_factor=Decimal("0.8"),
            ),
        ),
        deposit_date=datetime(2023, 11, 14, tzinfo=timezone.utc),
    )


# ---------------------------------------------------------------------------
# Sample on-chain data (7-decimal fixed point)
# ---------------------------------------------------------------------------

RATE_MODEL_RAW = {
    "base_rate": 100_000,
    "utilization_multiplier": 1_000_000,
    "jump_point": 8_000_000,
    "jump_multiplier": 10_000_000,
}


def make_pool_raw(status: int = 0) -> dict[str, Any]:
    return {
        "name": "Fixed XLM-USDC",
        "status": status,
        "backstop_amount": 500_000_000_000,
        "backstop_take_rate": 1_000_000,
        "max_positions": 4,
        "min_collateral": 10_000_000,
        "assets": [
            {
                "id": "CUSDC",
                "code": "USDC",
                "issuer": "GISSUER",
                "decimals": 7,
                "price": 10_000_000,
                "supplied": 10_000_000_000,
                "borrowed": 5_000_000_000,
                "collateral_factor": 9_500_000,
                "liability_factor": 10_000_000,
                "interest_rate_model": dict(RATE_MODEL_RAW),
            },
            {
                "id": "CXLM",
                "code": "XLM",
                "issuer": "",
                "decimals": 7,
                "price": 1_000_000,
                "supplied": 100_000_000_000,
                "borrowed": 20_000_000_000,
                "collateral_factor": 7_500_000,
                "liability_factor": 8_000_000,
                "interest_rate_model": dict(RATE_MODEL_RAW),
            },
        ],
    }


@pytest.fixture()
def sample_pool_raw() -> dict[str, Any]:
    return make_pool_raw()


@pytest.fixture()
def sample_positions_raw() -> dict[str, Any]:
    return {
        "collateral": [{"asset_id": "CUSDC", "amount": 1_000_000_000}],
        "liabilities": [{"asset_id": "CXLM", "amount": 5_000_000_000}],
        "supply": [
            {
                "asset_id": "CXLM",
                "amount": 10_000_000_000,
                "principal": 9_900_000_000,
            }
        ],
        "deposit_date": 1_700_000_000,
    }


@pytest.fixture()
def sample_history_raw() -> list[dict[str, Any]]:
    return [
        {
            "id": "op-1",
            "asset_id": "CUSDC",
            "type": "deposit_collateral",
            "amount": 1_000_000_000,
            "value": 1_000_000_000,
            "hash": "aaa111",
            "timestamp": 1_700_000_000,
        },
        {
            "id": "op-2",
            "asset_id": "CXLM",
            "type": "borrow",
            "amount": 5_000_000_000,
            "value": 500_000_000,
            "hash": "bbb222",
            "timestamp": 1_700_000_600,
        },
    ]


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent("""\
    environment: testnet
    network:
      horizon_url: "https://horizon.example.com"
      rpc_endpoints: ["https://rpc.example.com"]
      rpc_timeout: 10
    contract_ids:
      fixed-xlm-usdc: "CPOOLCONTRACT"
    token_decimals: {CUSDC: 7, CXLM: 7}
    cache:
      default_ttl: 120
      status_ttl: 15
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file
