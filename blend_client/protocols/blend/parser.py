"""Pure parsing functions for pool contract data — no I/O.

Raw values arrive as JSON-decoded contract entries. Prices, factors and
rates are 7-decimal fixed point; amounts are in asset base units.
Anything that does not fit the expected shape raises SerializationError.
"""
from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

from ...errors import SerializationError
from ...models import (
    AssetPosition,
    AssetSnapshot,
    InterestRateModel,
    PoolSnapshot,
    PositionKind,
    Transaction,
    TransactionType,
)

SCALAR_DECIMALS = 7

POOL_DATA_KEY = "PoolData"


def positions_key(account_id: str) -> str:
    return f"Positions:{account_id}"


def history_key(account_id: str) -> str:
    return f"History:{account_id}"


def from_fixed(raw: Any, decimals: int = SCALAR_DECIMALS) -> Decimal:
    """Convert a fixed-point integer (int or numeric string) to Decimal.

    Examples:
        from_fixed(12_500_000) → Decimal("1.25")
        from_fixed("1000000", 6) → Decimal("1")
    """
    if isinstance(raw, bool) or isinstance(raw, float):
        raise SerializationError(f"Expected fixed-point integer, got {raw!r}")
    try:
        value = int(raw)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Expected fixed-point integer, got {raw!r}") from e
    return Decimal(value).scaleb(-decimals)


def _require(raw: dict[str, Any], key: str) -> Any:
    if key not in raw:
        raise SerializationError(f"Missing field '{key}'")
    return raw[key]


def _require_dict(raw: Any, what: str) -> dict[str, Any]:
    if not isinstance(raw, dict):
        raise SerializationError(f"Expected {what} object, got {type(raw).__name__}")
    return raw


def _timestamp(raw: Any) -> datetime:
    try:
        return datetime.fromtimestamp(int(raw), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError) as e:
        raise SerializationError(f"Invalid timestamp {raw!r}") from e


def parse_interest_rate_model(raw: Any) -> InterestRateModel:
    raw = _require_dict(raw, "interest rate model")
    try:
        return InterestRateModel(
            base_rate=from_fixed(_require(raw, "base_rate")),
            utilization_multiplier=from_fixed(_require(raw, "utilization_multiplier")),
            jump_point=from_fixed(_require(raw, "jump_point")),
            jump_multiplier=from_fixed(_require(raw, "jump_multiplier")),
        )
    except ValueError as e:
        raise SerializationError(f"Invalid interest rate model: {e}") from e


def parse_asset(raw: Any) -> AssetSnapshot:
    raw = _require_dict(raw, "asset")
    try:
        decimals = int(raw.get("decimals", SCALAR_DECIMALS))
        return AssetSnapshot(
            asset_id=str(_require(raw, "id")),
            code=str(_require(raw, "code")),
            issuer=str(raw.get("issuer", "")),
            price=from_fixed(_require(raw, "price")),
            supplied=from_fixed(_require(raw, "supplied"), decimals),
            borrowed=from_fixed(_require(raw, "borrowed"), decimals),
            collateral_factor=from_fixed(_require(raw, "collateral_factor")),
            liability_factor=from_fixed(_require(raw, "liability_factor")),
            interest_rate_model=parse_interest_rate_model(
                _require(raw, "interest_rate_model")
            ),
            decimals=decimals,
        )
    except (ValueError, TypeError, InvalidOperation) as e:
        raise SerializationError(f"Invalid asset data: {e}") from e


def parse_pool_status(raw: Any) -> int:
    """Extract the raw status ordinal from pool data."""
    raw = _require_dict(raw, "pool")
    status = _require(raw, "status")
    if isinstance(status, bool):
        raise SerializationError(f"Invalid pool status {status!r}")
    try:
        value = int(status)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Invalid pool status {status!r}") from e
    if value < 0:
        raise SerializationError(f"Invalid pool status {status!r}")
    return value


def parse_pool(pool_id: str, raw: Any, now: datetime | None = None) -> PoolSnapshot:
    """Build a PoolSnapshot; totals are USD sums over the pool's assets."""
    raw = _require_dict(raw, "pool")
    assets_raw = raw.get("assets", [])
    if not isinstance(assets_raw, list):
        raise SerializationError("Pool 'assets' must be a list")

    assets = tuple(parse_asset(a) for a in assets_raw)
    total_supplied = sum((a.supplied * a.price for a in assets), Decimal(0))
    total_borrowed = sum((a.borrowed * a.price for a in assets), Decimal(0))

    try:
        return PoolSnapshot(
            pool_id=pool_id,
            status=parse_pool_status(raw),
            total_supplied=total_supplied,
            total_borrowed=total_borrowed,
            backstop_amount=from_fixed(raw.get("backstop_amount", 0)),
            backstop_take_rate=from_fixed(raw.get("backstop_take_rate", 0)),
            max_positions=int(raw.get("max_positions", 0)),
            min_collateral=from_fixed(raw.get("min_collateral", 0)),
            assets=assets,
            last_updated=now or datetime.now(timezone.utc),
            name=str(raw.get("name", "")),
        )
    except (ValueError, TypeError) as e:
        raise SerializationError(f"Invalid pool data for {pool_id}: {e}") from e


def parse_asset_position(
    entry: Any, kind: PositionKind, pool: PoolSnapshot
) -> AssetPosition:
    """Price one raw position entry against the pool's asset snapshot."""
    entry = _require_dict(entry, "position entry")
    asset_id = str(_require(entry, "asset_id"))
    asset = pool.asset(asset_id)
    if asset is None:
        raise SerializationError(
            f"Position references asset {asset_id} unknown to pool {pool.pool_id}"
        )

    amount = from_fixed(_require(entry, "amount"), asset.decimals)
    principal_raw = entry.get("principal")
    principal = (
        amount if principal_raw is None else from_fixed(principal_raw, asset.decimals)
    )

    try:
        return AssetPosition(
            asset_id=asset_id,
            code=asset.code,
            amount=amount,
            principal=principal,
            price=asset.price,
            kind=kind,
            collateral_factor=asset.collateral_factor,
            liability_factor=asset.liability_factor,
        )
    except ValueError as e:
        raise SerializationError(f"Invalid position entry for {asset_id}: {e}") from e


def parse_positions(
    raw: Any, pool: PoolSnapshot
) -> tuple[
    tuple[AssetPosition, ...],
    tuple[AssetPosition, ...],
    tuple[AssetPosition, ...],
    datetime,
]:
    """Split raw positions into (collateral, borrows, deposits, deposit_date)."""
    raw = _require_dict(raw, "positions")

    def entries(key: str, kind: PositionKind) -> tuple[AssetPosition, ...]:
        items = raw.get(key, [])
        if not isinstance(items, list):
            raise SerializationError(f"Positions '{key}' must be a list")
        return tuple(parse_asset_position(e, kind, pool) for e in items)

    return (
        entries("collateral", PositionKind.COLLATERAL),
        entries("liabilities", PositionKind.BORROW),
        entries("supply", PositionKind.DEPOSIT),
        _timestamp(_require(raw, "deposit_date")),
    )


def parse_transaction(
    entry: Any, account_id: str, pool: PoolSnapshot
) -> Transaction:
    entry = _require_dict(entry, "history entry")
    asset_id = str(_require(entry, "asset_id"))
    asset = pool.asset(asset_id)
    decimals = asset.decimals if asset is not None else SCALAR_DECIMALS

    try:
        tx_type = TransactionType(_require(entry, "type"))
    except ValueError as e:
        raise SerializationError(f"Unknown transaction type {entry['type']!r}") from e

    return Transaction(
        id=str(_require(entry, "id")),
        account_id=account_id,
        pool_id=pool.pool_id,
        asset_id=asset_id,
        type=tx_type,
        amount=from_fixed(_require(entry, "amount"), decimals),
        value=from_fixed(entry.get("value", 0)),
        transaction_hash=str(_require(entry, "hash")),
        date=_timestamp(_require(entry, "timestamp")),
    )
