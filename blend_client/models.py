"""Data models — all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum, IntEnum
from typing import Any

ZERO = Decimal(0)
ONE = Decimal(1)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _require_non_negative(name: str, value: Decimal) -> None:
    if not value.is_finite() or value < 0:
        raise ValueError(f"{name} must be a non-negative number, got {value}")


def _require_factor(name: str, value: Decimal) -> None:
    if not value.is_finite() or not ZERO <= value <= ONE:
        raise ValueError(f"{name} must be within [0, 1], got {value}")


class PoolStatus(IntEnum):
    """Named pool statuses. Ordinals 2, 4 and 5 are reserved by the protocol."""

    ACTIVE = 0
    ON_ICE = 1
    FROZEN = 3
    SETUP = 6

    @property
    def label(self) -> str:
        return {
            PoolStatus.ACTIVE: "Active",
            PoolStatus.ON_ICE: "On Ice",
            PoolStatus.FROZEN: "Frozen",
            PoolStatus.SETUP: "Setup",
        }[self]


class RequestType(IntEnum):
    """Fund operation kinds, keyed by the ordinal the pool contract expects."""

    DEPOSIT = 0
    WITHDRAW = 1
    DEPOSIT_COLLATERAL = 2
    WITHDRAW_COLLATERAL = 3
    BORROW = 4
    REPAY = 5

    @property
    def label(self) -> str:
        return {
            RequestType.DEPOSIT: "Deposit",
            RequestType.WITHDRAW: "Withdraw",
            RequestType.DEPOSIT_COLLATERAL: "Deposit Collateral",
            RequestType.WITHDRAW_COLLATERAL: "Withdraw Collateral",
            RequestType.BORROW: "Borrow",
            RequestType.REPAY: "Repay",
        }[self]


class TransactionType(str, Enum):
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"
    DEPOSIT_COLLATERAL = "deposit_collateral"
    WITHDRAW_COLLATERAL = "withdraw_collateral"
    BORROW = "borrow"
    REPAY = "repay"
    LIQUIDATION = "liquidation"


class PositionKind(str, Enum):
    COLLATERAL = "collateral"
    BORROW = "borrow"
    DEPOSIT = "deposit"


# ---------------------------------------------------------------------------
# Pool side
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class InterestRateModel:
    """Parameters of the kinked interest-rate curve for one asset."""

    base_rate: Decimal
    utilization_multiplier: Decimal
    jump_point: Decimal
    jump_multiplier: Decimal

    def __post_init__(self) -> None:
        _require_non_negative("base_rate", self.base_rate)
        _require_non_negative("utilization_multiplier", self.utilization_multiplier)
        _require_factor("jump_point", self.jump_point)
        _require_non_negative("jump_multiplier", self.jump_multiplier)


@dataclass(frozen=True)
class AssetSnapshot:
    """State of one reserve in a pool, as read from the contract."""

    asset_id: str
    code: str
    issuer: str
    price: Decimal
    supplied: Decimal
    borrowed: Decimal
    collateral_factor: Decimal
    liability_factor: Decimal
    interest_rate_model: InterestRateModel
    decimals: int = 7

    def __post_init__(self) -> None:
        _require_non_negative("price", self.price)
        _require_non_negative("supplied", self.supplied)
        _require_non_negative("borrowed", self.borrowed)
        _require_factor("collateral_factor", self.collateral_factor)
        _require_factor("liability_factor", self.liability_factor)
        if self.decimals < 0:
            raise ValueError(f"decimals must be non-negative, got {self.decimals}")

    @property
    def full_name(self) -> str:
        """``CODE:ISSUER``, or just ``CODE`` for the native asset."""
        return f"{self.code}:{self.issuer}" if self.issuer else self.code


@dataclass(frozen=True)
class PoolSnapshot:
    """Aggregated pool state. ``status`` keeps the raw on-chain ordinal."""

    pool_id: str
    status: int
    total_supplied: Decimal
    total_borrowed: Decimal
    backstop_amount: Decimal
    backstop_take_rate: Decimal
    max_positions: int
    min_collateral: Decimal
    assets: tuple[AssetSnapshot, ...] = ()
    last_updated: datetime = field(default_factory=_utcnow)
    name: str = ""

    def __post_init__(self) -> None:
        _require_non_negative("total_supplied", self.total_supplied)
        _require_non_negative("total_borrowed", self.total_borrowed)
        _require_non_negative("backstop_amount", self.backstop_amount)
        _require_factor("backstop_take_rate", self.backstop_take_rate)
        _require_non_negative("min_collateral", self.min_collateral)
        if self.status < 0:
            raise ValueError(f"status must be non-negative, got {self.status}")
        if self.max_positions < 0:
            raise ValueError(
                f"max_positions must be non-negative, got {self.max_positions}"
            )

    @property
    def status_label(self) -> str:
        try:
            return PoolStatus(self.status).label
        except ValueError:
            return f"Reserved ({self.status})"

    def asset(self, asset_id: str) -> AssetSnapshot | None:
        for a in self.assets:
            if a.asset_id == asset_id:
                return a
        return None


@dataclass(frozen=True)
class AssetRates:
    asset_id: str
    utilization: Decimal
    borrow_rate: Decimal
    supply_rate: Decimal
    borrowing_apy: Decimal
    lending_apy: Decimal


@dataclass(frozen=True)
class PoolStats:
    """Derived pool statistics for display."""

    pool: PoolSnapshot
    utilization: Decimal
    borrowing_apy: Decimal
    lending_apy: Decimal
    asset_rates: tuple[AssetRates, ...] = ()

    @property
    def pool_id(self) -> str:
        return self.pool.pool_id


# ---------------------------------------------------------------------------
# Account side
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AssetPosition:
    """Holding of a single asset inside a position.

    ``amount`` is the current on-chain amount, ``principal`` what the
    account contributed. Both are in whole asset units.
    """

    asset_id: str
    code: str
    amount: Decimal
    principal: Decimal
    price: Decimal
    kind: PositionKind
    collateral_factor: Decimal = ONE
    liability_factor: Decimal = ONE

    def __post_init__(self) -> None:
        _require_non_negative("amount", self.amount)
        _require_non_negative("principal", self.principal)
        _require_non_negative("price", self.price)
        _require_factor("collateral_factor", self.collateral_factor)
        _require_factor("liability_factor", self.liability_factor)

    @property
    def value(self) -> Decimal:
        return self.amount * self.price


@dataclass(frozen=True)
class PositionSnapshot:
    """An account's position in one pool. Always re-derivable from chain data."""

    account_id: str
    pool_id: str
    collateral: tuple[AssetPosition, ...] = ()
    borrows: tuple[AssetPosition, ...] = ()
    deposits: tuple[AssetPosition, ...] = ()
    health_factor: Decimal = ZERO
    yield_earned: Decimal = ZERO
    deposit_date: datetime = field(default_factory=_utcnow)
    last_updated: datetime = field(default_factory=_utcnow)

    @property
    def position_id(self) -> str:
        return f"{self.account_id}-{self.pool_id}"

    @property
    def total_collateral_value(self) -> Decimal:
        return sum((p.value for p in self.collateral), ZERO)

    @property
    def total_borrowed_value(self) -> Decimal:
        return sum((p.value for p in self.borrows), ZERO)

    @property
    def total_deposit_value(self) -> Decimal:
        return sum((p.value for p in self.deposits), ZERO)

    @property
    def net_value(self) -> Decimal:
        return (
            self.total_collateral_value
            + self.total_deposit_value
            - self.total_borrowed_value
        )


@dataclass(frozen=True)
class Transaction:
    id: str
    account_id: str
    pool_id: str
    asset_id: str
    type: TransactionType
    amount: Decimal
    value: Decimal
    transaction_hash: str
    date: datetime


# ---------------------------------------------------------------------------
# Write path
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FundOperationRequest:
    """A validated fund operation. Identity is structural."""

    request_type: RequestType
    address: str
    amount: Decimal
    account_id: str
    pool_id: str
    memo: str | None = None


@dataclass(frozen=True)
class InvocationResult:
    """What the contract-invocation collaborator hands back."""

    return_value: Any
    transaction_hash: str
    ledger: int
    raw_result: str


@dataclass(frozen=True)
class OperationOutcome:
    """Result of one submitted batch."""

    success: bool
    transaction_hash: str
    ledger: int
    created_at: datetime
    raw_result: str
    error_message: str | None = None
