"""Pure financial calculations for pools and positions — no I/O.

Everything here works on ``Decimal`` so repeated recomputation does not
drift. Inputs are range-checked when snapshots are built, so these
functions do not validate again.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Iterable

from .models import (
    AssetRates,
    AssetSnapshot,
    InterestRateModel,
    PoolSnapshot,
    PositionSnapshot,
)

ZERO = Decimal(0)
ONE = Decimal(1)

# Health factor of a position that owes nothing.
HEALTH_FACTOR_MAX = Decimal("Infinity")


def utilization_rate(supplied: Decimal, borrowed: Decimal) -> Decimal:
    """Fraction of supplied value that is borrowed, capped at 1."""
    if supplied <= 0:
        return ZERO
    return min(borrowed / supplied, ONE)


def utilization(snapshot: PoolSnapshot) -> Decimal:
    return utilization_rate(snapshot.total_supplied, snapshot.total_borrowed)


def interest_rate(model: InterestRateModel, util: Decimal) -> Decimal:
    """Borrow rate on the kinked curve.

    Below the jump point the rate grows by ``utilization_multiplier``;
    past it, the excess utilization grows by ``jump_multiplier``. Both
    branches meet at the jump point.
    """
    if util <= model.jump_point:
        return model.base_rate + util * model.utilization_multiplier
    normal_rate = model.base_rate + model.jump_point * model.utilization_multiplier
    return normal_rate + (util - model.jump_point) * model.jump_multiplier


def supply_rate(
    borrow_rate: Decimal, util: Decimal, backstop_take_rate: Decimal
) -> Decimal:
    """Rate earned by suppliers after the backstop takes its share."""
    return borrow_rate * util * (ONE - backstop_take_rate)


def rate_to_apy(rate: Decimal) -> Decimal:
    """Continuously compounded yearly yield for an annual rate."""
    return rate.exp() - ONE


def health_factor(position: PositionSnapshot) -> Decimal:
    """Risk-adjusted collateral over risk-adjusted liabilities.

    A value below 1 means the position can be liquidated. Positions with
    no borrowed value return ``HEALTH_FACTOR_MAX``. A borrow against an
    asset whose liability factor is 0 counts as an unbounded liability,
    so any such position with value reports 0 whatever its collateral.
    """
    collateral = sum(
        (p.value * p.collateral_factor for p in position.collateral), ZERO
    )

    liabilities = ZERO
    for p in position.borrows:
        if p.value <= 0:
            continue
        if p.liability_factor <= 0:
            # unbounded liability
            return ZERO
        liabilities += p.value / p.liability_factor

    if liabilities <= 0:
        return HEALTH_FACTOR_MAX
    return collateral / liabilities


def yield_earned(position: PositionSnapshot) -> Decimal:
    """Value accrued on supplied assets since the first deposit.

    On-chain supply amounts grow as interest accrues, so the yield is the
    gap between the current amount and the contributed principal, priced
    at the current price.
    """
    total = ZERO
    for p in (*position.deposits, *position.collateral):
        accrued = p.amount - p.principal
        if accrued > 0:
            total += accrued * p.price
    return total


def asset_rates(asset: AssetSnapshot, backstop_take_rate: Decimal) -> AssetRates:
    util = utilization_rate(asset.supplied, asset.borrowed)
    borrow = interest_rate(asset.interest_rate_model, util)
    supply = supply_rate(borrow, util, backstop_take_rate)
    return AssetRates(
        asset_id=asset.asset_id,
        utilization=util,
        borrow_rate=borrow,
        supply_rate=supply,
        borrowing_apy=rate_to_apy(borrow),
        lending_apy=rate_to_apy(supply),
    )


def _weighted(pairs: Iterable[tuple[Decimal, Decimal]]) -> Decimal:
    total_weight = ZERO
    total = ZERO
    for weight, value in pairs:
        total_weight += weight
        total += weight * value
    if total_weight <= 0:
        return ZERO
    return total / total_weight


def pool_rates(pool: PoolSnapshot) -> tuple[tuple[AssetRates, ...], Decimal, Decimal]:
    """Per-asset rates plus pool-wide borrowing and lending APY.

    Pool-wide figures weight each asset by its USD value: borrowed value
    for the borrowing APY, supplied value for the lending APY.
    """
    rates = tuple(asset_rates(a, pool.backstop_take_rate) for a in pool.assets)
    by_id = {a.asset_id: a for a in pool.assets}

    borrowing_apy = _weighted(
        (by_id[r.asset_id].borrowed * by_id[r.asset_id].price, r.borrowing_apy)
        for r in rates
    )
    lending_apy = _weighted(
        (by_id[r.asset_id].supplied * by_id[r.asset_id].price, r.lending_apy)
        for r in rates
    )
    return rates, borrowing_apy, lending_apy
