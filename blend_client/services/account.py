"""Account positions and transaction history."""
from __future__ import annotations

import dataclasses
import logging
from datetime import datetime, timezone
from typing import Callable

from .. import finance
from ..cache import CachePolicy, CachePolicyExecutor, UseCache
from ..errors import NotFoundError, SerializationError, ValidationError
from ..interfaces.contract import ContractClient
from ..models import PositionSnapshot, Transaction
from ..protocols.blend import parser
from .pool_stats import PoolStatsService

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AccountService:
    """Derive position snapshots from raw on-chain amounts and pool pricing."""

    def __init__(
        self,
        contract_client: ContractClient,
        executor: CachePolicyExecutor,
        pool_stats: PoolStatsService,
        contract_ids: dict[str, str],
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._client = contract_client
        self._executor = executor
        self._pools = pool_stats
        self._contract_ids = contract_ids
        self._clock = clock

    def _contract_id(self, pool_id: str) -> str:
        contract_id = self._contract_ids.get(pool_id)
        if not contract_id:
            raise ValidationError(f"Unknown pool id '{pool_id}'")
        return contract_id

    async def get_user_position(
        self, account_id: str, pool_id: str, policy: CachePolicy | None = None
    ) -> PositionSnapshot:
        contract_id = self._contract_id(pool_id)
        policy = policy or UseCache()

        async def fetch() -> PositionSnapshot:
            pool = await self._pools.get_pool(pool_id, policy)
            raw = await self._client.get_contract_data(
                contract_id, parser.positions_key(account_id)
            )
            if raw is None:
                raise NotFoundError(f"{account_id} has no position in pool {pool_id}")

            collateral, borrows, deposits, deposit_date = parser.parse_positions(raw, pool)
            draft = PositionSnapshot(
                account_id=account_id,
                pool_id=pool_id,
                collateral=collateral,
                borrows=borrows,
                deposits=deposits,
                deposit_date=deposit_date,
                last_updated=self._clock(),
            )
            position = dataclasses.replace(
                draft,
                health_factor=finance.health_factor(draft),
                yield_earned=finance.yield_earned(draft),
            )
            logger.info(
                "Position %s: collateral $%.2f, borrowed $%.2f, HF %s",
                position.position_id,
                position.total_collateral_value,
                position.total_borrowed_value,
                position.health_factor,
            )
            return position

        return await self._executor.execute(
            f"position:{account_id}:{pool_id}", fetch, policy
        )

    async def get_user_positions(
        self, account_id: str, policy: CachePolicy | None = None
    ) -> list[PositionSnapshot]:
        """Positions across every configured pool; pools without one are skipped."""
        positions: list[PositionSnapshot] = []
        for pool_id in self._contract_ids:
            try:
                positions.append(
                    await self.get_user_position(account_id, pool_id, policy)
                )
            except NotFoundError:
                logger.debug("No position for %s in pool %s", account_id, pool_id)
        return positions

    async def get_transaction_history(
        self,
        account_id: str,
        pool_id: str,
        limit: int = 20,
        offset: int = 0,
        policy: CachePolicy | None = None,
    ) -> list[Transaction]:
        if limit <= 0 or offset < 0:
            raise ValidationError("limit must be positive and offset non-negative")
        contract_id = self._contract_id(pool_id)
        policy = policy or UseCache()

        async def fetch() -> list[Transaction]:
            pool = await self._pools.get_pool(pool_id, policy)
            raw = await self._client.get_contract_data(
                contract_id, parser.history_key(account_id)
            )
            if raw is None:
                return []
            if not isinstance(raw, list):
                raise SerializationError("history must be a list")
            transactions = [parser.parse_transaction(e, account_id, pool) for e in raw]
            transactions.sort(key=lambda t: t.date, reverse=True)
            return transactions

        history = await self._executor.execute(
            f"history:{account_id}:{pool_id}", fetch, policy
        )
        return history[offset:offset + limit]
