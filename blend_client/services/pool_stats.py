"""Pool snapshots and derived statistics."""
from __future__ import annotations

import logging

from .. import finance
from ..cache import CachePolicy, CachePolicyExecutor, UseCache
from ..errors import NotFoundError, ValidationError
from ..interfaces.contract import ContractClient
from ..models import PoolSnapshot, PoolStats
from ..protocols.blend import parser

logger = logging.getLogger(__name__)


class PoolStatsService:
    """Read pool state through the cache and derive rates from it."""

    def __init__(
        self,
        contract_client: ContractClient,
        executor: CachePolicyExecutor,
        contract_ids: dict[str, str],
    ) -> None:
        self._client = contract_client
        self._executor = executor
        self._contract_ids = contract_ids

    @property
    def pool_ids(self) -> list[str]:
        return list(self._contract_ids)

    async def get_pool(
        self, pool_id: str, policy: CachePolicy | None = None
    ) -> PoolSnapshot:
        contract_id = self._contract_ids.get(pool_id)
        if not contract_id:
            raise ValidationError(f"Unknown pool id '{pool_id}'")

        async def fetch() -> PoolSnapshot:
            raw = await self._client.get_contract_data(
                contract_id, parser.POOL_DATA_KEY
            )
            if raw is None:
                raise NotFoundError(f"no pool data for {pool_id}")
            return parser.parse_pool(pool_id, raw)

        return await self._executor.execute(
            f"pool:{pool_id}", fetch, policy or UseCache()
        )

    async def get_pools(self, policy: CachePolicy | None = None) -> list[PoolSnapshot]:
        return [await self.get_pool(pool_id, policy) for pool_id in self.pool_ids]

    async def get_pool_stats(
        self, pool_id: str, policy: CachePolicy | None = None
    ) -> PoolStats:
        pool = await self.get_pool(pool_id, policy)
        rates, borrowing_apy, lending_apy = finance.pool_rates(pool)
        stats = PoolStats(
            pool=pool,
            utilization=finance.utilization(pool),
            borrowing_apy=borrowing_apy,
            lending_apy=lending_apy,
            asset_rates=rates,
        )
        logger.info(
            "Pool %s: utilization %.4f, lending APY %.4f, borrowing APY %.4f",
            pool_id, stats.utilization, stats.lending_apy, stats.borrowing_apy,
        )
        return stats
