"""Client facade: explicit composition of the read and write paths."""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Sequence

from .. import finance
from ..cache import CachePolicy, CachePolicyExecutor, CacheStore, UseCache
from ..config import BlendConfig
from ..errors import mapped_errors
from ..interfaces.contract import ContractClient
from ..interfaces.ledger import LedgerClient
from ..models import (
    FundOperationRequest,
    OperationOutcome,
    PoolSnapshot,
    PoolStats,
    PositionSnapshot,
    RequestType,
    Transaction,
)
from ..network import HorizonClient, SorobanClient
from .account import AccountService
from .batch_submitter import BatchSubmitter
from .pool_stats import PoolStatsService
from .pool_validator import PoolStateValidator
from .request_builder import Amount, RequestBuilder

logger = logging.getLogger(__name__)


class BlendClient:
    """Read pool state and submit fund operations for one configuration."""

    def __init__(
        self,
        config: BlendConfig,
        contract_client: ContractClient,
        ledger_client: LedgerClient | None = None,
        store: CacheStore | None = None,
    ) -> None:
        self._config = config
        self._store = store or CacheStore()
        self._executor = CachePolicyExecutor(self._store, config.cache.default_ttl)

        self._validator = PoolStateValidator(
            contract_client,
            self._executor,
            config.contract_ids,
            status_ttl=config.cache.status_ttl,
        )
        self._builder = RequestBuilder(self._validator)
        self._pool_stats = PoolStatsService(
            contract_client, self._executor, config.contract_ids
        )
        self._submitter = BatchSubmitter(
            contract_client,
            config.contract_ids,
            token_decimals=config.token_decimals,
            ledger_client=ledger_client,
            pool_reader=self._pool_stats.get_pool,
        )
        self._accounts = AccountService(
            contract_client, self._executor, self._pool_stats, config.contract_ids
        )

    @classmethod
    def from_config(cls, config: BlendConfig) -> BlendClient:
        """Wire the bundled network clients for ``config``."""
        return cls(
            config,
            SorobanClient(config.network),
            ledger_client=HorizonClient(config.network),
        )

    @property
    def config(self) -> BlendConfig:
        return self._config

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @mapped_errors
    async def get_pools(self, cache_policy: CachePolicy = UseCache()) -> list[PoolSnapshot]:
        return await self._pool_stats.get_pools(cache_policy)

    @mapped_errors
    async def get_pool(
        self, pool_id: str, cache_policy: CachePolicy = UseCache()
    ) -> PoolSnapshot:
        return await self._pool_stats.get_pool(pool_id, cache_policy)

    @mapped_errors
    async def get_pool_stats(
        self, pool_id: str, cache_policy: CachePolicy = UseCache()
    ) -> PoolStats:
        return await self._pool_stats.get_pool_stats(pool_id, cache_policy)

    @mapped_errors
    async def get_pool_status(
        self, pool_id: str, cache_policy: CachePolicy | None = None
    ) -> int:
        return await self._validator.fetch_status(pool_id, cache_policy)

    @mapped_errors
    async def get_user_position(
        self,
        account_id: str,
        pool_id: str,
        cache_policy: CachePolicy = UseCache(),
    ) -> PositionSnapshot:
        return await self._accounts.get_user_position(account_id, pool_id, cache_policy)

    @mapped_errors
    async def get_user_positions(
        self, account_id: str, cache_policy: CachePolicy = UseCache()
    ) -> list[PositionSnapshot]:
        return await self._accounts.get_user_positions(account_id, cache_policy)

    @mapped_errors
    async def get_transaction_history(
        self,
        account_id: str,
        pool_id: str,
        limit: int = 20,
        offset: int = 0,
        cache_policy: CachePolicy = UseCache(),
    ) -> list[Transaction]:
        return await self._accounts.get_transaction_history(
            account_id, pool_id, limit, offset, cache_policy
        )

    @staticmethod
    def health_factor(position: PositionSnapshot) -> Decimal:
        return finance.health_factor(position)

    @staticmethod
    def yield_earned(position: PositionSnapshot) -> Decimal:
        return finance.yield_earned(position)

    def invalidate_cache(self, key: str | None = None) -> None:
        if key is None:
            self._executor.invalidate_all()
        else:
            self._executor.invalidate(key)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    @mapped_errors
    async def create_request(
        self,
        request_type: RequestType,
        account_id: str,
        pool_id: str,
        asset_id: str,
        amount: Amount,
        memo: str | None = None,
        status_policy: CachePolicy | None = None,
    ) -> FundOperationRequest:
        return await self._builder.build(
            request_type, account_id, pool_id, asset_id, amount, memo, status_policy
        )

    @mapped_errors
    async def submit_request(self, request: FundOperationRequest) -> OperationOutcome:
        return await self._submitter.submit([request])

    @mapped_errors
    async def submit_requests(
        self, requests: Sequence[FundOperationRequest]
    ) -> OperationOutcome:
        return await self._submitter.submit(list(requests))

    async def _single(
        self,
        request_type: RequestType,
        account_id: str,
        pool_id: str,
        asset_id: str,
        amount: Amount,
    ) -> OperationOutcome:
        request = await self.create_request(
            request_type, account_id, pool_id, asset_id, amount
        )
        return await self.submit_request(request)

    async def deposit(
        self, account_id: str, pool_id: str, asset_id: str, amount: Amount
    ) -> OperationOutcome:
        return await self._single(RequestType.DEPOSIT, account_id, pool_id, asset_id, amount)

    async def withdraw(
        self, account_id: str, pool_id: str, asset_id: str, amount: Amount
    ) -> OperationOutcome:
        return await self._single(RequestType.WITHDRAW, account_id, pool_id, asset_id, amount)

    async def deposit_collateral(
        self, account_id: str, pool_id: str, asset_id: str, amount: Amount
    ) -> OperationOutcome:
        return await self._single(
            RequestType.DEPOSIT_COLLATERAL, account_id, pool_id, asset_id, amount
        )

    async def withdraw_collateral(
        self, account_id: str, pool_id: str, asset_id: str, amount: Amount
    ) -> OperationOutcome:
        return await self._single(
            RequestType.WITHDRAW_COLLATERAL, account_id, pool_id, asset_id, amount
        )

    async def borrow(
        self, account_id: str, pool_id: str, asset_id: str, amount: Amount
    ) -> OperationOutcome:
        return await self._single(RequestType.BORROW, account_id, pool_id, asset_id, amount)

    async def repay(
        self, account_id: str, pool_id: str, asset_id: str, amount: Amount
    ) -> OperationOutcome:
        return await self._single(RequestType.REPAY, account_id, pool_id, asset_id, amount)
